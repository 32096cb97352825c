from __future__ import annotations

import argparse
import json
import shutil
from pathlib import Path

from subdetect.app_config import load_config
from subdetect.core.clock import utc_today
from subdetect.core.ingest import ingest_csv
from subdetect.core.jobs import detect_for_user, generate_upcoming_notifications, recompute_all
from subdetect.core.reporting import build_subscriptions_payload, export_subscriptions
from subdetect.db.repo import Repo
from subdetect.db.session import init_db, make_session_factory
from subdetect.logging_setup import setup_logging

def _prepare(cfg):
    setup_logging(cfg.log_dir, redact=cfg.log_redact)
    init_db(cfg.db_path)
    return make_session_factory(cfg.db_path)

def cmd_init(cfg):
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    cfg.export_dir.mkdir(parents=True, exist_ok=True)
    _prepare(cfg)
    print(f"Initialized: {cfg.db_path}")

def cmd_import(cfg, user_id: str, csv_paths: list[str], detect_after: bool):
    SessionFactory = _prepare(cfg)
    total_inserted = 0
    total_skipped = 0
    with SessionFactory() as s:
        repo = Repo(s)
        for csv_path in csv_paths:
            p = Path(csv_path).expanduser().resolve()
            rows = ingest_csv(p)
            inserted, skipped = repo.insert_transactions(user_id, rows)
            total_inserted += inserted
            total_skipped += skipped
            print(f"  - {p.name}: inserted={inserted} skipped={skipped}")

        if detect_after:
            res = detect_for_user(repo, user_id, cfg.lookback_days, cfg.min_occurrences)
            print(f"Detected {res.detected} subscription(s).")

    print(f"Imported {len(csv_paths)} file(s): {total_inserted} rows inserted (skipped {total_skipped} duplicates).")

def cmd_detect(cfg, user_id: str, min_occurrences: int | None, lookback_days: int | None, as_json: bool):
    SessionFactory = _prepare(cfg)
    with SessionFactory() as s:
        repo = Repo(s)
        res = detect_for_user(
            repo,
            user_id,
            lookback_days or cfg.lookback_days,
            min_occurrences or cfg.min_occurrences,
        )

    if as_json:
        print(json.dumps(res.to_dict(), indent=2, default=str))
        return

    print(f"detected={res.detected} upserted={res.upserted} rejected={len(res.rejected)} decayed={res.decayed}")
    for c in res.candidates:
        print(f"  {c.merchant} | {c.amount:.2f} {c.currency or ''} | {c.cadence} | next {c.next_payment_date} | conf {c.confidence:.2f}")

def cmd_recompute_all(cfg):
    SessionFactory = _prepare(cfg)
    with SessionFactory() as s:
        failed = recompute_all(Repo(s), cfg)
    if failed:
        raise SystemExit(f"Recompute finished with {failed} failed user(s).")
    print("Recompute complete.")

def cmd_subscriptions(cfg, user_id: str, as_json: bool):
    SessionFactory = _prepare(cfg)
    with SessionFactory() as s:
        data = build_subscriptions_payload(Repo(s), user_id)

    if as_json:
        print(json.dumps(data, indent=2))
        return

    rows = data["subscriptions"]
    if not rows:
        print("No subscriptions detected yet.")
        return

    headers = ["id", "merchant", "amount", "cadence", "status", "confidence", "next_payment_date"]
    print(" | ".join(headers))
    print("-" * 100)
    for r in rows:
        print(f"{r['id']} | {r['merchant']} | {r['amount']:.2f} {r['currency'] or ''} | {r['cadence']} | "
              f"{r['status']} | {r['confidence']:.2f} | {r['next_payment_date'] or ''}")

def cmd_upcoming(cfg, user_id: str | None, days: int | None):
    SessionFactory = _prepare(cfg)
    with SessionFactory() as s:
        created = generate_upcoming_notifications(
            Repo(s), window_days=days or cfg.upcoming_window_days, today=utc_today(), user_id=user_id
        )
    print(f"Created {created} upcoming-payment notification(s).")

def cmd_export(cfg, user_id: str, fmt: str):
    SessionFactory = _prepare(cfg)
    with SessionFactory() as s:
        out = export_subscriptions(Repo(s), user_id, cfg.export_dir, fmt=fmt)
    print(f"Exported: {out}")

def cmd_purge(cfg):
    if cfg.db_path.exists():
        cfg.db_path.unlink()
    for suf in ("-wal", "-shm"):
        p = cfg.db_path.with_name(cfg.db_path.name + suf)
        if p.exists():
            p.unlink()
    for d in (cfg.log_dir, cfg.export_dir):
        if d.exists():
            shutil.rmtree(d)
    print("Purged DB + logs + exports.")

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="subdetect")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init")
    p_import = sub.add_parser("import-csv")
    p_import.add_argument("paths", nargs="+")
    p_import.add_argument("--user", required=True)
    p_import.add_argument("--no-detect", action="store_true")
    p_detect = sub.add_parser("detect")
    p_detect.add_argument("--user", required=True)
    p_detect.add_argument("--min-occurrences", type=int, default=None)
    p_detect.add_argument("--lookback-days", type=int, default=None)
    p_detect.add_argument("--json", action="store_true")
    sub.add_parser("recompute-all")
    p_subs = sub.add_parser("subscriptions")
    p_subs.add_argument("--user", required=True)
    p_subs.add_argument("--json", action="store_true")
    p_up = sub.add_parser("upcoming")
    p_up.add_argument("--user", default=None)
    p_up.add_argument("--days", type=int, default=None)
    p_export = sub.add_parser("export")
    p_export.add_argument("--user", required=True)
    p_export.add_argument("--fmt", choices=["csv", "json"], default="csv")
    sub.add_parser("purge")
    return ap

def main(argv: list[str] | None = None):
    cfg = load_config()
    args = build_parser().parse_args(argv)

    if args.cmd == "init":
        cmd_init(cfg)
    elif args.cmd == "import-csv":
        cmd_import(cfg, args.user, args.paths, detect_after=not args.no_detect)
    elif args.cmd == "detect":
        cmd_detect(cfg, args.user, args.min_occurrences, args.lookback_days, args.json)
    elif args.cmd == "recompute-all":
        cmd_recompute_all(cfg)
    elif args.cmd == "subscriptions":
        cmd_subscriptions(cfg, args.user, args.json)
    elif args.cmd == "upcoming":
        cmd_upcoming(cfg, args.user, args.days)
    elif args.cmd == "export":
        cmd_export(cfg, args.user, args.fmt)
    elif args.cmd == "purge":
        cmd_purge(cfg)
    else:
        raise SystemExit("unknown command")

if __name__ == "__main__":
    main()
