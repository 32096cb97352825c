from __future__ import annotations

import logging
import re
from typing import Any

SENSITIVE_KEYS = {"merchant", "merchant_raw", "description", "description_raw", "account_id"}

KV_PATTERN = re.compile(r"(?i)\b(merchant|description|desc|account)\s*=\s*[^\s,;|]+")

class RedactingFilter(logging.Filter):
    # Masks merchant labels and account ids in log output.
    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            args = record.args
            if isinstance(args, dict):
                args = _redact_obj(args)
            else:
                args = tuple(_redact_obj(a) for a in args)
            try:
                msg = str(record.msg) % args
            except (TypeError, ValueError):
                msg = f"{record.msg} {args!r}"
            record.msg = _redact_text(msg)
            record.args = None
        elif isinstance(record.msg, str):
            record.msg = _redact_text(record.msg)
        return True

def _redact_text(s: str) -> str:
    s = KV_PATTERN.sub(r"\1=<redacted>", s)
    if len(s) > 500:
        s = s[:500] + "...<truncated>"
    return s

def _redact_obj(o: Any) -> Any:
    if isinstance(o, dict):
        return {k: ("<redacted>" if str(k).lower() in SENSITIVE_KEYS else _redact_obj(v)) for k, v in o.items()}
    if isinstance(o, list):
        return [_redact_obj(x) for x in o]
    if isinstance(o, tuple):
        return tuple(_redact_obj(x) for x in o)
    return o
