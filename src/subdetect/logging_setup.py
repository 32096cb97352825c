from __future__ import annotations

import logging
from pathlib import Path

from subdetect.privacy.redaction import RedactingFilter

def setup_logging(log_dir: Path, redact: bool = True, level: int = logging.INFO) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "subdetect.log"

    logger = logging.getLogger()
    logger.setLevel(level)

    # Repeated CLI/job invocations in one process must not stack handlers
    if any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(log_path) for h in logger.handlers):
        return

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setFormatter(fmt)
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)

    for h in (fh, sh):
        if redact:
            h.addFilter(RedactingFilter())
        logger.addHandler(h)
