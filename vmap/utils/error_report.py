# vmap/utils/error_report.py
"""
Minimal crash capture for the standalone demo:
- write logs/crash_YYYYMMDD_HHMMSS.txt
- log the traceback through the `vmap` logger
Safe to import early in your entrypoint (before starting the frame loop).
"""
from __future__ import annotations

import logging
import os
import sys
import time
import traceback

log = logging.getLogger(__name__)


def _log_dir() -> str:
    d = os.path.join(os.getcwd(), "logs")
    os.makedirs(d, exist_ok=True)
    return d


def write_crash_file(tb: str) -> str:
    stamp = time.strftime("%Y%m%d_%H%M%S")
    path = os.path.join(_log_dir(), f"crash_{stamp}.txt")
    with open(path, "w", encoding="utf-8") as f:
        f.write(tb)
    return path


def install_excepthook() -> None:
    def _hook(exc_type, exc, tb):
        full = "".join(traceback.format_exception(exc_type, exc, tb))
        path = write_crash_file(full)
        log.critical("Unhandled exception written to %s", path)
        # Re-raise so debuggers/CI still fail properly
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _hook
