"""Utility helpers for the step reporter.

Currently contains the logging configuration helper used by `main.py`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional


def configure_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    """Configure root logger to write to the console and, optionally, a file."""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)
    root.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        root.addHandler(fh)
