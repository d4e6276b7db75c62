"""
utils/logging.py

Simple log-line helpers for the analytics scripts and pipeline.
- Works in notebooks, CLI, or Streamlit.
- Returns the formatted line; the caller decides whether to print or store it.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any


def _ts() -> str:
    return _dt.datetime.now(_dt.timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _suffix(kv: dict) -> str:
    if not kv:
        return ""
    return " | " + " ".join([f"{k}={v}" for k, v in kv.items()])


def _line(level: str, msg: str, kv: dict) -> str:
    return f"[{_ts()}] {level:<5} {msg}{_suffix(kv)}"


def log_info(msg: str, **kv: Any) -> str:
    """Return a formatted log line (caller can print or store)."""
    return _line("INFO", msg, kv)


def log_warn(msg: str, **kv: Any) -> str:
    return _line("WARN", msg, kv)


def log_error(msg: str, **kv: Any) -> str:
    return _line("ERROR", msg, kv)
