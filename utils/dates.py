"""
utils/dates.py

Date parsing shared by grouping, filtering and renewal classification.

Ledger exports mix several encodings for the same column:
  - DD/MM/YYYY or DD-MM-YYYY (most common)
  - ISO YYYY-MM-DD (optionally with a time part)
  - Excel serial numbers (e.g. 45292)
Anything else goes through pandas as a last resort. Unparseable values
return None; nothing here raises.
"""

from __future__ import annotations

import datetime as _dt
import math
import numbers
import re
from typing import Any, Optional

import pandas as pd


_DMY = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_SERIAL = re.compile(r"^\d+(\.\d+)?$")

# serial 1 == 1900-01-01
_EXCEL_EPOCH = _dt.date(1899, 12, 31)

MONTH_NAMES = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
               "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]

YEAR_MIN = 1900
YEAR_MAX = 2100


def _safe_date(year: int, month: int, day: int) -> Optional[_dt.date]:
    try:
        return _dt.date(year, month, day)
    except ValueError:
        return None


def excel_serial_to_date(serial: float) -> Optional[_dt.date]:
    if not math.isfinite(serial) or serial <= 0:
        return None
    days = int(math.floor(serial))
    # Excel treats 1900 as a leap year (serial 60 is 29 Feb 1900)
    if days >= 60:
        days -= 1
    try:
        return _EXCEL_EPOCH + _dt.timedelta(days=days)
    except OverflowError:
        return None


def parse_date_value(value: Any) -> Optional[_dt.date]:
    """Parse a single ledger date cell into a `datetime.date` (or None)."""
    # NaT is a datetime subclass; catch it (and NaN / NA) before the date branches
    if value is None or value is pd.NaT or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if isinstance(value, float) and math.isnan(value):
            return None
        return excel_serial_to_date(float(value))

    text = str(value).strip()
    if not text or text.lower() in {"nan", "nat", "none", "null"}:
        return None

    m = _DMY.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        return _safe_date(year, month, day)

    m = _ISO.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _safe_date(year, month, day)

    if _SERIAL.match(text):
        return excel_serial_to_date(float(text))

    ts = pd.to_datetime(text, errors="coerce", dayfirst=True)
    if pd.isna(ts):
        return None
    return ts.date()


def parse_date_series(s: pd.Series) -> pd.Series:
    """Vector form of parse_date_value; returns datetime64 with NaT for failures."""
    if s is None:
        return pd.Series(dtype="datetime64[ns]")
    if pd.api.types.is_datetime64_any_dtype(s):
        return s
    parsed = s.map(parse_date_value)
    return pd.to_datetime(parsed, errors="coerce")


def valid_year(value: Any) -> Optional[int]:
    """Integer year within the accepted bound, else None."""
    if value is None:
        return None
    try:
        if isinstance(value, float) and math.isnan(value):
            return None
        year = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return None
    if YEAR_MIN <= year <= YEAR_MAX:
        return year
    return None


def quarter_of(month: int) -> str:
    return f"Q{(month - 1) // 3 + 1}"


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]
