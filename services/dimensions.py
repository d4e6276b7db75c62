"""
services/dimensions.py

Per-record key derivation for grouping and filtering.

Each dimension is a function (records, canonicalizer) -> Series aligned to
the records' index. Date-derived dimensions yield None when no valid key
exists; text dimensions fall back to "Unknown".
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

import pandas as pd

from services.canonicalizer import Canonicalizer, default_canonicalizer
from utils.dates import month_name, parse_date_series, quarter_of, valid_year


UNKNOWN_KEY = "Unknown"

DimensionFn = Callable[[pd.DataFrame, Canonicalizer], pd.Series]


def _col(df: pd.DataFrame, col: str) -> pd.Series:
    if col in df.columns:
        return df[col]
    return pd.Series([None] * len(df), index=df.index, dtype="object")


def _text_key(value) -> str:
    if value is None or (isinstance(value, float) and value != value) or value is pd.NA:
        return UNKNOWN_KEY
    text = " ".join(str(value).split())
    return text or UNKNOWN_KEY


# -----------------------------
# Date-derived keys
# -----------------------------

def year_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    """
    Underwriting year when valid (1900-2100), else the inception-date year.
    None when neither gives a usable year.
    """
    inception = parse_date_series(_col(df, "inception_date"))
    keys = []
    for uy, inc in zip(_col(df, "underwriting_year"), inception):
        year = valid_year(uy)
        if year is None and pd.notna(inc):
            year = valid_year(inc.year)
        keys.append(year)
    return pd.Series(keys, index=df.index, dtype="object")


def _inception_months(df: pd.DataFrame) -> list:
    inception = parse_date_series(_col(df, "inception_date"))
    return [int(ts.month) if pd.notna(ts) else None for ts in inception]


def quarter_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    keys = [quarter_of(m) if m else None for m in _inception_months(df)]
    return pd.Series(keys, index=df.index, dtype="object")


def month_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    keys = [month_name(m) if m else None for m in _inception_months(df)]
    return pd.Series(keys, index=df.index, dtype="object")


# -----------------------------
# Canonicalized keys
# -----------------------------

def country_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    canon = canon or default_canonicalizer()
    return _col(df, "country_name").map(lambda v: canon.country(v) or UNKNOWN_KEY)


def class_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    canon = canon or default_canonicalizer()
    return _col(df, "class_of_business").map(lambda v: canon.class_of_business(v) or UNKNOWN_KEY)


def territory_keys(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
    canon = canon or default_canonicalizer()
    terr = _col(df, "territory")
    country = _col(df, "country_name")
    keys = [canon.territory(t, c) for t, c in zip(terr, country)]
    return pd.Series(keys, index=df.index, dtype="object")


def _text_dimension(col: str) -> DimensionFn:
    def fn(df: pd.DataFrame, canon: Optional[Canonicalizer] = None) -> pd.Series:
        return _col(df, col).map(_text_key)
    return fn


DIMENSIONS: Dict[str, DimensionFn] = {
    "year": year_keys,
    "quarter": quarter_keys,
    "month": month_keys,
    "country": country_keys,
    "class": class_keys,
    "territory": territory_keys,
    "broker": _text_dimension("broker"),
    "cedant": _text_dimension("cedant"),
    "policy": _text_dimension("policy_name"),
    "sub_class": _text_dimension("sub_class"),
    "extension_type": _text_dimension("extension_type"),
    "office": _text_dimension("office"),
    "region": _text_dimension("region"),
    "hub": _text_dimension("hub"),
}

NUMERIC_DIMENSIONS = {"year"}


def dimension_keys(df: pd.DataFrame, dimension, canon: Optional[Canonicalizer] = None) -> pd.Series:
    """Resolve a dimension name (or callable) into a key Series."""
    canon = canon or default_canonicalizer()
    if callable(dimension):
        return pd.Series(dimension(df, canon), index=df.index)
    if dimension not in DIMENSIONS:
        raise KeyError(f"Unknown dimension: {dimension!r}. Known: {sorted(DIMENSIONS)}")
    return DIMENSIONS[dimension](df, canon)
