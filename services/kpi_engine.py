# services/kpi_engine.py

from __future__ import annotations

import numpy as np
import pandas as pd

from models.kpi import KPISet
from models.policy import RecordsLike, as_frame


# =====================================================
# Internal Utilities
# =====================================================

def _safe_numeric(s: pd.Series) -> pd.Series:
    """
    Coerce to numeric safely; missing, text and infinite values become 0.
    """
    out = pd.to_numeric(s, errors="coerce").astype(float)
    return out.replace([np.inf, -np.inf], np.nan).fillna(0.0)


def incurred_per_record(df: pd.DataFrame) -> pd.Series:
    """
    Supplied incurred claims where present, else paid + outstanding.
    Decided row by row.
    """
    supplied = pd.to_numeric(df["incurred_claims"], errors="coerce").astype(float)
    supplied = supplied.replace([np.inf, -np.inf], np.nan)
    derived = _safe_numeric(df["paid_claims"]) + _safe_numeric(df["outstanding_claims"])
    return pd.Series(
        np.where(supplied.notna(), supplied, derived),
        index=df.index,
        dtype=float,
    )


# =====================================================
# Aggregation
# =====================================================

def aggregate(records: RecordsLike) -> KPISet:
    """
    Reduce a record collection to one KPISet.

    Empty input gives an all-zero KPISet. Ratios are 0 when premium is 0.
    """
    df = as_frame(records)
    n = int(len(df))
    if n == 0:
        return KPISet()

    return KPISet.from_components(
        premium=float(_safe_numeric(df["gross_premium"]).sum()),
        paid_claims=float(_safe_numeric(df["paid_claims"]).sum()),
        outstanding_claims=float(_safe_numeric(df["outstanding_claims"]).sum()),
        incurred_claims=float(incurred_per_record(df).sum()),
        expense=float(_safe_numeric(df["acquisition_cost"]).sum()),
        number_of_accounts=n,
        max_liability_total=float(_safe_numeric(df["max_liability"]).sum()),
    )


def totals(items) -> KPISet:
    """Totals row: summed raw components with ratios recomputed."""
    return KPISet.combine(items)


def premium_order(df: pd.DataFrame) -> pd.DataFrame:
    """Records sorted by descending premium (stable for ties)."""
    if df.empty:
        return df
    key = _safe_numeric(df["gross_premium"])
    return df.assign(_prem=key).sort_values("_prem", ascending=False, kind="mergesort").drop(columns="_prem")
