"""
utils/validators.py

Lightweight validation + normalization for ledger datasets.
Goals:
- Prevent common breakages (dtype mismatch on joins, numeric strings, stray whitespace)
- Produce actionable data-quality flags (missing columns, null rates, join coverage)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import pandas as pd

from models.policy import MEASURE_COLUMNS


# =====================================================
# Types
# =====================================================

@dataclass(frozen=True)
class ValidationIssue:
    table: str
    severity: str  # "error" | "warning"
    message: str


# =====================================================
# Small helpers
# =====================================================

def _as_string_id(s: pd.Series) -> pd.Series:
    """
    Convert an ID-like series to string consistently.
    Handles floats that look like 101.0 -> "101".
    """
    if s is None:
        return s
    s2 = s.astype("string")

    # CSVs often infer IDs as floats
    s2 = s2.str.replace(r"\.0$", "", regex=True)

    return s2.str.strip()


def clean_numeric(s: pd.Series) -> pd.Series:
    """
    Numeric text to float: quotes, thousands separators and blanks removed.
    Unparseable values become NaN (left for the analytics layer to treat as 0).
    """
    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)
    text = (
        s.astype("string")
        .str.replace(r"[\"']", "", regex=True)
        .str.replace(",", "", regex=False)
        .str.strip()
    )
    text = text.astype(object).where(text.notna() & (text != "").fillna(False), None)
    return pd.to_numeric(text, errors="coerce").astype(float)


def require_columns(df: pd.DataFrame, table: str, cols: List[str]) -> List[ValidationIssue]:
    missing = [c for c in cols if c not in df.columns]
    if not missing:
        return []
    return [ValidationIssue(table=table, severity="error", message=f"Missing columns: {missing}")]


def require_one_of(df: pd.DataFrame, table: str, col_options: List[str], label: str) -> List[ValidationIssue]:
    """
    Require at least one column in col_options exists.
    """
    exists = [c for c in col_options if c in df.columns]
    if exists:
        return []
    return [ValidationIssue(table=table, severity="error", message=f"Missing required field '{label}'. Need one of: {col_options}")]


def non_null(df: pd.DataFrame, table: str, col: str, max_null_rate: float = 0.25, severity: str = "warning") -> List[ValidationIssue]:
    if col not in df.columns or len(df) == 0:
        return []
    null_rate = float(df[col].isna().mean())
    if null_rate <= max_null_rate:
        return []
    return [ValidationIssue(table=table, severity=severity, message=f"High null rate for '{col}': {null_rate:.0%} (threshold {max_null_rate:.0%})")]


def non_negative(df: pd.DataFrame, table: str, cols: List[str]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for c in cols:
        if c not in df.columns:
            continue
        values = pd.to_numeric(df[c], errors="coerce")
        n = int((values < 0).sum())
        if n:
            issues.append(ValidationIssue(table=table, severity="warning", message=f"{n} negative value(s) in '{c}'"))
    return issues


def join_coverage_warning(
    left: pd.DataFrame,
    right: pd.DataFrame,
    table: str,
    left_key: str,
    right_key: str,
    label: str,
    min_match_rate: float = 0.85
) -> List[ValidationIssue]:
    """
    Quick data-quality signal: how well does one table link to another?
    """
    if left is None or right is None:
        return []
    if left_key not in left.columns or right_key not in right.columns:
        return []
    if len(left) == 0:
        return []

    left_vals = _as_string_id(left[left_key].dropna())
    right_vals = set(_as_string_id(right[right_key].dropna()).unique())

    if len(left_vals) == 0:
        return []

    match_rate = float(left_vals.isin(right_vals).mean())

    if match_rate >= min_match_rate:
        return []

    return [
        ValidationIssue(
            table=table,
            severity="warning",
            message=f"Low join coverage for {label}: {match_rate:.0%} matched (threshold {min_match_rate:.0%})."
        )
    ]


# =====================================================
# Core normalization hook
# =====================================================

def normalize_ledger(df: pd.DataFrame, table: str = "ledger") -> pd.DataFrame:
    """
    Normalization hook for the loader and pages.

    What it does:
      - normalize column names
      - trim whitespace on string columns (blank -> missing)
      - coerce policy_id to string (prevents join dtype issues)
      - coerce measure columns to float where present
    """
    if df is None:
        raise ValueError(f"{table}: dataframe is None")

    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]

    for c in df.columns:
        if df[c].dtype == "object" or pd.api.types.is_string_dtype(df[c]):
            s = df[c].astype("string").str.strip()
            blank = s.isna() | (s == "").fillna(True)
            df[c] = s.astype(object).where(~blank.astype(bool), None)

    if "policy_id" in df.columns:
        ids = _as_string_id(df["policy_id"])
        df["policy_id"] = ids.astype(object).where(ids.notna(), None)

    for c in MEASURE_COLUMNS:
        if c in df.columns:
            df[c] = clean_numeric(df[c])

    return df


# =====================================================
# Ledger validation
# =====================================================

def validate_ledger_tables(
    ledger: Optional[pd.DataFrame],
    renewals: Optional[pd.DataFrame] = None,
) -> List[ValidationIssue]:
    """
    Schema and quality checks for the policy ledger and the (optional)
    renewal outcome ledger.
    """
    issues: List[ValidationIssue] = []

    if ledger is None:
        issues.append(ValidationIssue(table="ledger", severity="error", message="Table missing or not loaded"))
        return issues

    # --- ledger ---
    issues += require_columns(ledger, "ledger", ["underwriting_year", "class_of_business", "country_name"])
    issues += require_one_of(ledger, "ledger", ["gross_premium"], label="premium")
    issues += non_null(ledger, "ledger", "underwriting_year", max_null_rate=0.10, severity="warning")
    issues += non_null(ledger, "ledger", "class_of_business", max_null_rate=0.0, severity="warning")
    issues += non_null(ledger, "ledger", "country_name", max_null_rate=0.10, severity="warning")
    issues += non_null(ledger, "ledger", "expiry_date", max_null_rate=0.25, severity="warning")
    issues += non_negative(ledger, "ledger", MEASURE_COLUMNS)

    # --- renewal outcomes ---
    if renewals is not None:
        issues += require_columns(renewals, "renewals", ["policy_id", "policy_status"])
        issues += non_null(renewals, "renewals", "policy_id", max_null_rate=0.0, severity="error")
        issues += join_coverage_warning(
            renewals, ledger, "renewals", "policy_id", "policy_id", "renewals → ledger (policy_id)"
        )

    return issues


def summarize_issues(issues: List[ValidationIssue]) -> Dict[str, int]:
    return {
        "errors": sum(1 for i in issues if i.severity == "error"),
        "warnings": sum(1 for i in issues if i.severity == "warning"),
        "total": len(issues),
    }
