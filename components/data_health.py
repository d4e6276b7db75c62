# components/data_health.py
from __future__ import annotations

from typing import List

import streamlit as st
import pandas as pd

from utils.validators import ValidationIssue, summarize_issues


KEY_FIELDS = [
    "policy_id",
    "underwriting_year",
    "class_of_business",
    "country_name",
    "expiry_date",
    "gross_premium",
]


def _status_badge(ok: bool) -> str:
    return "🟢 OK" if ok else "🔴 Attention"


def _health_color(pct: float | None) -> str:
    if pct is None:
        return "⚪ N/A"
    if pct >= 0.98:
        return "🟢"
    if pct >= 0.90:
        return "🟡"
    return "🔴"


def completeness(ledger: pd.DataFrame) -> pd.DataFrame:
    rows = []
    for col in KEY_FIELDS:
        pct = None
        if col in ledger.columns and len(ledger):
            pct = float(ledger[col].notna().mean())
        rows.append(
            {
                "Field": col,
                "Completeness": None if pct is None else round(pct * 100, 2),
                "Status": _health_color(pct),
            }
        )
    return pd.DataFrame(rows)


def show_data_health_panel(ledger: pd.DataFrame, issues: List[ValidationIssue], outcome_count: int = 0):
    """
    Validation status and key-field completeness for the loaded ledger.
    """
    summary = summarize_issues(issues)
    healthy = summary["errors"] == 0

    st.markdown("## Data Health")
    st.caption("Validation status of the policy ledger and renewal feed")

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Ledger status", _status_badge(healthy))
    with c2:
        st.metric("Records", f"{len(ledger):,}")
    with c3:
        st.metric("Renewal outcomes", f"{outcome_count:,}")
    with c4:
        st.metric("Warnings", summary["warnings"])

    if not healthy:
        st.error("Validation errors detected. KPIs may be unreliable.")

    st.subheader("Key-field completeness")
    st.dataframe(
        completeness(ledger),
        use_container_width=True,
        hide_index=True,
        column_config={
            "Completeness": st.column_config.ProgressColumn(
                "Completeness %",
                min_value=0,
                max_value=100,
                format="%.1f",
            )
        },
    )

    if issues:
        with st.expander(f"Validation issues ({summary['total']})"):
            st.dataframe(
                pd.DataFrame([i.__dict__ for i in issues]),
                use_container_width=True,
                hide_index=True,
            )
