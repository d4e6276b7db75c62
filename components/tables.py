"""
components/tables.py

Reusable table renderers and formatting helpers.
"""

from __future__ import annotations

import streamlit as st
import pandas as pd

from models.kpi import KPISet


def fmt_money(value: float) -> str:
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:,.2f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:,.1f}K"
    return f"{value:,.0f}"


def fmt_pct(value: float) -> str:
    return f"{value:,.1f}%"


def show_table(df: pd.DataFrame, title: str | None = None, height: int | None = None):
    if title:
        st.subheader(title)
    if df.empty:
        st.info("No rows to display.")
        return
    st.dataframe(df, use_container_width=True, height=height, hide_index=True)


def kpi_row(items: list[tuple[str, str]]):
    """items: list of (label, value)"""
    cols = st.columns(len(items))
    for col, (label, value) in zip(cols, items):
        col.metric(label, value)


def kpi_items(k: KPISet) -> list[tuple[str, str]]:
    return [
        ("Premium", fmt_money(k.premium)),
        ("Incurred", fmt_money(k.incurred_claims)),
        ("Loss ratio", fmt_pct(k.loss_ratio_pct)),
        ("Expense ratio", fmt_pct(k.expense_ratio_pct)),
        ("Combined ratio", fmt_pct(k.combined_ratio_pct)),
        ("Accounts", f"{k.number_of_accounts:,}"),
    ]
