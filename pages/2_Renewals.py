"""
pages/2_Renewals.py — Renewal lifecycle

Upcoming, renewed and not-renewed business for the caller's visible book.
Fronting arrangements are excluded.
"""

from __future__ import annotations

import os
from pathlib import Path

import pandas as pd
import streamlit as st

from components.charts import plot_renewal_mix, plot_upcoming_by_month
from components.filters import as_of_picker, portfolio_filters_sidebar, role_chooser
from components.session import load_portfolio
from components.tables import fmt_money, fmt_pct, kpi_row, show_table
from models.renewal import RenewalStatus
from services.pipeline import PortfolioQuery, filter_options, policy_for, renewal_summary
from utils.dates import parse_date_series

# -------------------------------------------------
# Page Configuration
# -------------------------------------------------
st.set_page_config(page_title="Renewals", layout="wide")

st.title("Renewals")
st.caption("Renewal lifecycle by expiry date and renewal outcome feed (synthetic demo data)")

# -------------------------------------------------
# Sidebar Controls
# -------------------------------------------------
st.sidebar.header("Configuration")

root_default = os.getenv("DEMO_ROOT", str(Path(__file__).resolve().parents[1]))
root = st.sidebar.text_input("Demo root folder", value=root_default)

roles = role_chooser()
as_of = as_of_picker()

with st.spinner("Loading ledger..."):
    data = load_portfolio(root)

base_query = PortfolioQuery(roles=tuple(roles), as_of=as_of)
if policy_for(base_query, data.role_classes).is_empty():
    st.warning("Your roles do not grant access to any class of business.")
    st.stop()

options = filter_options(data.ledger, base_query, data.canonicalizer, data.role_classes)
filters = portfolio_filters_sidebar(options)
query = PortfolioQuery(roles=tuple(roles), filters=filters, as_of=as_of)

# -------------------------------------------------
# Summary
# -------------------------------------------------
summary = renewal_summary(
    data.ledger, query, data.outcomes, data.canonicalizer, data.role_classes, data.renewal_cfg
)
r = summary.rollup

st.caption(f"Window: {data.renewal_cfg.window_days} days from {query.as_of_date():%d %b %Y}")
kpi_row(
    [
        ("Upcoming", f"{r.upcoming_count:,} ({fmt_pct(r.upcoming_pct)})"),
        ("Renewed", f"{r.renewed_count:,} ({fmt_pct(r.renewed_pct)})"),
        ("Not renewed", f"{r.not_renewed_count:,} ({fmt_pct(r.not_renewed_pct)})"),
        ("Unknown", f"{r.unknown_count:,}"),
        ("Upcoming premium", fmt_money(r.upcoming_premium)),
        ("Loss ratio", fmt_pct(summary.loss_ratio_pct)),
    ]
)

if r.total == 0:
    st.info("No records match the current roles and filters.")
    st.stop()

st.markdown("---")

c1, c2 = st.columns(2)
with c1:
    st.plotly_chart(
        plot_renewal_mix(
            {
                RenewalStatus.UPCOMING.value: r.upcoming_count,
                RenewalStatus.RENEWED.value: r.renewed_count,
                RenewalStatus.NOT_RENEWED.value: r.not_renewed_count,
                RenewalStatus.UNKNOWN.value: r.unknown_count,
            }
        ),
        use_container_width=True,
    )

records = summary.records
upcoming = records[records["renewal_status"] == RenewalStatus.UPCOMING.value]

with c2:
    if upcoming.empty:
        st.info("Nothing due inside the window.")
    else:
        when = parse_date_series(upcoming["expiry_date"]).fillna(parse_date_series(upcoming["renewal_date"]))
        by_month = (
            pd.DataFrame({
                "month": when.dt.strftime("%Y-%m"),
                "premium": pd.to_numeric(upcoming["gross_premium"], errors="coerce").fillna(0.0),
            })
            .dropna(subset=["month"])
            .groupby("month", as_index=False)["premium"].sum()
        )
        st.plotly_chart(plot_upcoming_by_month(by_month), use_container_width=True)

# -------------------------------------------------
# Worklist
# -------------------------------------------------
status_pick = st.multiselect(
    "Status",
    options=[s.value for s in RenewalStatus],
    default=[RenewalStatus.UPCOMING.value],
)
cols = [
    "policy_id", "policy_name", "class_of_business", "country_name", "broker", "cedant",
    "expiry_date", "gross_premium", "renewal_status", "is_direct",
]
view = records[records["renewal_status"].isin(status_pick)] if status_pick else records
show_table(view[[c for c in cols if c in view.columns]], title="Renewal worklist")
