"""
pages/1_Portfolio_KPIs.py — Portfolio KPIs

Underwriting KPIs for the caller's visible book:
- headline KPIs (premium, incurred, loss / expense / combined ratio)
- KPIs by underwriting year and by country
- broker / cedant performance drill-down
- data health of the loaded ledger
"""

from __future__ import annotations

import os
from pathlib import Path

import streamlit as st

from components.charts import plot_premium_by_country, plot_yearly_kpis
from components.data_health import show_data_health_panel
from components.filters import as_of_picker, portfolio_filters_sidebar, role_chooser
from components.session import load_portfolio
from components.tables import kpi_items, kpi_row, show_table
from services.pipeline import (
    PortfolioQuery,
    country_overview,
    entity_performance,
    filter_options,
    kpi_summary,
    policy_for,
    yearly_overview,
)

# -------------------------------------------------
# Page Configuration
# -------------------------------------------------
st.set_page_config(page_title="Portfolio KPIs", layout="wide")

st.title("Portfolio KPIs")
st.caption("Role-scoped underwriting performance (synthetic demo data)")

# -------------------------------------------------
# Sidebar Controls
# -------------------------------------------------
st.sidebar.header("Configuration")

root_default = os.getenv("DEMO_ROOT", str(Path(__file__).resolve().parents[1]))
root = st.sidebar.text_input("Demo root folder", value=root_default)
measure_set = st.sidebar.selectbox("Currency basis", options=["kd", "fc"], index=0, format_func=str.upper)

roles = role_chooser()
as_of = as_of_picker()

# -------------------------------------------------
# Load Data
# -------------------------------------------------
with st.spinner("Loading ledger..."):
    data = load_portfolio(root, measure_set)

base_query = PortfolioQuery(roles=tuple(roles), as_of=as_of)
policy = policy_for(base_query, data.role_classes)
st.sidebar.caption(f"Access: {policy.describe()}")

if policy.is_empty():
    st.warning("Your roles do not grant access to any class of business.")
    st.stop()

options = filter_options(data.ledger, base_query, data.canonicalizer, data.role_classes)
filters = portfolio_filters_sidebar(options)
query = PortfolioQuery(roles=tuple(roles), filters=filters, as_of=as_of)

# -------------------------------------------------
# Headline KPIs
# -------------------------------------------------
kpis = kpi_summary(data.ledger, query, data.canonicalizer, data.role_classes)
kpi_row(kpi_items(kpis))

if kpis.number_of_accounts == 0:
    st.info("No records match the current roles and filters.")
    st.stop()

st.markdown("---")

# -------------------------------------------------
# By year / by country
# -------------------------------------------------
tab_year, tab_country, tab_entity, tab_health = st.tabs(
    ["By year", "By country", "Broker / Cedant", "Data health"]
)

with tab_year:
    yearly = yearly_overview(data.ledger, query, data.canonicalizer, data.role_classes)
    year_df = yearly.to_frame()
    if not year_df.empty:
        st.plotly_chart(plot_yearly_kpis(year_df), use_container_width=True)
    show_table(year_df, title="KPIs by underwriting year")
    if yearly.excluded_count:
        st.caption(f"{yearly.excluded_count} record(s) without a usable year are not shown.")

with tab_country:
    countries = country_overview(
        data.ledger, query, data.outcomes, data.canonicalizer, data.role_classes, data.renewal_cfg
    )
    country_df = countries.to_frame()
    if not country_df.empty:
        st.plotly_chart(plot_premium_by_country(country_df), use_container_width=True)
    show_table(country_df, title="KPIs and renewals by country")

with tab_entity:
    entity_type = st.radio("Entity", options=["broker", "cedant"], horizontal=True)
    names = options.get(entity_type, [])
    if not names:
        st.info(f"No {entity_type}s in the visible book.")
    else:
        entity = st.selectbox(entity_type.capitalize(), options=names)
        perf = entity_performance(
            data.ledger, entity_type, entity, query, data.canonicalizer, data.role_classes
        )
        kpi_row(kpi_items(perf.totals))
        st.caption(f"Years: {', '.join(str(y) for y in perf.years) or 'n/a'}")
        show_table(perf.rows, title=f"{entity} — policy × year")

with tab_health:
    show_data_health_panel(data.ledger, data.issues, outcome_count=len(data.outcomes))
