# app.py
from __future__ import annotations

import os
from pathlib import Path
import streamlit as st

from utils.loaders import load_settings


# -------------------------------------------------
# App Configuration
# -------------------------------------------------
st.set_page_config(
    page_title="Re Portfolio KPIs",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

settings = load_settings()
app_settings = settings.get("app") or {}
data_settings = settings.get("data") or {}

# Demo root precedence:
# 1) env var DEMO_ROOT
# 2) repo folder containing app.py
default_root = str(Path(__file__).resolve().parent)
demo_root = os.getenv("DEMO_ROOT") or default_root

mode = app_settings.get("mode", "demo")
version = app_settings.get("version", "portfolio-kpi-v1")
window_days = (settings.get("renewal") or {}).get("window_days", 90)


# -------------------------------------------------
# Small UI helper
# -------------------------------------------------
def _pill(label: str, value: str):
    st.markdown(
        f"""
        <div style="
            display:inline-block;
            padding:6px 10px;
            margin:4px 6px 4px 0;
            border-radius:999px;
            border:1px solid rgba(49,51,63,0.18);
            background:rgba(49,51,63,0.04);
            font-size:13px;">
            <b>{label}:</b> {value}
        </div>
        """,
        unsafe_allow_html=True,
    )


# -------------------------------------------------
# Sidebar
# -------------------------------------------------
st.sidebar.title("Reinsurance Portfolio Analytics")
st.sidebar.caption("Role-aware KPIs and renewals — Demo Environment")
st.sidebar.markdown("---")

st.sidebar.subheader("Pages")
st.sidebar.markdown(
    """
1) **Portfolio KPIs** — premium, claims and ratios by year, country, broker
2) **Renewals** — upcoming, renewed and lapsed business
"""
)

st.sidebar.markdown("---")
st.sidebar.subheader("Environment")
st.sidebar.info(
    f"""
**Mode:** {mode}
**Version:** {version}
**Data:** synthetic / illustrative
"""
)


# -------------------------------------------------
# Landing Page
# -------------------------------------------------
st.title("Reinsurance Portfolio KPIs")
st.caption("Demonstration environment — synthetic data (illustrative only).")

with st.expander("How the numbers are built", expanded=True):
    st.markdown(
        f"""
### Visibility
Every view is scoped by the signed-in roles. **Admin** and **Super User** see the whole book;
business roles (Fire, Energy, Cargo, Hull, Marine, Casualty, Engineering, Life) see their
classes of business only. No recognised role means no data.

### KPIs
- **Loss ratio** = incurred claims ÷ premium (incurred falls back to paid + outstanding)
- **Expense ratio** = acquisition cost ÷ premium
- **Combined ratio** = loss ratio + expense ratio
- Ratios are 0 when premium is 0

### Names
Country, state and class spellings are canonicalised before grouping, so
"Ras Al Kheimah, UAE" and "RAK" land in the same bucket.

### Renewals
A policy expiring within **{window_days} days** of the as-of date is an upcoming renewal.
Renewed / not-renewed comes from the renewal outcome feed; anything else is unknown.
"""
    )

st.markdown("---")

st.subheader("Configuration in use")
_pill("Demo root", demo_root)
_pill("Ledger", str(data_settings.get("ledger_file", "ledger.csv")))
_pill("Renewal feed", str(data_settings.get("renewals_file", "renewals.csv")))
_pill("Currency basis", str(data_settings.get("measure_set", "kd")).upper())
_pill("Renewal window", f"{window_days} days")

st.markdown("---")
st.caption("© Reinsurance Analytics | Demonstration Platform")
