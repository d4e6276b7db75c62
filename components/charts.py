"""
components/charts.py

Plotly charts for the portfolio dashboard:
- premium and ratios by underwriting year
- premium by country
- renewal status mix

Charts take the tables produced by services.pipeline; no KPI math here.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


STATUS_COLORS = {
    "upcoming-renewal": "#1f77b4",
    "renewed": "#2ca02c",
    "not-renewed": "#d62728",
    "unknown": "#9e9e9e",
}


# -------------------------------------------------
# Helper: Consistent Theme
# -------------------------------------------------

def _base_layout(fig, title: str, yaxis_title: str = None):
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=420,
        margin=dict(l=40, r=40, t=60, b=40),
        font=dict(size=13),
        title_font=dict(size=18),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    if yaxis_title:
        fig.update_yaxes(title=yaxis_title)
    fig.update_xaxes(title=None)
    return fig


# -------------------------------------------------
# Yearly KPIs
# -------------------------------------------------

def plot_yearly_kpis(df: pd.DataFrame):
    """
    Premium bars with loss / combined ratio lines on a second axis.
    Expects columns: year, premium, loss_ratio_pct, combined_ratio_pct
    """
    years = df["year"].astype(str)

    fig = go.Figure()
    fig.add_bar(x=years, y=df["premium"], name="Premium", marker_color="#1f77b4")
    fig.add_scatter(x=years, y=df["loss_ratio_pct"], name="Loss ratio %", yaxis="y2", mode="lines+markers")
    fig.add_scatter(x=years, y=df["combined_ratio_pct"], name="Combined ratio %", yaxis="y2", mode="lines+markers")

    fig.update_layout(yaxis2=dict(title="%", overlaying="y", side="right", showgrid=False))
    fig = _base_layout(fig, title="Premium and Ratios by Underwriting Year", yaxis_title="Premium")

    fig.update_traces(hovertemplate="<b>%{x}</b><br>%{y:,.1f}<extra></extra>")
    return fig


# -------------------------------------------------
# Country
# -------------------------------------------------

def plot_premium_by_country(df: pd.DataFrame, top_n: int = 15):
    """Horizontal bars of premium for the largest countries."""
    top = df.sort_values("premium", ascending=False).head(top_n).iloc[::-1]

    fig = px.bar(
        top,
        x="premium",
        y="country",
        orientation="h",
        text_auto=".2s",
        color="loss_ratio_pct",
        color_continuous_scale="RdYlGn_r",
        labels={"loss_ratio_pct": "Loss ratio %"},
    )
    fig = _base_layout(fig, title=f"Premium by Country (top {top_n})")
    fig.update_traces(hovertemplate="<b>%{y}</b><br>Premium: %{x:,.0f}<extra></extra>")
    return fig


# -------------------------------------------------
# Renewals
# -------------------------------------------------

def plot_renewal_mix(counts: dict):
    """Donut of record counts per renewal status."""
    labels = [k for k, v in counts.items() if v]
    values = [counts[k] for k in labels]

    fig = go.Figure(
        go.Pie(
            labels=labels,
            values=values,
            hole=0.55,
            marker=dict(colors=[STATUS_COLORS.get(k, "#cccccc") for k in labels]),
        )
    )
    fig = _base_layout(fig, title="Renewal Status")
    fig.update_traces(hovertemplate="%{label}: %{value} (%{percent})<extra></extra>")
    return fig


def plot_upcoming_by_month(df: pd.DataFrame):
    """
    Upcoming renewal premium by expiry month.
    Expects columns: month, premium
    """
    fig = px.bar(df, x="month", y="premium", text_auto=".2s")
    fig = _base_layout(fig, title="Upcoming Renewals by Month", yaxis_title="Premium")
    fig.update_traces(marker_color=STATUS_COLORS["upcoming-renewal"])
    return fig
