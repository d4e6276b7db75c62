"""
components/filters.py

Reusable Streamlit filter widgets.
Keep these widgets thin and return values; no business logic here.
"""

from __future__ import annotations

import datetime as _dt
from typing import Dict, List

import streamlit as st

from services.role_policy import DEFAULT_ROLE_CLASSES, role_display_name


ROLE_CHOICES = ["admin", "super user"] + list(DEFAULT_ROLE_CLASSES)


def multiselect_with_all(label: str, options: list, default_all: bool = False, help: str | None = None):
    """Common pattern: pick a subset, or leave empty for All."""
    default = options if default_all else []
    return st.multiselect(label, options=options, default=default, help=help, placeholder="All")


def role_chooser() -> List[str]:
    """Demo stand-in for the signed-in user's roles."""
    st.sidebar.subheader("Signed in as")
    return st.sidebar.multiselect(
        "Roles",
        options=ROLE_CHOICES,
        default=["admin"],
        format_func=role_display_name,
        help="Role names decide which classes of business are visible.",
    )


def portfolio_filters_sidebar(options: Dict[str, list]) -> Dict[str, list]:
    """
    Sidebar filters built from services.pipeline.filter_options output.
    Returns {field: [values]}; empty lists are no-ops downstream.
    """
    st.sidebar.subheader("Filters")
    with st.sidebar:
        chosen = {
            "year": multiselect_with_all("Underwriting Year", options.get("year", [])),
            "class": multiselect_with_all("Class of Business", options.get("class", [])),
            "sub_class": multiselect_with_all("Sub Class", options.get("sub_class", [])),
            "extension_type": multiselect_with_all("Extension Type", options.get("extension_type", [])),
            "country": multiselect_with_all("Country", options.get("country", [])),
            "office": multiselect_with_all("Office", options.get("office", [])),
            "broker": multiselect_with_all("Broker", options.get("broker", [])),
            "cedant": multiselect_with_all("Cedant", options.get("cedant", [])),
        }
    return chosen


def as_of_picker() -> _dt.date:
    return st.sidebar.date_input("As of", value=_dt.date.today(), help="Renewal status is judged against this date.")
