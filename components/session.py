"""
components/session.py

Shared data loading for the Streamlit pages.
The ledger is read through one process-wide RecordCache, so every page sees
the same snapshot until the CSV changes on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from models.renewal import RenewalStatus
from services.canonicalizer import Canonicalizer
from services.ingestion import cached_ledger, cached_outcomes, column_map_from_mappings, rename_columns
from services.renewal_engine import RenewalConfig
from services.role_policy import role_classes_from_mappings
from utils.cache import RecordCache
from utils.loaders import (
    DataPaths,
    ledger_file,
    load_mappings,
    load_settings,
    measure_set_name,
    renewal_window_days,
    renewals_file,
)
from utils.validators import ValidationIssue, validate_ledger_tables


@dataclass
class PortfolioData:
    ledger: pd.DataFrame
    outcomes: Dict[str, RenewalStatus]
    canonicalizer: Canonicalizer
    role_classes: Dict[str, List[str]]
    renewal_cfg: RenewalConfig
    issues: List[ValidationIssue]
    measure_set: str


@st.cache_resource
def record_cache() -> RecordCache:
    return RecordCache()


def load_portfolio(root: str, measure_set: Optional[str] = None) -> PortfolioData:
    """
    Ledger + renewal feed + engine configuration for one repo root.
    Stops the page with a message when the ledger file is missing.
    """
    root_path = Path(root)
    paths = DataPaths(root_path)
    settings = load_settings(root_path)
    mappings = load_mappings(root_path)
    mappings_path = paths.config_dir / "mappings.yaml"

    canon = Canonicalizer.from_mappings(mappings)
    column_map = column_map_from_mappings(mappings)
    ms = measure_set or measure_set_name(settings)

    src = ledger_file(paths, settings)
    try:
        ledger = cached_ledger(record_cache(), src, column_map, ms, canon, mappings_path)
    except FileNotFoundError:
        st.error(f"Ledger not found at {src}. Run `python scripts/regenerate_raw_demo_data.py`.")
        st.stop()

    renewal_src = renewals_file(paths, settings)
    outcomes = cached_outcomes(record_cache(), renewal_src, column_map, mappings_path)
    renewal_frame = None
    if renewal_src.exists():
        renewal_frame = rename_columns(pd.read_csv(renewal_src, dtype=str), column_map)

    return PortfolioData(
        ledger=ledger,
        outcomes=outcomes,
        canonicalizer=canon,
        role_classes=role_classes_from_mappings(mappings),
        renewal_cfg=RenewalConfig(window_days=renewal_window_days(settings)),
        issues=validate_ledger_tables(ledger, renewal_frame),
        measure_set=ms,
    )
