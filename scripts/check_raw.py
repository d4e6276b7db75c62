# scripts/check_raw.py
from __future__ import annotations

from pathlib import Path
import os

from services.canonicalizer import Canonicalizer
from services.ingestion import column_map_from_mappings, load_ledger, rename_columns
from utils.loaders import DataPaths, ledger_file, load_mappings, load_settings, measure_set_name, renewals_file
from utils.logging import log_error, log_info, log_warn
from utils.validators import summarize_issues, validate_ledger_tables

import pandas as pd


def main() -> None:
    """
    Loads the raw ledger + renewal feed, validates them and prints issues.
    """

    # Project root (repo root)
    root = Path(__file__).resolve().parents[1]

    # Allow override (optional)
    demo_root = Path(os.getenv("DEMO_ROOT", str(root)))

    paths = DataPaths(root=demo_root).ensure()
    settings = load_settings(demo_root)
    mappings = load_mappings(demo_root)
    column_map = column_map_from_mappings(mappings)

    src = ledger_file(paths, settings)
    print(log_info("Loading ledger", path=src))
    ledger = load_ledger(src, column_map, measure_set_name(settings), Canonicalizer.from_mappings(mappings))

    renewal_src = renewals_file(paths, settings)
    renewals = None
    if renewal_src.exists():
        renewals = rename_columns(pd.read_csv(renewal_src, dtype=str), column_map)
    else:
        print(log_warn("No renewal feed", path=renewal_src))

    issues = validate_ledger_tables(ledger, renewals)
    summary = summarize_issues(issues)

    if summary["total"] == 0:
        print(log_info("Raw validation: no issues", records=len(ledger)))
        return

    for issue in issues:
        emit = log_error if issue.severity == "error" else log_warn
        print(emit(issue.message, table=issue.table))

    print(log_info("Summary", **summary))


if __name__ == "__main__":
    main()
