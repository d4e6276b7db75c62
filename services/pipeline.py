# services/pipeline.py
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

# Engine
from models.kpi import KPISet
from models.policy import RecordsLike, as_frame
from models.renewal import RenewalRollup
from models.role import RolePolicy
from services.canonicalizer import Canonicalizer, default_canonicalizer
from services.dimensions import year_keys
from services.grouping import GroupedResult, flatten, group_by
from services.kpi_engine import aggregate
from services.record_filter import apply_role_policy, filter_values
from services.record_filter import scope_records as _scope_records
from services.renewal_engine import (
    OutcomeFeed,
    RenewalConfig,
    attach_renewals,
    classify_records,
    direct_flags,
    exclude_fronting,
    rollup,
    rollup_by,
)
from services.role_policy import resolve_policy, role_classes_from_mappings

# Ingestion / Validation
from services.ingestion import column_map_from_mappings, load_ledger, load_renewal_outcomes, rename_columns
from utils.loaders import (
    DataPaths,
    default_root,
    ledger_file,
    load_mappings,
    load_settings,
    measure_set_name,
    renewal_window_days,
    renewals_file,
)
from utils.logging import log_error, log_info, log_warn
from utils.validators import summarize_issues, validate_ledger_tables


# ---------------------------------------------------
# Query / results
# ---------------------------------------------------

@dataclass(frozen=True)
class PortfolioQuery:
    """
    One analytics request: who is asking, which field filters, and the
    date renewal status is judged against (today when None).
    """
    roles: Tuple[str, ...] = ()
    filters: Mapping[str, Any] = field(default_factory=dict)
    as_of: Optional[_dt.date] = None

    def as_of_date(self) -> _dt.date:
        return self.as_of or _dt.date.today()


@dataclass
class EntityPerformance:
    entity_type: str
    entity: str
    rows: pd.DataFrame
    years: List[int]
    policy_names: List[str]
    totals: KPISet


@dataclass
class RenewalSummary:
    rollup: RenewalRollup
    loss_ratio_pct: float
    records: pd.DataFrame


ENTITY_TYPES = {"broker", "cedant"}

# option name -> ledger column
OPTION_COLUMNS: Dict[str, str] = {
    "sub_class": "sub_class",
    "extension_type": "extension_type",
    "office": "office",
    "broker": "broker",
    "cedant": "cedant",
}


# ---------------------------------------------------
# Helpers
# ---------------------------------------------------

def _canon(canonicalizer: Optional[Canonicalizer]) -> Canonicalizer:
    return canonicalizer or default_canonicalizer()


def policy_for(query: PortfolioQuery, role_classes: Optional[Dict[str, Sequence[str]]] = None) -> RolePolicy:
    return resolve_policy(query.roles, role_classes)


def _distinct(values) -> List[str]:
    out = set()
    for v in values:
        if v is None or (isinstance(v, float) and v != v) or v is pd.NA:
            continue
        text = " ".join(str(v).split())
        if text:
            out.add(text)
    return sorted(out, key=str.lower)


# ---------------------------------------------------
# Portfolio views
# ---------------------------------------------------

def scope_records(
    records: RecordsLike,
    query: PortfolioQuery,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
) -> pd.DataFrame:
    """Records the query's roles may see, narrowed by its filters."""
    return _scope_records(records, policy_for(query, role_classes), query.filters, _canon(canonicalizer))


def kpi_summary(
    records: RecordsLike,
    query: PortfolioQuery,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
) -> KPISet:
    return aggregate(scope_records(records, query, canonicalizer, role_classes))


def yearly_overview(
    records: RecordsLike,
    query: PortfolioQuery,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
) -> GroupedResult:
    canon = _canon(canonicalizer)
    return group_by(scope_records(records, query, canon, role_classes), "year", canon)


def country_overview(
    records: RecordsLike,
    query: PortfolioQuery,
    outcomes: Optional[OutcomeFeed] = None,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
    cfg: RenewalConfig = RenewalConfig(),
    by_year: bool = False,
) -> GroupedResult:
    """
    KPIs per canonical country (optionally nested by year) with renewal
    rollups joined on the same canonical key.
    """
    canon = _canon(canonicalizer)
    scoped = scope_records(records, query, canon, role_classes)
    dims = ["country", "year"] if by_year else "country"

    grouped = group_by(scoped, dims, canon)
    rollups = rollup_by(scoped, "country", query.as_of_date(), outcomes, canon, cfg)
    if by_year:
        rollups.update(rollup_by(scoped, ["country", "year"], query.as_of_date(), outcomes, canon, cfg))
    return attach_renewals(grouped, rollups)


def entity_performance(
    records: RecordsLike,
    entity_type: str,
    entity: str,
    query: PortfolioQuery,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
) -> EntityPerformance:
    """
    KPIs per policy x year for one broker or cedant, ordered by policy name
    then most recent year first.
    """
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"entity_type must be one of {sorted(ENTITY_TYPES)}, got {entity_type!r}")

    canon = _canon(canonicalizer)
    filters = dict(query.filters)
    filters[entity_type] = entity
    scoped = scope_records(records, PortfolioQuery(query.roles, filters, query.as_of), canon, role_classes)

    if scoped.empty:
        return EntityPerformance(entity_type, entity, pd.DataFrame(), [], [], KPISet())

    grouped = group_by(scoped, ["policy", "year"], canon)
    rows = flatten(grouped)
    if not rows.empty:
        rows = rows.assign(_name=rows["policy"].str.lower())
        rows = rows.sort_values(["_name", "year"], ascending=[True, False], kind="mergesort")
        rows = rows.drop(columns="_name").reset_index(drop=True)

    years = sorted({int(y) for y in year_keys(scoped) if y is not None}, reverse=True)
    names = _distinct(scoped["policy_name"])
    return EntityPerformance(entity_type, entity, rows, years, names, grouped.totals)


def renewal_summary(
    records: RecordsLike,
    query: PortfolioQuery,
    outcomes: Optional[OutcomeFeed] = None,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
    cfg: RenewalConfig = RenewalConfig(),
) -> RenewalSummary:
    """
    Renewal counts and premiums for the scoped book, fronting business
    excluded. Each returned record carries its status and a direct flag.
    """
    scoped = exclude_fronting(scope_records(records, query, canonicalizer, role_classes))
    statuses = classify_records(scoped, query.as_of_date(), outcomes, cfg)

    out = scoped.copy()
    out["renewal_status"] = [s.value for s in statuses]
    out["is_direct"] = direct_flags(scoped)

    return RenewalSummary(
        rollup=rollup(scoped, query.as_of_date(), outcomes, cfg),
        loss_ratio_pct=aggregate(scoped).loss_ratio_pct,
        records=out,
    )


def filter_options(
    records: RecordsLike,
    query: PortfolioQuery,
    canonicalizer: Optional[Canonicalizer] = None,
    role_classes: Optional[Dict[str, Sequence[str]]] = None,
) -> Dict[str, List[Any]]:
    """
    Distinct values per filterable field, limited to what the query's roles
    may see. Sub-class options narrow to the selected class, if any.
    """
    canon = _canon(canonicalizer)
    policy = policy_for(query, role_classes)
    keys = ["class", "country", "year"] + list(OPTION_COLUMNS)
    if policy.is_empty():
        return {k: [] for k in keys}

    df = apply_role_policy(as_frame(records), policy, canon)

    options: Dict[str, List[Any]] = {
        "class": _distinct(canon.class_of_business(v) for v in df["class_of_business"]),
        "country": _distinct(canon.country(v) for v in df["country_name"]),
        "year": sorted({int(y) for y in year_keys(df) if y is not None}, reverse=True),
    }

    selected_class = filter_values(query.filters.get("class"))
    sub_source = df
    if selected_class is not None:
        sub_source = _scope_records(df, policy, {"class": selected_class}, canon)

    for name, col in OPTION_COLUMNS.items():
        source = sub_source if name == "sub_class" else df
        options[name] = _distinct(source[col])
    return options


# ---------------------------------------------------
# Main Pipeline
# ---------------------------------------------------

def run_pipeline(
    root: Optional[Path] = None,
    roles: Sequence[str] = ("admin",),
    as_of: Optional[_dt.date] = None,
) -> Dict[str, Any]:
    """
    Load the ledger and renewal feed, validate them and print a portfolio
    overview. Returns the computed views for callers that want them.
    """
    root = Path(root) if root else default_root()
    paths = DataPaths(root=root).ensure()
    settings = load_settings(root)
    mappings = load_mappings(root)

    canon = Canonicalizer.from_mappings(mappings)
    role_classes = role_classes_from_mappings(mappings)
    column_map = column_map_from_mappings(mappings)
    cfg = RenewalConfig(window_days=renewal_window_days(settings))

    # -----------------------------------
    # Load
    # -----------------------------------

    src = ledger_file(paths, settings)
    print(log_info("Loading ledger", path=src, measure_set=measure_set_name(settings)))
    try:
        ledger = load_ledger(src, column_map, measure_set_name(settings), canon)
    except FileNotFoundError as e:
        print(log_error("Ledger missing; run scripts/regenerate_raw_demo_data.py", error=e))
        raise

    renewal_src = renewals_file(paths, settings)
    renewal_raw = pd.read_csv(renewal_src, dtype=str) if renewal_src.exists() else None
    outcomes = load_renewal_outcomes(renewal_raw, column_map)
    print(log_info("Loaded", records=len(ledger), outcomes=len(outcomes)))

    # -----------------------------------
    # Validate
    # -----------------------------------

    renewal_frame = None
    if renewal_raw is not None:
        renewal_frame = rename_columns(renewal_raw, column_map)

    issues = validate_ledger_tables(ledger, renewal_frame)
    summary = summarize_issues(issues)
    print(log_info("Validation summary", **summary))
    for issue in issues:
        emit = log_error if issue.severity == "error" else log_warn
        print(emit(issue.message, table=issue.table))

    # -----------------------------------
    # Views
    # -----------------------------------

    query = PortfolioQuery(roles=tuple(roles), filters={}, as_of=as_of)
    kpis = kpi_summary(ledger, query, canon, role_classes)
    yearly = yearly_overview(ledger, query, canon, role_classes)
    countries = country_overview(ledger, query, outcomes, canon, role_classes, cfg)
    renewals = renewal_summary(ledger, query, outcomes, canon, role_classes, cfg)

    print(log_info(
        "Portfolio",
        accounts=kpis.number_of_accounts,
        premium=round(kpis.premium, 2),
        loss_ratio_pct=round(kpis.loss_ratio_pct, 1),
        combined_ratio_pct=round(kpis.combined_ratio_pct, 1),
    ))
    for g in yearly:
        print(log_info("Year", year=g.key, premium=round(g.kpis.premium, 2), accounts=g.kpis.number_of_accounts))
    if yearly.excluded_count:
        print(log_warn("Records without a usable year", count=yearly.excluded_count))
    print(log_info(
        "Renewals",
        as_of=query.as_of_date(),
        upcoming=renewals.rollup.upcoming_count,
        renewed=renewals.rollup.renewed_count,
        not_renewed=renewals.rollup.not_renewed_count,
        unknown=renewals.rollup.unknown_count,
    ))

    return {
        "kpis": kpis,
        "yearly": yearly,
        "countries": countries,
        "renewals": renewals,
        "validation": summary,
    }


# ---------------------------------------------------
# Entrypoint
# ---------------------------------------------------

if __name__ == "__main__":
    run_pipeline()
