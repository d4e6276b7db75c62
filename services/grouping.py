"""
services/grouping.py

Partition a record collection by one or more dimensions and aggregate each
partition into a KPISet.

Output contract:
- groups ordered by the dimension's natural order (years ascending, text
  alphabetically, case-insensitive)
- each group's records ordered by descending premium
- records without a valid key (e.g. no usable year) are left out of the
  groups and counted in `excluded_count`
- the totals row sums the groups' raw components and recomputes ratios
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd

from models.kpi import KPISet
from models.policy import RecordsLike, as_frame
from models.renewal import RenewalRollup
from services.canonicalizer import Canonicalizer, default_canonicalizer
from services.dimensions import NUMERIC_DIMENSIONS, dimension_keys
from services.kpi_engine import aggregate, premium_order, totals


# =====================================================
# Types
# =====================================================

@dataclass
class GroupResult:
    key: Any
    kpis: KPISet
    records: pd.DataFrame
    display_names: List[str] = field(default_factory=list)
    renewal: Optional[RenewalRollup] = None
    children: Optional["GroupedResult"] = None

    @property
    def join_key(self) -> str:
        return join_key(self.key)


@dataclass
class GroupedResult:
    dimension: str
    groups: List[GroupResult]
    totals: KPISet
    excluded_count: int = 0

    def __iter__(self) -> Iterator[GroupResult]:
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def keys(self) -> List[Any]:
        return [g.key for g in self.groups]

    def get(self, key: Any) -> Optional[GroupResult]:
        for g in self.groups:
            if g.key == key:
                return g
        return None

    def to_frame(self) -> pd.DataFrame:
        """One row per group: key, KPIs and (when attached) renewal rollup."""
        rows = []
        for g in self.groups:
            row: Dict[str, Any] = {self.dimension: g.key}
            row.update(g.kpis.to_dict())
            if g.renewal is not None:
                row.update({f"renewal_{k}": v for k, v in g.renewal.to_dict().items()})
            rows.append(row)
        return pd.DataFrame(rows)


# =====================================================
# Helpers
# =====================================================

def join_key(key: Any) -> str:
    """Case-insensitive key used to join rollups computed elsewhere."""
    if isinstance(key, tuple):
        return "|".join(join_key(k) for k in key)
    return str(key).strip().lower()


def _sort_key(key: Any):
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        return (0, float(key), "")
    text = str(key)
    return (1, 0.0, text.lower(), text)


def _dimension_name(dimension) -> str:
    if isinstance(dimension, str):
        return dimension
    return getattr(dimension, "__name__", "custom")


def _display_names(members: pd.DataFrame, dimension) -> List[str]:
    """Original (pre-canonicalization) texts behind a canonical group key."""
    source = {"country": "country_name", "class": "class_of_business"}.get(dimension)
    if source is None or source not in members.columns:
        return []
    values = members[source].dropna().astype(str).str.strip()
    return sorted(set(v for v in values if v))


# =====================================================
# Grouping
# =====================================================

def group_by(
    records: RecordsLike,
    dimension: Union[str, Sequence, Any],
    canonicalizer: Optional[Canonicalizer] = None,
) -> GroupedResult:
    """
    Group records by `dimension`.

    `dimension` is a dimension name ("year", "country", "broker", ...), a
    callable (records, canonicalizer) -> Series, or a list of those for
    nested grouping, e.g. ["country", "year"].
    """
    canon = canonicalizer or default_canonicalizer()

    if isinstance(dimension, (list, tuple)):
        if not dimension:
            raise ValueError("group_by needs at least one dimension")
        head, rest = dimension[0], list(dimension[1:])
    else:
        head, rest = dimension, []

    df = as_frame(records)
    keys = dimension_keys(df, head, canon)

    buckets: Dict[Any, List[int]] = {}
    excluded = 0
    for pos, k in enumerate(keys):
        if k is None or (isinstance(k, float) and k != k):
            excluded += 1
            continue
        buckets.setdefault(k, []).append(pos)

    ordered = sorted(buckets, key=_sort_key)
    if head in NUMERIC_DIMENSIONS:
        ordered = sorted(buckets, key=lambda k: (int(k),))

    groups: List[GroupResult] = []
    for k in ordered:
        members = df.iloc[buckets[k]]
        groups.append(
            GroupResult(
                key=k,
                kpis=aggregate(members),
                records=premium_order(members),
                display_names=_display_names(members, head),
                children=group_by(members, rest, canon) if rest else None,
            )
        )

    return GroupedResult(
        dimension=_dimension_name(head),
        groups=groups,
        totals=totals(g.kpis for g in groups),
        excluded_count=excluded,
    )


def flatten(grouped: GroupedResult) -> pd.DataFrame:
    """
    Nested result to a flat table, one row per leaf group, with a column per
    dimension level.
    """
    rows: List[Dict[str, Any]] = []

    def walk(node: GroupedResult, prefix: Dict[str, Any]) -> None:
        for g in node.groups:
            here = dict(prefix)
            here[node.dimension] = g.key
            if g.children is not None:
                walk(g.children, here)
                continue
            row = dict(here)
            row.update(g.kpis.to_dict())
            if g.renewal is not None:
                row.update({f"renewal_{k}": v for k, v in g.renewal.to_dict().items()})
            rows.append(row)

    walk(grouped, {})
    return pd.DataFrame(rows)
