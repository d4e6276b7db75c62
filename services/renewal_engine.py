"""
services/renewal_engine.py

Renewal lifecycle classification and rollups.

Per record, against an as-of date:
  - unknown            neither expiry nor renewal date parses
  - upcoming-renewal   chosen date (expiry, else renewal) within
                       [as_of, as_of + window_days], both ends inclusive
  - renewed / not-renewed
                       chosen date already past; taken from the renewal
                       outcome feed (keyed by policy id); dates alone never
                       decide these
  - unknown            expired with no outcome on file, or expiring after
                       the window

Rollups are keyed the same way as services.grouping, so a rollup computed
for "country" joins onto a country-grouped KPI result by canonical key.
"""

from __future__ import annotations

import datetime as _dt
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import pandas as pd

from models.policy import PolicyRecord, RecordsLike, as_frame
from models.renewal import RenewalRollup, RenewalStatus
from services.canonicalizer import Canonicalizer, default_canonicalizer
from services.dimensions import dimension_keys
from services.grouping import GroupedResult, join_key
from utils.dates import parse_date_value


# =====================================================
# Config
# =====================================================

@dataclass(frozen=True)
class RenewalConfig:
    window_days: int = 90


OutcomeFeed = Mapping[str, Any]

_NOT_RENEWED = re.compile(r"\b(not|non)\s*renew")
_RENEWED = re.compile(r"\brenewed\b")
_CLOSED = {"expired", "cancelled", "canceled", "lapsed", "declined", "terminated"}


# =====================================================
# Outcome feed
# =====================================================

def policy_key(value: Any) -> str:
    """Join key for policy ids: trimmed text, float artefacts removed."""
    if value is None or (isinstance(value, float) and value != value) or value is pd.NA:
        return ""
    text = str(value).strip()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text


def parse_outcome(value: Any) -> Optional[RenewalStatus]:
    """
    Renewed / not-renewed from a ledger status value, else None.
    Accepts RenewalStatus, booleans and free text ("Renewed", "Not Renewed",
    "Expired", ...).
    """
    if value is None:
        return None
    if isinstance(value, RenewalStatus):
        return value if value in (RenewalStatus.RENEWED, RenewalStatus.NOT_RENEWED) else None
    if isinstance(value, bool):
        return RenewalStatus.RENEWED if value else RenewalStatus.NOT_RENEWED
    if isinstance(value, float) and value != value:
        return None

    text = re.sub(r"[_\s\-]+", " ", str(value).strip().lower())
    if not text:
        return None
    if _NOT_RENEWED.search(text):
        return RenewalStatus.NOT_RENEWED
    if _RENEWED.search(text):
        return RenewalStatus.RENEWED
    if text in _CLOSED or text.startswith("not "):
        return RenewalStatus.NOT_RENEWED
    return None


def build_outcome_feed(
    ledger: pd.DataFrame,
    id_col: str = "policy_id",
    status_col: str = "policy_status",
) -> Dict[str, RenewalStatus]:
    """
    {policy_id: renewed | not-renewed} from a renewal ledger.
    Rows without an id or a recognisable status are skipped; for repeated
    ids the last row wins.
    """
    feed: Dict[str, RenewalStatus] = {}
    if ledger is None or ledger.empty:
        return feed
    if id_col not in ledger.columns or status_col not in ledger.columns:
        return feed

    for pid, status in zip(ledger[id_col], ledger[status_col]):
        key = policy_key(pid)
        outcome = parse_outcome(status)
        if key and outcome is not None:
            feed[key] = outcome
    return feed


# =====================================================
# Classification
# =====================================================

def _as_date(value: Any) -> Optional[_dt.date]:
    return parse_date_value(value)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, PolicyRecord):
        return getattr(record, name)
    if hasattr(record, "get"):
        return record.get(name)
    return getattr(record, name, None)


def chosen_date(record: Any) -> Optional[_dt.date]:
    """Expiry date when it parses, else renewal date."""
    return _as_date(_field(record, "expiry_date")) or _as_date(_field(record, "renewal_date"))


def classify(
    record: Any,
    as_of: Union[_dt.date, str],
    outcome: Any = None,
    cfg: RenewalConfig = RenewalConfig(),
) -> RenewalStatus:
    as_of_date = _as_date(as_of)
    when = chosen_date(record)
    if when is None or as_of_date is None:
        return RenewalStatus.UNKNOWN

    delta = (when - as_of_date).days
    if 0 <= delta <= cfg.window_days:
        return RenewalStatus.UPCOMING
    if delta > cfg.window_days:
        return RenewalStatus.UNKNOWN

    # expired: only the outcome feed decides
    flag = parse_outcome(outcome)
    return flag if flag is not None else RenewalStatus.UNKNOWN


def classify_records(
    records: RecordsLike,
    as_of: Union[_dt.date, str],
    outcomes: Optional[OutcomeFeed] = None,
    cfg: RenewalConfig = RenewalConfig(),
) -> pd.Series:
    """RenewalStatus per record, aligned to the records' index."""
    df = as_frame(records)
    outcomes = outcomes or {}
    statuses = []
    for row in df[["policy_id", "expiry_date", "renewal_date"]].to_dict(orient="records"):
        statuses.append(classify(row, as_of, outcomes.get(policy_key(row["policy_id"])), cfg))
    return pd.Series(statuses, index=df.index, dtype="object")


def rollup(
    records: RecordsLike,
    as_of: Union[_dt.date, str],
    outcomes: Optional[OutcomeFeed] = None,
    cfg: RenewalConfig = RenewalConfig(),
) -> RenewalRollup:
    df = as_frame(records)
    statuses = classify_records(df, as_of, outcomes, cfg)
    premiums = pd.to_numeric(df["gross_premium"], errors="coerce").fillna(0.0)
    return RenewalRollup.from_statuses(statuses.tolist(), premiums.tolist())


def rollup_by(
    records: RecordsLike,
    dimension,
    as_of: Union[_dt.date, str],
    outcomes: Optional[OutcomeFeed] = None,
    canonicalizer: Optional[Canonicalizer] = None,
    cfg: RenewalConfig = RenewalConfig(),
) -> Dict[str, RenewalRollup]:
    """
    Rollups per grouping key, keyed by the lower-cased canonical key
    (joined with "|" for multi-dimension keys, e.g. "kuwait|2023").
    """
    canon = canonicalizer or default_canonicalizer()
    df = as_frame(records)
    dims = list(dimension) if isinstance(dimension, (list, tuple)) else [dimension]
    if df.empty:
        return {}

    key_cols = [dimension_keys(df, d, canon) for d in dims]
    statuses = classify_records(df, as_of, outcomes, cfg)
    premiums = pd.to_numeric(df["gross_premium"], errors="coerce").fillna(0.0)

    buckets: Dict[str, list] = {}
    for pos, parts in enumerate(zip(*key_cols)):
        if any(p is None for p in parts):
            continue
        k = join_key(tuple(parts)) if len(parts) > 1 else join_key(parts[0])
        buckets.setdefault(k, []).append(pos)

    return {
        k: RenewalRollup.from_statuses(statuses.iloc[pos].tolist(), premiums.iloc[pos].tolist())
        for k, pos in buckets.items()
    }


def attach_renewals(
    grouped: GroupedResult,
    rollups: Mapping[str, RenewalRollup],
    _prefix: str = "",
) -> GroupedResult:
    """
    Join rollups onto a grouped result by canonical key. Nested groups look
    up "<parent>|<child>" keys. Groups without a rollup get an empty one.
    """
    for g in grouped.groups:
        k = f"{_prefix}|{g.join_key}" if _prefix else g.join_key
        g.renewal = rollups.get(k, RenewalRollup())
        if g.children is not None:
            attach_renewals(g.children, rollups, k)
    return grouped


# =====================================================
# Renewal view helpers
# =====================================================

def exclude_fronting(records: RecordsLike) -> pd.DataFrame:
    """Fronting arrangements are not part of the renewal book."""
    df = as_frame(records)
    names = df["policy_name"].fillna("").astype(str).str.lower()
    return df[~names.str.contains("fronting", regex=False)]


def direct_flags(records: RecordsLike) -> pd.Series:
    """True where broker and cedant are the same party (direct business)."""
    df = as_frame(records)
    broker = df["broker"].fillna("").astype(str).str.strip().str.lower()
    cedant = df["cedant"].fillna("").astype(str).str.strip().str.lower()
    return (broker != "") & (broker == cedant)
