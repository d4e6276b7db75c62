"""
services/record_filter.py

Row restriction for analytics queries:
- role entitlement (RolePolicy) applied to class of business
- field filters from dashboard controls (year, country, broker, ...)

Rules:
- a filter value of None, "", "all" or an empty list is a no-op
- a list value is an OR-match; multiple fields are AND-ed
- text comparison is case-insensitive: equality, or the record value
  containing the filter value
- a zero-access policy always yields an empty result
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from models.policy import RecordsLike, as_frame
from models.role import RolePolicy
from services.canonicalizer import Canonicalizer, clean_key, contains_either, default_canonicalizer
from services.dimensions import month_keys, quarter_keys, year_keys


# filter name -> ledger column (text fields)
TEXT_FILTER_COLUMNS: Dict[str, str] = {
    "broker": "broker",
    "cedant": "cedant",
    "policy": "policy_name",
    "policy_id": "policy_id",
    "sub_class": "sub_class",
    "extension_type": "extension_type",
    "office": "office",
    "region": "region",
    "hub": "hub",
}

DATE_FILTERS = {"year": year_keys, "quarter": quarter_keys, "month": month_keys}

FILTER_FIELDS = sorted(
    list(TEXT_FILTER_COLUMNS) + list(DATE_FILTERS) + ["country", "class", "territory"]
)


# =====================================================
# Helpers
# =====================================================

def _is_all(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == "all"


def filter_values(value: Any) -> Optional[List[Any]]:
    """
    Normalise a filter value to a list, or None when it is a no-op.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [v for v in value if v is not None and str(v).strip() != ""]
        if not items or any(_is_all(v) for v in items):
            return None
        return items
    if str(value).strip() == "" or _is_all(value):
        return None
    return [value]


def _empty_like(df: pd.DataFrame) -> pd.DataFrame:
    return df.iloc[0:0].copy()


def _text_matches(record_value: Any, wanted: Iterable[Any], min_length: int) -> bool:
    rec = clean_key(record_value)
    if not rec:
        return False
    for w in wanted:
        target = clean_key(w)
        if not target:
            continue
        if rec == target:
            return True
        if len(target) >= min_length and target in rec:
            return True
    return False


def _class_matches(raw_class: Any, allowed_lower: Iterable[str], canon: Canonicalizer) -> bool:
    raw = clean_key(raw_class)
    if not raw:
        return False
    canonical = canon.class_of_business(raw_class).lower()
    min_len = canon.config.min_containment_length
    for a in allowed_lower:
        if canonical == a:
            return True
        if contains_either(canonical, a, min_len) or contains_either(raw, a, min_len):
            return True
    return False


# =====================================================
# Role policy
# =====================================================

def apply_role_policy(
    records: RecordsLike,
    policy: RolePolicy,
    canonicalizer: Optional[Canonicalizer] = None,
) -> pd.DataFrame:
    """Keep only the records the policy is entitled to see."""
    df = as_frame(records)
    if policy.unrestricted:
        return df
    if policy.is_empty() or df.empty:
        return _empty_like(df)

    canon = canonicalizer or default_canonicalizer()
    allowed = [c.lower() for c in policy.allowed_classes]
    mask = df["class_of_business"].map(lambda v: _class_matches(v, allowed, canon))
    return df[mask.astype(bool)]


def class_permitted(value: Any, policy: RolePolicy, canonicalizer: Optional[Canonicalizer] = None) -> bool:
    """True when an explicitly requested class filter is inside the policy."""
    if policy.unrestricted:
        return True
    if policy.is_empty():
        return False
    canon = canonicalizer or default_canonicalizer()
    allowed = [c.lower() for c in policy.allowed_classes]
    return _class_matches(value, allowed, canon)


# =====================================================
# Field filters
# =====================================================

def _field_mask(df: pd.DataFrame, field: str, wanted: List[Any], canon: Canonicalizer) -> pd.Series:
    min_len = canon.config.min_containment_length

    if field in DATE_FILTERS:
        keys = DATE_FILTERS[field](df, canon)
        targets = {str(w).strip().upper() for w in wanted}
        return keys.map(lambda k: k is not None and str(k).upper() in targets)

    if field == "country":
        targets = [canon.country(w).lower() for w in wanted]

        def match_country(raw):
            if not clean_key(raw):
                return False
            if canon.country(raw).lower() in targets:
                return True
            return _text_matches(raw, wanted, min_len)

        return df["country_name"].map(match_country)

    if field == "class":
        targets = [canon.class_of_business(w).lower() for w in wanted]
        return df["class_of_business"].map(lambda v: _class_matches(v, targets, canon))

    if field == "territory":
        rows = zip(df["territory"], df["country_name"])
        hits = [any(canon.matches_territory(t, w, c) for w in wanted) for t, c in rows]
        return pd.Series(hits, index=df.index)

    col = TEXT_FILTER_COLUMNS.get(field, field)
    if col not in df.columns:
        # unknown field: nothing can match it
        return pd.Series(False, index=df.index)
    return df[col].map(lambda v: _text_matches(v, wanted, min_len))


def apply_field_filters(
    records: RecordsLike,
    filters: Optional[Mapping[str, Any]],
    canonicalizer: Optional[Canonicalizer] = None,
) -> pd.DataFrame:
    """AND across fields, OR within a field's value list."""
    df = as_frame(records)
    if not filters or df.empty:
        return df

    canon = canonicalizer or default_canonicalizer()
    mask = pd.Series(True, index=df.index)
    for field, value in filters.items():
        wanted = filter_values(value)
        if wanted is None:
            continue
        mask &= _field_mask(df, field, wanted, canon).astype(bool)
    return df[mask]


# =====================================================
# Combined scope
# =====================================================

def scope_records(
    records: RecordsLike,
    policy: RolePolicy,
    filters: Optional[Mapping[str, Any]] = None,
    canonicalizer: Optional[Canonicalizer] = None,
) -> pd.DataFrame:
    """
    Role restriction followed by field filters.

    A requested class the policy does not cover is dropped from the class
    filter; if none of the requested classes is permitted the result is
    empty.
    """
    df = as_frame(records)
    if policy.is_empty():
        return _empty_like(df)

    canon = canonicalizer or default_canonicalizer()
    filters = dict(filters or {})

    requested = filter_values(filters.get("class"))
    if requested is not None:
        permitted = [c for c in requested if class_permitted(c, policy, canon)]
        if not permitted:
            return _empty_like(df)
        filters["class"] = permitted

    df = apply_role_policy(df, policy, canon)
    return apply_field_filters(df, filters, canon)
