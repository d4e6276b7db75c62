# services/ingestion.py
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import pandas as pd

from models.policy import LEDGER_COLUMNS, MEASURE_COLUMNS
from models.renewal import RenewalStatus
from services.canonicalizer import Canonicalizer, default_canonicalizer
from services.renewal_engine import build_outcome_feed
from utils.cache import RecordCache, mtime_version
from utils.validators import clean_numeric, normalize_ledger


# -----------------------------
# Measure sets
# -----------------------------
@dataclass(frozen=True)
class MeasureSet:
    """
    Which source columns feed the canonical measures.
    Source names are header keys (see `header_key`).
    `incurred_claims=None` means incurred is always derived.
    """
    name: str
    gross_premium: str
    acquisition_cost: str
    paid_claims: str
    outstanding_claims: str
    incurred_claims: Optional[str]
    max_liability: str

    def sources(self) -> Dict[str, Optional[str]]:
        return {m: getattr(self, m) for m in MEASURE_COLUMNS}


MEASURE_SETS: Dict[str, MeasureSet] = {
    # home-currency (KD) columns
    "kd": MeasureSet(
        name="kd",
        gross_premium="grs_prem_kd",
        acquisition_cost="acq_cost_kd",
        paid_claims="paid_claims_kd",
        outstanding_claims="os_claim_kd",
        incurred_claims="inc_claim_kd",
        max_liability="maxliability_kd",
    ),
    # raw foreign-currency columns
    "fc": MeasureSet(
        name="fc",
        gross_premium="gross_uw_prem",
        acquisition_cost="gross_actual_acq",
        paid_claims="gross_paid_claims",
        outstanding_claims="gross_os_loss",
        incurred_claims=None,
        max_liability="maxliability_fc",
    ),
}


def get_measure_set(name: Union[str, MeasureSet, None]) -> MeasureSet:
    if isinstance(name, MeasureSet):
        return name
    key = str(name or "kd").strip().lower()
    if key not in MEASURE_SETS:
        raise ValueError(f"Unknown measure set '{name}'. Expected one of: {sorted(MEASURE_SETS)}")
    return MEASURE_SETS[key]


# -----------------------------
# Column map
# -----------------------------
# header key -> canonical ledger column
DEFAULT_COLUMN_MAP: Dict[str, str] = {
    "srl": "policy_id",
    "policy_id": "policy_id",
    "org_insured_trty_name": "policy_name",
    "insured": "policy_name",
    "policy_name": "policy_name",
    "uy": "underwriting_year",
    "underwriting_year": "underwriting_year",
    "com_date": "inception_date",
    "inception_date": "inception_date",
    "exp_date": "expiry_date",
    "expiry_date": "expiry_date",
    "renewal_date": "renewal_date",
    "class": "class_of_business",
    "uw_class": "class_of_business",
    "class_of_business": "class_of_business",
    "sub_class": "sub_class",
    "ext_type": "extension_type",
    "extension_type": "extension_type",
    "loc": "office",
    "office": "office",
    "brk_name": "broker",
    "broker": "broker",
    "ced_name": "cedant",
    "cedant": "cedant",
    "country": "country_name",
    "country_name": "country_name",
    "ced_territory": "territory",
    "territory": "territory",
    "bp_scope": "bp_scope",
    "region": "region",
    "hub": "hub",
    "policystatus": "policy_status",
    "policy_status": "policy_status",
}

_HEADER_JUNK = re.compile(r"[^a-z0-9]+")


def header_key(header) -> str:
    """'GRS_PREM (KD)' -> 'grs_prem_kd', 'Org.Insured/Trty Name' -> 'org_insured_trty_name'."""
    return _HEADER_JUNK.sub("_", str(header).strip().lower()).strip("_")


def column_map_from_mappings(mappings: Optional[dict]) -> Dict[str, str]:
    """Built-in column map extended by mappings.yaml `ledger_columns`."""
    cmap = dict(DEFAULT_COLUMN_MAP)
    for src, dst in ((mappings or {}).get("ledger_columns") or {}).items():
        cmap[header_key(src)] = str(dst)
    return cmap


def rename_columns(df: pd.DataFrame, column_map: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    """Source headers -> header keys -> canonical names. First source wins on clashes."""
    cmap = {header_key(k): v for k, v in (column_map or DEFAULT_COLUMN_MAP).items()}
    renamed = {}
    taken = set()
    for c in df.columns:
        key = header_key(c)
        target = cmap.get(key, key)
        if target in taken:
            target = key
        renamed[c] = target
        taken.add(target)
    return df.rename(columns=renamed)


def apply_measure_set(df: pd.DataFrame, measure_set: Union[str, MeasureSet, None] = "kd") -> pd.DataFrame:
    """
    Populate canonical measure columns from the measure set's sources.
    A canonical column already present is kept when its source is absent.
    """
    ms = get_measure_set(measure_set)
    df = df.copy()
    for measure, source in ms.sources().items():
        if source and source in df.columns:
            df[measure] = clean_numeric(df[source])
        elif measure in df.columns:
            df[measure] = clean_numeric(df[measure])
        else:
            df[measure] = float("nan")
    return df


def derive_region_hub(df: pd.DataFrame, canonicalizer: Optional[Canonicalizer] = None) -> pd.DataFrame:
    """Fill blank region/hub from bp_scope, else the canonical country."""
    canon = canonicalizer or default_canonicalizer()
    df = df.copy()
    scope = df["bp_scope"] if "bp_scope" in df.columns else pd.Series([None] * len(df), index=df.index)
    country = df["country_name"] if "country_name" in df.columns else pd.Series([None] * len(df), index=df.index)
    derived = [canon.region_and_hub(s, c) for s, c in zip(scope, country)]

    for pos, col in enumerate(["region", "hub"]):
        current = df[col] if col in df.columns else pd.Series([None] * len(df), index=df.index)
        filled = [
            cur if isinstance(cur, str) and cur.strip() else d[pos]
            for cur, d in zip(current, derived)
        ]
        df[col] = pd.Series(filled, index=df.index, dtype="object")
    return df


# -----------------------------
# Loaders
# -----------------------------
def load_ledger(
    path: Union[str, Path],
    column_map: Optional[Mapping[str, str]] = None,
    measure_set: Union[str, MeasureSet, None] = "kd",
    canonicalizer: Optional[Canonicalizer] = None,
) -> pd.DataFrame:
    """
    Read a ledger CSV into the canonical record frame the engine expects.
    Raises FileNotFoundError when the file is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ledger file not found: {path}")

    raw = pd.read_csv(path, dtype=str, keep_default_na=True)
    return ledger_from_frame(raw, column_map, measure_set, canonicalizer)


def ledger_from_frame(
    raw: pd.DataFrame,
    column_map: Optional[Mapping[str, str]] = None,
    measure_set: Union[str, MeasureSet, None] = "kd",
    canonicalizer: Optional[Canonicalizer] = None,
) -> pd.DataFrame:
    df = rename_columns(raw, column_map)
    df = apply_measure_set(df, measure_set)
    df = normalize_ledger(df, "ledger")
    df = derive_region_hub(df, canonicalizer)

    for c in LEDGER_COLUMNS:
        if c not in df.columns:
            df[c] = None
    return df.reset_index(drop=True)


def load_renewal_outcomes(
    source: Union[str, Path, pd.DataFrame, None],
    column_map: Optional[Mapping[str, str]] = None,
) -> Dict[str, RenewalStatus]:
    """
    {policy_id: renewed | not-renewed} from a renewal ledger file or frame.
    A missing file gives an empty feed (every record outside the window is
    then unknown).
    """
    if source is None:
        return {}
    if isinstance(source, pd.DataFrame):
        raw = source
    else:
        path = Path(source)
        if not path.exists():
            return {}
        raw = pd.read_csv(path, dtype=str)

    df = rename_columns(raw, column_map)
    return build_outcome_feed(df, id_col="policy_id", status_col="policy_status")


# -----------------------------
# Cached access
# -----------------------------
def _version(path: Path, mappings_path: Optional[Union[str, Path]]) -> tuple:
    # mappings.yaml drives the column map and alias tables
    mappings_version = mtime_version(Path(mappings_path)) if mappings_path else None
    return (mtime_version(path), mappings_version)


def cached_ledger(
    cache: RecordCache,
    path: Union[str, Path],
    column_map: Optional[Mapping[str, str]] = None,
    measure_set: Union[str, MeasureSet, None] = "kd",
    canonicalizer: Optional[Canonicalizer] = None,
    mappings_path: Optional[Union[str, Path]] = None,
) -> pd.DataFrame:
    """
    Ledger snapshot, reloaded when the measure set changes or when the
    ledger file or mappings file (if given) is modified.
    """
    ms = get_measure_set(measure_set)
    path = Path(path)
    return cache.get(
        ("ledger", str(path), ms.name),
        lambda: load_ledger(path, column_map, ms, canonicalizer),
        version=_version(path, mappings_path),
    )


def cached_outcomes(
    cache: RecordCache,
    path: Union[str, Path],
    column_map: Optional[Mapping[str, str]] = None,
    mappings_path: Optional[Union[str, Path]] = None,
) -> Dict[str, RenewalStatus]:
    path = Path(path)
    return cache.get(
        ("renewals", str(path)),
        lambda: load_renewal_outcomes(path, column_map),
        version=_version(path, mappings_path),
    )
