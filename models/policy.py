from dataclasses import dataclass, asdict
from typing import Iterable, Optional, Union

import pandas as pd


MEASURE_COLUMNS = [
    "gross_premium",
    "acquisition_cost",
    "paid_claims",
    "outstanding_claims",
    "incurred_claims",
    "max_liability",
]

TEXT_COLUMNS = [
    "policy_id",
    "policy_name",
    "underwriting_year",
    "inception_date",
    "expiry_date",
    "renewal_date",
    "class_of_business",
    "sub_class",
    "extension_type",
    "office",
    "broker",
    "cedant",
    "country_name",
    "territory",
    "region",
    "hub",
]

LEDGER_COLUMNS = TEXT_COLUMNS + MEASURE_COLUMNS


@dataclass(frozen=True)
class PolicyRecord:
    """
    Represents one reinsurance ledger row (policy or treaty).
    """

    policy_name: str = ""
    policy_id: Optional[str] = None

    underwriting_year: Optional[str] = None
    inception_date: Optional[str] = None
    expiry_date: Optional[str] = None
    renewal_date: Optional[str] = None

    class_of_business: Optional[str] = None
    sub_class: Optional[str] = None
    extension_type: Optional[str] = None    # FAC / TTY / XOL
    office: Optional[str] = None

    broker: Optional[str] = None
    cedant: Optional[str] = None

    country_name: Optional[str] = None      # raw, pre-normalization
    territory: Optional[str] = None         # raw, pre-normalization
    region: Optional[str] = None
    hub: Optional[str] = None

    gross_premium: Optional[float] = None
    acquisition_cost: Optional[float] = None
    paid_claims: Optional[float] = None
    outstanding_claims: Optional[float] = None
    incurred_claims: Optional[float] = None  # None -> paid + outstanding
    max_liability: Optional[float] = None


RecordsLike = Union[pd.DataFrame, Iterable[PolicyRecord], Iterable[dict]]


def records_to_frame(records: Iterable[PolicyRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def as_frame(records: RecordsLike) -> pd.DataFrame:
    """
    Accept a DataFrame, PolicyRecords or plain dicts and return a DataFrame
    carrying at least the standard ledger columns. Never mutates the input.
    """
    if records is None:
        df = pd.DataFrame(columns=LEDGER_COLUMNS)
    elif isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        items = list(records)
        if items and isinstance(items[0], PolicyRecord):
            df = records_to_frame(items)
        else:
            df = pd.DataFrame(items)

    for c in LEDGER_COLUMNS:
        if c not in df.columns:
            df[c] = None
    return df
