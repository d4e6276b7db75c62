"""
Shared fixtures: a small ledger that covers spelling variants, federated
territories, missing years and a fronting arrangement.
"""

import datetime as dt

import pandas as pd
import pytest

from models.renewal import RenewalStatus
from services.canonicalizer import Canonicalizer


LEDGER_ROWS = [
    dict(
        policy_id="1", policy_name="GIG Property Treaty", underwriting_year="2023",
        inception_date="01/01/2023", expiry_date="31/12/2023",
        class_of_business="Fire", sub_class="Property", extension_type="TTY", office="Kuwait",
        broker="Aon", cedant="Gulf Insurance Group", country_name="Kuwait", territory="Kuwait",
        gross_premium=1000.0, acquisition_cost=100.0, paid_claims=500.0, outstanding_claims=300.0,
        incurred_claims=None, max_liability=10000.0,
    ),
    dict(
        policy_id="2", policy_name="GIG Property Treaty", underwriting_year="2024",
        inception_date="01/01/2024", expiry_date="31/12/2024",
        class_of_business="FI", sub_class="Property", extension_type="TTY", office="Kuwait",
        broker="Aon", cedant="Gulf Insurance Group", country_name="KUWAIT ", territory=None,
        gross_premium=2000.0, acquisition_cost=200.0, paid_claims=0.0, outstanding_claims=0.0,
        incurred_claims=400.0, max_liability=20000.0,
    ),
    dict(
        policy_id="3", policy_name="Gulf Marine Liability", underwriting_year="2024",
        inception_date="15/02/2024", expiry_date="14/02/2025",
        class_of_business="Marine", sub_class="Marine Liability", extension_type="FAC", office="Dubai",
        broker="Marsh", cedant="Oman Insurance", country_name="UAE", territory="Ras Al Kheimah, UAE",
        gross_premium=500.0, acquisition_cost=50.0, paid_claims=100.0, outstanding_claims=0.0,
        incurred_claims=None, max_liability=5000.0,
    ),
    dict(
        policy_id="4", policy_name="Dubai Cargo Open Cover", underwriting_year="2024",
        inception_date="01/03/2024", expiry_date="28/02/2025",
        class_of_business="Cargo", sub_class="Cargo", extension_type="FAC", office="Dubai",
        broker="Marsh", cedant="Oman Insurance", country_name="United Arab Emirates", territory="Dubai",
        gross_premium=800.0, acquisition_cost=80.0, paid_claims=0.0, outstanding_claims=200.0,
        incurred_claims=None, max_liability=8000.0,
    ),
    dict(
        policy_id="5", policy_name="Tawuniya Motor (Fronting)", underwriting_year=None,
        inception_date="15/03/2021", expiry_date="14/03/2022",
        class_of_business="Casualty", sub_class="Motor", extension_type="FAC", office="Kuwait",
        broker="Tawuniya", cedant="Tawuniya", country_name="KSA", territory="Riyadh",
        gross_premium=300.0, acquisition_cost=30.0, paid_claims=60.0, outstanding_claims=0.0,
        incurred_claims=None, max_liability=3000.0,
    ),
    dict(
        policy_id="6", policy_name="Misr CAR", underwriting_year=None,
        inception_date=None, expiry_date=None,
        class_of_business="Engineering", sub_class="CAR", extension_type="FAC", office="Cairo",
        broker="WTW", cedant="Misr Insurance", country_name="Egypt", territory="Egypt",
        gross_premium=0.0, acquisition_cost=0.0, paid_claims=0.0, outstanding_claims=0.0,
        incurred_claims=None, max_liability=0.0,
    ),
]


@pytest.fixture
def ledger() -> pd.DataFrame:
    return pd.DataFrame([dict(r) for r in LEDGER_ROWS])


@pytest.fixture
def canon() -> Canonicalizer:
    return Canonicalizer()


@pytest.fixture
def as_of() -> dt.date:
    return dt.date(2025, 1, 1)


@pytest.fixture
def outcomes() -> dict:
    return {"1": RenewalStatus.RENEWED, "2": RenewalStatus.NOT_RENEWED}
