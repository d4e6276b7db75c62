"""
Tests for renewal classification and rollups.
"""

import datetime as dt

import pandas as pd
import pytest

from models.renewal import RenewalRollup, RenewalStatus
from services.grouping import group_by
from services.renewal_engine import (
    RenewalConfig,
    attach_renewals,
    build_outcome_feed,
    chosen_date,
    classify,
    classify_records,
    direct_flags,
    exclude_fronting,
    parse_outcome,
    policy_key,
    rollup,
    rollup_by,
)


AS_OF = dt.date(2025, 1, 1)


def record(expiry=None, renewal=None, pid="x"):
    return {"policy_id": pid, "expiry_date": expiry, "renewal_date": renewal}


class TestClassify:

    def test_window_boundary_inclusive(self):
        on_edge = record(expiry=AS_OF + dt.timedelta(days=90))
        assert classify(on_edge, AS_OF) == RenewalStatus.UPCOMING

    def test_one_day_past_window(self):
        past_edge = record(expiry=AS_OF + dt.timedelta(days=91))
        assert classify(past_edge, AS_OF) != RenewalStatus.UPCOMING
        assert classify(past_edge, AS_OF) == RenewalStatus.UNKNOWN

    def test_outcome_ignored_beyond_window(self):
        later = record(expiry="2026-06-30")
        assert classify(later, AS_OF, "Renewed") == RenewalStatus.UNKNOWN
        assert classify(later, AS_OF, RenewalStatus.NOT_RENEWED) == RenewalStatus.UNKNOWN

    def test_expiring_today_is_upcoming(self):
        assert classify(record(expiry=AS_OF), AS_OF) == RenewalStatus.UPCOMING

    def test_expired_uses_outcome(self):
        expired = record(expiry="15/12/2024")
        assert classify(expired, AS_OF, "Renewed") == RenewalStatus.RENEWED
        assert classify(expired, AS_OF, "Not Renewed") == RenewalStatus.NOT_RENEWED
        assert classify(expired, AS_OF) == RenewalStatus.UNKNOWN

    def test_window_beats_outcome(self):
        soon = record(expiry="01/02/2025")
        assert classify(soon, AS_OF, RenewalStatus.RENEWED) == RenewalStatus.UPCOMING

    def test_renewal_date_fallback(self):
        rec = record(expiry=None, renewal="2025-01-31")
        assert chosen_date(rec) == dt.date(2025, 1, 31)
        assert classify(rec, AS_OF) == RenewalStatus.UPCOMING

    def test_no_dates_is_unknown(self):
        assert classify(record(), AS_OF, "Renewed") == RenewalStatus.UNKNOWN
        assert classify(record(expiry="not a date"), AS_OF) == RenewalStatus.UNKNOWN

    def test_excel_serial_expiry(self):
        # 45688 == 2025-01-31
        assert classify(record(expiry="45688"), AS_OF) == RenewalStatus.UPCOMING

    def test_custom_window(self):
        rec = record(expiry=AS_OF + dt.timedelta(days=45))
        assert classify(rec, AS_OF, cfg=RenewalConfig(window_days=30)) == RenewalStatus.UNKNOWN
        assert classify(rec, AS_OF, cfg=RenewalConfig(window_days=60)) == RenewalStatus.UPCOMING

    def test_as_of_as_text(self):
        assert classify(record(expiry="2025-01-10"), "01/01/2025") == RenewalStatus.UPCOMING


class TestOutcomeFeed:

    @pytest.mark.parametrize("text,expected", [
        ("Renewed", RenewalStatus.RENEWED),
        ("RENEWED", RenewalStatus.RENEWED),
        ("Not Renewed", RenewalStatus.NOT_RENEWED),
        ("Non-Renewed", RenewalStatus.NOT_RENEWED),
        ("not_renewed", RenewalStatus.NOT_RENEWED),
        ("Expired", RenewalStatus.NOT_RENEWED),
        ("Cancelled", RenewalStatus.NOT_RENEWED),
        (True, RenewalStatus.RENEWED),
        (False, RenewalStatus.NOT_RENEWED),
        (RenewalStatus.NOT_RENEWED, RenewalStatus.NOT_RENEWED),
    ])
    def test_parse_outcome(self, text, expected):
        assert parse_outcome(text) == expected

    @pytest.mark.parametrize("text", [None, "", "Pending", float("nan"), RenewalStatus.UPCOMING])
    def test_unrecognised_outcome(self, text):
        assert parse_outcome(text) is None

    def test_policy_key(self):
        assert policy_key(101.0) == "101"
        assert policy_key(" A-7 ") == "A-7"
        assert policy_key(None) == ""

    def test_build_feed_last_row_wins(self):
        feed = build_outcome_feed(pd.DataFrame({
            "policy_id": ["1", "2", "1", None, "3"],
            "policy_status": ["Renewed", "Expired", "Not Renewed", "Renewed", "Pending"],
        }))
        assert feed == {"1": RenewalStatus.NOT_RENEWED, "2": RenewalStatus.NOT_RENEWED}

    def test_build_feed_missing_columns(self):
        assert build_outcome_feed(pd.DataFrame({"policy_id": ["1"]})) == {}
        assert build_outcome_feed(None) == {}


class TestRollups:

    def test_classify_records(self, ledger, as_of, outcomes):
        statuses = classify_records(ledger, as_of, outcomes)
        assert [s.value for s in statuses] == [
            "renewed", "not-renewed", "upcoming-renewal", "upcoming-renewal", "unknown", "unknown",
        ]

    def test_datetime_column_with_missing_dates(self, as_of):
        df = pd.DataFrame({
            "policy_id": ["a", "b", "c"],
            "expiry_date": pd.to_datetime(["2025-02-01", None, "2024-06-30"]),
            "renewal_date": pd.to_datetime([None, None, None]),
        })
        statuses = classify_records(df, as_of, {"c": RenewalStatus.RENEWED})
        assert statuses.tolist() == [RenewalStatus.UPCOMING, RenewalStatus.UNKNOWN, RenewalStatus.RENEWED]

    def test_rollup(self, ledger, as_of, outcomes):
        r = rollup(ledger, as_of, outcomes)
        assert r.total == 6
        assert r.upcoming_count == 2
        assert r.renewed_count == 1
        assert r.not_renewed_count == 1
        assert r.unknown_count == 2
        assert r.upcoming_premium == 1300.0
        assert r.upcoming_pct == pytest.approx(100 * 2 / 6)

    def test_rollup_of_nothing(self, as_of):
        assert rollup([], as_of) == RenewalRollup()

    def test_rollup_by_country_keys(self, ledger, canon, as_of, outcomes):
        rollups = rollup_by(ledger, "country", as_of, outcomes, canon)
        assert set(rollups) == {"egypt", "kuwait", "saudi arabia", "united arab emirates"}
        assert rollups["kuwait"].renewed_count == 1
        assert rollups["kuwait"].not_renewed_count == 1
        assert rollups["united arab emirates"].upcoming_count == 2

    def test_rollup_by_nested_keys(self, ledger, canon, as_of, outcomes):
        rollups = rollup_by(ledger, ["country", "year"], as_of, outcomes, canon)
        assert rollups["kuwait|2023"].renewed_count == 1
        assert "egypt|unknown" not in rollups

    def test_attach_to_grouped_result(self, ledger, canon, as_of, outcomes):
        grouped = group_by(ledger, "country", canon)
        attach_renewals(grouped, rollup_by(ledger, "country", as_of, outcomes, canon))
        assert grouped.get("United Arab Emirates").renewal.upcoming_count == 2
        assert grouped.get("Egypt").renewal.unknown_count == 1
        assert "renewal_upcoming_count" in grouped.to_frame().columns

    def test_attach_missing_key_gives_empty_rollup(self, ledger, canon):
        grouped = attach_renewals(group_by(ledger, "country", canon), {})
        assert all(g.renewal == RenewalRollup() for g in grouped)


class TestRenewalViewHelpers:

    def test_exclude_fronting(self, ledger):
        out = exclude_fronting(ledger)
        assert "5" not in out["policy_id"].tolist()
        assert len(out) == len(ledger) - 1

    def test_direct_flags(self, ledger):
        flags = direct_flags(ledger)
        assert flags.tolist() == [False, False, False, False, True, False]
