"""
Tests for ledger normalization and data-quality checks.
"""

import pandas as pd
import pytest

from utils.validators import (
    clean_numeric,
    join_coverage_warning,
    non_negative,
    non_null,
    normalize_ledger,
    summarize_issues,
    validate_ledger_tables,
)


class TestCleanNumeric:

    def test_text_amounts(self):
        out = clean_numeric(pd.Series(['"1,250.50"', " 300 ", "", None, "n/a"]))
        assert out.iloc[0] == 1250.5
        assert out.iloc[1] == 300.0
        assert out.iloc[2:].isna().all()

    def test_numeric_passthrough(self):
        assert clean_numeric(pd.Series([1, 2])).tolist() == [1.0, 2.0]


class TestNormalizeLedger:

    def test_trims_and_blanks(self):
        df = normalize_ledger(pd.DataFrame({
            " country_name ": ["  Kuwait ", "   ", None],
            "policy_id": [101.0, 102.0, None],
            "gross_premium": ["1,000", "", "5"],
        }))
        assert list(df.columns) == ["country_name", "policy_id", "gross_premium"]
        assert df["country_name"].tolist()[0] == "Kuwait"
        assert pd.isna(df["country_name"].iloc[1])
        assert df["policy_id"].tolist()[:2] == ["101", "102"]
        assert pd.isna(df["policy_id"].iloc[2])
        assert df["gross_premium"].iloc[0] == 1000.0
        assert pd.isna(df["gross_premium"].iloc[1])

    def test_none_frame(self):
        with pytest.raises(ValueError):
            normalize_ledger(None)

    def test_input_not_mutated(self):
        raw = pd.DataFrame({"country_name": [" Oman "]})
        normalize_ledger(raw)
        assert raw["country_name"].iloc[0] == " Oman "


class TestChecks:

    def test_non_null_threshold(self):
        df = pd.DataFrame({"x": [1, None, None, 4]})
        assert non_null(df, "t", "x", max_null_rate=0.5) == []
        issues = non_null(df, "t", "x", max_null_rate=0.25)
        assert issues[0].severity == "warning"
        assert "50%" in issues[0].message

    def test_non_negative(self):
        issues = non_negative(pd.DataFrame({"paid_claims": [10, -5, "x"]}), "ledger", ["paid_claims", "absent"])
        assert len(issues) == 1
        assert "1 negative" in issues[0].message

    def test_join_coverage(self):
        left = pd.DataFrame({"policy_id": ["1", "2", "9"]})
        right = pd.DataFrame({"policy_id": [1.0, 2.0]})
        issues = join_coverage_warning(left, right, "renewals", "policy_id", "policy_id", "renewals")
        assert len(issues) == 1
        assert "67%" in issues[0].message
        assert join_coverage_warning(left, right, "r", "policy_id", "policy_id", "r", min_match_rate=0.5) == []


class TestValidateLedgerTables:

    def test_missing_ledger(self):
        issues = validate_ledger_tables(None)
        assert summarize_issues(issues) == {"errors": 1, "warnings": 0, "total": 1}

    def test_sample_ledger(self, ledger):
        issues = validate_ledger_tables(ledger)
        assert summarize_issues(issues)["errors"] == 0
        # two of six records carry no underwriting year
        assert any("underwriting_year" in i.message for i in issues)

    def test_missing_columns_are_errors(self):
        issues = validate_ledger_tables(pd.DataFrame({"policy_id": ["1"]}))
        assert summarize_issues(issues)["errors"] == 2

    def test_renewal_feed_checks(self, ledger):
        renewals = pd.DataFrame({"policy_id": ["1", None, "77"], "policy_status": ["Renewed", "Renewed", "Lapsed"]})
        issues = [i for i in validate_ledger_tables(ledger, renewals) if i.table == "renewals"]
        severities = sorted(i.severity for i in issues)
        assert severities == ["error", "warning"]
