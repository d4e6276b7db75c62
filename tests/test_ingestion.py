"""
Tests for ledger / renewal-feed loading.
"""

import os

import pandas as pd
import pytest

from models.renewal import RenewalStatus
from services.ingestion import (
    MEASURE_SETS,
    apply_measure_set,
    cached_ledger,
    cached_outcomes,
    column_map_from_mappings,
    get_measure_set,
    header_key,
    load_ledger,
    load_renewal_outcomes,
)
from services.kpi_engine import aggregate
from utils.cache import RecordCache


RAW_CSV = (
    'Srl,Org.Insured/Trty Name,UY,Com Date,Exp Date,UW_CLASS,Country,Ced Territory,Bp Scope,'
    'Brk Name,Ced Name,GRS_PREM (KD),ACQ_COST (KD),PAID_CLAIMS (KD),OS_CLAIM (KD),INC_CLAIM (KD),'
    'MaxLiability (KD),Gross UW Prem,Gross Actual Acq,Gross Paid Claims,Gross OS Loss,MaxLiability (FC)\n'
    '101,GIG Property, 2023 ,01/01/2023,31/12/2023,FI,Kuwait,Kuwait,1- GCC,'
    'Aon,GIG,"1,000.00",100,500,300,,"10,000","3,250",325,1625,975,32500\n'
    '102,Oman Marine,2024,01/03/2024,28/02/2025,Marine,Egypt,Cairo,,'
    'Marsh,Oman Ins,"2,000.50",200,0,0,400,5000,6500,650,0,0,16250\n'
)


@pytest.fixture
def ledger_csv(tmp_path):
    path = tmp_path / "ledger.csv"
    path.write_text(RAW_CSV, encoding="utf-8")
    return path


class TestHeaders:

    @pytest.mark.parametrize("raw,expected", [
        ("GRS_PREM (KD)", "grs_prem_kd"),
        ("Org.Insured/Trty Name", "org_insured_trty_name"),
        ("  Com Date ", "com_date"),
        ("MaxLiability (FC)", "maxliability_fc"),
    ])
    def test_header_key(self, raw, expected):
        assert header_key(raw) == expected

    def test_column_map_from_mappings(self):
        cmap = column_map_from_mappings({"ledger_columns": {"Insured Name": "policy_name"}})
        assert cmap["insured_name"] == "policy_name"
        assert cmap["srl"] == "policy_id"


class TestMeasureSets:

    def test_builtins(self):
        assert set(MEASURE_SETS) == {"kd", "fc"}
        assert get_measure_set("FC").incurred_claims is None
        assert get_measure_set(None).name == "kd"

    def test_unknown_measure_set(self):
        with pytest.raises(ValueError):
            get_measure_set("usd")

    def test_canonical_columns_kept_when_source_absent(self):
        df = apply_measure_set(pd.DataFrame({"gross_premium": ["1,500"]}), "kd")
        assert df["gross_premium"].tolist() == [1500.0]
        assert df["paid_claims"].isna().all()


class TestLoadLedger:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_ledger(tmp_path / "nope.csv")

    def test_columns_and_numbers(self, ledger_csv):
        df = load_ledger(ledger_csv)
        assert df["policy_id"].tolist() == ["101", "102"]
        assert df["policy_name"].tolist() == ["GIG Property", "Oman Marine"]
        assert df["underwriting_year"].tolist() == ["2023", "2024"]
        assert df["gross_premium"].tolist() == [1000.0, 2000.5]
        assert df["max_liability"].tolist() == [10000.0, 5000.0]

    def test_blank_incurred_is_derived(self, ledger_csv):
        df = load_ledger(ledger_csv)
        assert pd.isna(df.loc[0, "incurred_claims"])
        assert aggregate(df).incurred_claims == 800.0 + 400.0

    def test_fc_measure_set(self, ledger_csv):
        df = load_ledger(ledger_csv, measure_set="fc")
        assert df["gross_premium"].tolist() == [3250.0, 6500.0]
        # fc has no incurred column: always paid + outstanding
        assert aggregate(df).incurred_claims == 1625 + 975 + 0 + 0

    def test_region_and_hub(self, ledger_csv):
        df = load_ledger(ledger_csv)
        assert df["region"].tolist() == ["GCC", "North Africa"]
        assert df["hub"].tolist() == ["GCC", "North Africa"]


class TestRenewalOutcomes:

    def test_from_frame(self):
        feed = load_renewal_outcomes(pd.DataFrame({"Srl": [101, 102], "PolicyStatus": ["Renewed", "Lapsed"]}))
        assert feed == {"101": RenewalStatus.RENEWED, "102": RenewalStatus.NOT_RENEWED}

    def test_from_file(self, tmp_path):
        path = tmp_path / "renewals.csv"
        path.write_text("Srl,PolicyStatus\n7,Not Renewed\n8,\n", encoding="utf-8")
        assert load_renewal_outcomes(path) == {"7": RenewalStatus.NOT_RENEWED}

    def test_missing_source(self, tmp_path):
        assert load_renewal_outcomes(tmp_path / "missing.csv") == {}
        assert load_renewal_outcomes(None) == {}


class TestCachedLedger:

    def test_reuses_until_file_changes(self, ledger_csv):
        cache = RecordCache()
        first = cached_ledger(cache, ledger_csv)
        assert cached_ledger(cache, ledger_csv) is first

        stat = ledger_csv.stat()
        os.utime(ledger_csv, (stat.st_atime, stat.st_mtime + 10))
        assert cached_ledger(cache, ledger_csv) is not first

    def test_reloads_when_mappings_change(self, ledger_csv, tmp_path):
        mappings = tmp_path / "mappings.yaml"
        mappings.write_text("country_aliases: {}\n", encoding="utf-8")
        cache = RecordCache()
        first = cached_ledger(cache, ledger_csv, mappings_path=mappings)
        assert cached_ledger(cache, ledger_csv, mappings_path=mappings) is first

        stat = mappings.stat()
        os.utime(mappings, (stat.st_atime, stat.st_mtime + 10))
        assert cached_ledger(cache, ledger_csv, mappings_path=mappings) is not first

    def test_outcomes_reload_when_mappings_change(self, tmp_path):
        renewals = tmp_path / "renewals.csv"
        renewals.write_text("Srl,PolicyStatus\n7,Renewed\n", encoding="utf-8")
        mappings = tmp_path / "mappings.yaml"
        mappings.write_text("ledger_columns: {}\n", encoding="utf-8")
        cache = RecordCache()
        first = cached_outcomes(cache, renewals, mappings_path=mappings)

        stat = mappings.stat()
        os.utime(mappings, (stat.st_atime, stat.st_mtime + 10))
        assert cached_outcomes(cache, renewals, mappings_path=mappings) is not first

    def test_measure_sets_cached_separately(self, ledger_csv):
        cache = RecordCache()
        kd = cached_ledger(cache, ledger_csv, measure_set="kd")
        fc = cached_ledger(cache, ledger_csv, measure_set="fc")
        assert kd["gross_premium"].tolist() != fc["gross_premium"].tolist()
        assert len(cache) == 2
