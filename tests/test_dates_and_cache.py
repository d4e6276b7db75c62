"""
Tests for shared date parsing and the record cache.
"""

import datetime as dt
import threading

import pandas as pd
import pytest

from utils.cache import RecordCache, mtime_version
from utils.dates import (
    excel_serial_to_date,
    month_name,
    parse_date_series,
    parse_date_value,
    quarter_of,
    valid_year,
)


class TestParseDate:

    @pytest.mark.parametrize("raw,expected", [
        ("31/12/2024", dt.date(2024, 12, 31)),
        ("1-2-2024", dt.date(2024, 2, 1)),
        ("2024-02-01", dt.date(2024, 2, 1)),
        ("2024-02-01 00:00:00", dt.date(2024, 2, 1)),
        ("45292", dt.date(2024, 1, 1)),
        (45292, dt.date(2024, 1, 1)),
        (45292.75, dt.date(2024, 1, 1)),
        (dt.datetime(2024, 5, 6, 12, 0), dt.date(2024, 5, 6)),
        (pd.Timestamp("2024-05-06"), dt.date(2024, 5, 6)),
    ])
    def test_formats(self, raw, expected):
        assert parse_date_value(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "nan", "NaT", "31/02/2024", "garbage", float("nan"), 0, -5, pd.NaT, pd.NA])
    def test_unparseable(self, raw):
        assert parse_date_value(raw) is None

    def test_excel_leap_year_quirk(self):
        assert excel_serial_to_date(1) == dt.date(1900, 1, 1)
        assert excel_serial_to_date(59) == dt.date(1900, 2, 28)
        assert excel_serial_to_date(61) == dt.date(1900, 3, 1)

    def test_series(self):
        out = parse_date_series(pd.Series(["01/01/2024", None, "junk"]))
        assert out.iloc[0] == pd.Timestamp("2024-01-01")
        assert out.iloc[1:].isna().all()


class TestDateKeys:

    @pytest.mark.parametrize("raw,expected", [
        ("2023", 2023), (2023.0, 2023), (" 2024 ", 2024), ("1899", None), ("2101", None),
        (None, None), ("abc", None), (float("nan"), None),
    ])
    def test_valid_year(self, raw, expected):
        assert valid_year(raw) == expected

    def test_quarter_and_month(self):
        assert [quarter_of(m) for m in (1, 3, 4, 12)] == ["Q1", "Q1", "Q2", "Q4"]
        assert month_name(1) == "JAN"
        assert month_name(12) == "DEC"


class TestRecordCache:

    def setup_method(self):
        self.cache = RecordCache()
        self.calls = 0

    def _loader(self):
        self.calls += 1
        return {"n": self.calls}

    def test_hit_and_version_change(self):
        a = self.cache.get("k", self._loader, version=1)
        b = self.cache.get("k", self._loader, version=1)
        assert a is b
        assert self.calls == 1

        c = self.cache.get("k", self._loader, version=2)
        assert c == {"n": 2}
        assert self.calls == 2

    def test_invalidate(self):
        self.cache.get("a", self._loader)
        self.cache.get("b", self._loader)
        self.cache.invalidate("a")
        assert "a" not in self.cache
        assert "b" in self.cache
        self.cache.invalidate()
        assert len(self.cache) == 0

    def test_loader_errors_are_not_cached(self):
        def boom():
            raise OSError("disk gone")

        with pytest.raises(OSError):
            self.cache.get("k", boom)
        assert "k" not in self.cache

    def test_concurrent_readers(self):
        self.cache.get("k", self._loader, version=1)
        results = []

        def read():
            results.append(self.cache.get("k", self._loader, version=1))

        threads = [threading.Thread(target=read) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert self.calls == 1
        assert all(r is results[0] for r in results)

    def test_mtime_version(self, tmp_path):
        path = tmp_path / "f.csv"
        assert mtime_version(path) is None
        path.write_text("x", encoding="utf-8")
        assert mtime_version(path) == path.stat().st_mtime
