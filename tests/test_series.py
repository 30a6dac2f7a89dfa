"""Tests for SampleSeries construction, slicing and gap detection."""

from __future__ import annotations

import math
from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from climatecore.exceptions import ValidationError
from climatecore.series import SampleSeries, parse_time


@pytest.mark.unit
class TestParseTime:
    """Tests for parse_time()."""

    def test_iso_date_string(self) -> None:
        assert parse_time("2024-01-31") == pd.Timestamp("2024-01-31")

    def test_aware_timestamp_converted_to_naive_utc(self) -> None:
        ts = parse_time("2024-03-01T06:00:00+02:00")
        assert ts.tzinfo is None
        assert ts == pd.Timestamp("2024-03-01T04:00:00")

    def test_date_and_datetime_objects(self) -> None:
        assert parse_time(date(2020, 5, 1)) == pd.Timestamp("2020-05-01")
        assert parse_time(datetime(2020, 5, 1, 12)) == pd.Timestamp("2020-05-01T12:00")

    @pytest.mark.parametrize("bad", ["not a date", "2024-13-01", None])
    def test_invalid_values_rejected(self, bad: object) -> None:
        with pytest.raises(ValidationError, match="Invalid timestamp"):
            parse_time(bad)  # type: ignore[arg-type]


@pytest.mark.unit
class TestCreate:
    """Tests for SampleSeries.create()."""

    def test_basic_construction(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-02-01"], [1.0, 2.0], units="K")
        assert len(s) == 2
        assert s.valid_count == 2
        assert s.units == "K"
        assert s.values.dtype == np.float64
        assert s.times.dtype == np.dtype("datetime64[ns]")

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValidationError, match="lengths do not match"):
            SampleSeries.create(["2020-01-01", "2020-02-01"], [1.0])

    def test_missing_flag_length_mismatch(self) -> None:
        with pytest.raises(ValidationError, match="lengths do not match"):
            SampleSeries.create(["2020-01-01"], [1.0], [False, True])

    def test_unsorted_times(self) -> None:
        with pytest.raises(ValidationError, match="strictly increasing"):
            SampleSeries.create(["2020-02-01", "2020-01-01"], [1.0, 2.0])

    def test_duplicate_times(self) -> None:
        with pytest.raises(ValidationError, match="strictly increasing"):
            SampleSeries.create(["2020-01-01", "2020-01-01"], [1.0, 2.0])

    def test_non_numeric_value_names_index(self) -> None:
        with pytest.raises(ValidationError, match="index 0: 'abc'"):
            SampleSeries.create(["2020-01-01"], ["abc"])  # type: ignore[list-item]

    def test_non_numeric_value_later_in_series(self) -> None:
        with pytest.raises(ValidationError, match="index 2"):
            SampleSeries.create(
                ["2020-01-01", "2020-02-01", "2020-03-01"],
                [1.0, None, [2.0]],  # type: ignore[list-item]
            )

    def test_numeric_strings_accepted(self) -> None:
        s = SampleSeries.create(["2020-01-01"], ["1.5"])  # type: ignore[list-item]
        assert s.values[0] == 1.5

    def test_empty_series_allowed(self) -> None:
        s = SampleSeries.create([], [])
        assert len(s) == 0
        assert s.valid_count == 0

    def test_none_and_nan_are_missing(self) -> None:
        s = SampleSeries.create(
            ["2020-01-01", "2020-02-01", "2020-03-01"], [1.0, None, math.nan]
        )
        assert s.missing.tolist() == [False, True, True]
        assert s.valid_count == 1

    def test_explicit_missing_flags(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-02-01"], [1.0, 2.0], [False, True])
        assert s.missing.tolist() == [False, True]

    def test_sentinel_marks_missing(self) -> None:
        s = SampleSeries.create(
            ["2020-01-01", "2020-02-01", "2020-03-01"], [1.0, -999.0, 0.0], sentinel=-999.0
        )
        assert s.missing.tolist() == [False, True, False]

    def test_zero_is_not_missing(self) -> None:
        s = SampleSeries.create(["2020-01-01"], [0.0])
        assert s.valid_count == 1

    def test_arrays_are_read_only(self) -> None:
        s = SampleSeries.create(["2020-01-01"], [1.0])
        with pytest.raises(ValueError):
            s.values[0] = 5.0

    def test_input_list_mutation_does_not_leak(self) -> None:
        values = [1.0, 2.0]
        s = SampleSeries.create(["2020-01-01", "2020-02-01"], values)
        values[0] = 99.0
        assert s.values[0] == 1.0


@pytest.mark.unit
class TestAlternateConstructors:
    """Tests for from_records() and from_payload()."""

    def test_from_records(self) -> None:
        s = SampleSeries.from_records(
            [("2020-01-01", 1.0, False), ("2020-02-01", 0.0, True), ("2020-03-01", 3.0, False)]
        )
        assert len(s) == 3
        assert s.missing.tolist() == [False, True, False]

    def test_from_flat_payload(self) -> None:
        payload = {
            "times": ["2020-01-01", "2020-02-01"],
            "values": [280.0, None],
            "units": "K",
            "variable": "t2m",
        }
        s = SampleSeries.from_payload(payload)
        assert s.units == "K"
        assert s.variable == "t2m"
        assert s.missing.tolist() == [False, True]

    def test_from_nested_payload(self) -> None:
        payload = {
            "data": {"times": ["2020-01-01"], "values": [280.0]},
            "units": "K",
        }
        s = SampleSeries.from_payload(payload)
        assert len(s) == 1
        assert s.units == "K"


@pytest.mark.unit
class TestSliceByRange:
    """Tests for slice_by_range()."""

    @pytest.fixture
    def series(self) -> SampleSeries:
        return SampleSeries.create(
            ["2020-01-01", "2020-02-01", "2020-03-01", "2020-04-01"],
            [1.0, None, 3.0, 4.0],
            units="K",
        )

    def test_inclusive_bounds(self, series: SampleSeries) -> None:
        sliced = series.slice_by_range("2020-02-01", "2020-03-01")
        assert len(sliced) == 2
        assert sliced.missing.tolist() == [True, False]
        assert sliced.units == "K"

    def test_no_overlap_returns_empty(self, series: SampleSeries) -> None:
        assert len(series.slice_by_range("2021-01-01", "2021-12-31")) == 0

    def test_original_unchanged(self, series: SampleSeries) -> None:
        series.slice_by_range("2020-03-01", "2020-04-01")
        assert len(series) == 4

    def test_reversed_range_rejected(self, series: SampleSeries) -> None:
        with pytest.raises(ValidationError, match="Invalid date range"):
            series.slice_by_range("2020-04-01", "2020-01-01")


@pytest.mark.unit
class TestHasGaps:
    """Tests for has_gaps()."""

    def test_regular_monthly_series_has_no_gaps(self, seasonal_series: SampleSeries) -> None:
        assert not seasonal_series.has_gaps(31)

    def test_detects_gap(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-02-01", "2020-05-01"], [1.0, 2.0, 3.0])
        assert s.has_gaps(31)
        assert not s.has_gaps(90)

    def test_gap_equal_to_threshold_is_not_a_gap(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-01-11"], [1.0, 2.0])
        assert not s.has_gaps(10)

    def test_single_sample_has_no_gaps(self) -> None:
        assert not SampleSeries.create(["2020-01-01"], [1.0]).has_gaps(1)

    @pytest.mark.parametrize("threshold", [0, -5])
    def test_non_positive_threshold_rejected(self, threshold: float) -> None:
        s = SampleSeries.create(["2020-01-01"], [1.0])
        with pytest.raises(ValidationError, match="gap threshold"):
            s.has_gaps(threshold)


@pytest.mark.unit
class TestDerivedViews:
    """Tests for months, years, decimal_years(), valid() and to_dataframe()."""

    def test_months_and_years(self) -> None:
        s = SampleSeries.create(["2019-12-01", "2020-01-01"], [1.0, 2.0])
        assert s.months.tolist() == [12, 1]
        assert s.years.tolist() == [2019, 2020]

    def test_decimal_years_relative_to_first_sample(self) -> None:
        s = SampleSeries.create(["2000-01-01", "2000-12-31T06:00:00"], [1.0, 2.0])
        years = s.decimal_years()
        assert years[0] == 0.0
        assert years[1] == pytest.approx(1.0)

    def test_valid_drops_missing(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-02-01"], [None, 2.0])
        valid = s.valid()
        assert len(valid) == 1
        assert valid.values.tolist() == [2.0]

    def test_to_dataframe(self) -> None:
        s = SampleSeries.create(["2020-01-01", "2020-02-01"], [1.0, None])
        df = s.to_dataframe()
        assert list(df.columns) == ["timestamp", "value", "missing"]
        assert df["missing"].tolist() == [False, True]

    def test_repr(self, seasonal_series: SampleSeries) -> None:
        assert "2000-01-01..2009-12-01" in repr(seasonal_series)
        assert repr(SampleSeries.create([], [])) == "SampleSeries(empty)"
