"""Tests for monthly percentile aggregation."""

from __future__ import annotations

import numpy as np
import numpy.testing as npt
import pytest

from climatecore.analysis.percentiles import (
    PercentileAggregator,
    linear_percentiles,
    monthly_percentiles,
    pooled_monthly_percentiles,
)
from climatecore.config import Config
from climatecore.exceptions import InsufficientDataError, ValidationError
from climatecore.series import SampleSeries


class TestLinearPercentiles:
    """Type-7 interpolation between order statistics."""

    @pytest.mark.unit
    def test_interpolates_between_order_statistics(self) -> None:
        # n=4: rank(25) = 0.75, rank(50) = 1.5, rank(90) = 2.7
        values = np.array([4.0, 1.0, 3.0, 2.0])
        assert linear_percentiles(values, [25, 50, 90]) == pytest.approx((1.75, 2.5, 3.7))

    @pytest.mark.unit
    def test_single_value_for_every_level(self) -> None:
        assert linear_percentiles(np.array([7.5]), [10, 50, 99]) == (7.5, 7.5, 7.5)


class TestMonthlyPercentiles:
    """Point-series aggregation."""

    @pytest.mark.unit
    def test_groups_by_calendar_month(self, seasonal_series: SampleSeries) -> None:
        bands = monthly_percentiles(seasonal_series, [10, 50, 90])
        assert bands.months_with_data == tuple(range(1, 13))
        assert bands.gaps == ()
        for month in range(1, 13):
            base = 280.0 + month
            npt.assert_allclose(bands.values[month], (base + 0.09, base + 0.45, base + 0.81))

    @pytest.mark.unit
    def test_default_levels_from_config(self, seasonal_series: SampleSeries) -> None:
        bands = monthly_percentiles(seasonal_series)
        assert bands.levels == (10.0, 25.0, 50.0, 75.0, 90.0, 95.0, 99.0)
        custom = monthly_percentiles(seasonal_series, config=Config(percentile_levels=(5, 95)))
        assert custom.levels == (5.0, 95.0)

    @pytest.mark.unit
    def test_monotonic_for_every_month(self, seasonal_series: SampleSeries) -> None:
        bands = monthly_percentiles(seasonal_series)
        assert bands.is_monotonic()
        for month in bands.months_with_data:
            row = bands.values[month]
            assert all(lo <= hi for lo, hi in zip(row, row[1:]))

    @pytest.mark.unit
    def test_monotonic_on_random_data(self) -> None:
        rng = np.random.default_rng(11)
        times = [f"{2000 + i // 12}-{i % 12 + 1:02d}-15" for i in range(240)]
        series = SampleSeries.create(times, list(rng.gamma(2.0, 3.0, 240)))
        assert monthly_percentiles(series).is_monotonic()

    @pytest.mark.unit
    def test_single_sample_month(self) -> None:
        series = SampleSeries.create(["2020-03-10"], [12.5])
        bands = monthly_percentiles(series, [10, 50, 99])
        assert bands.values[3] == (12.5, 12.5, 12.5)

    @pytest.mark.unit
    def test_missing_samples_excluded(self) -> None:
        series = SampleSeries.create(
            ["2020-01-01", "2021-01-01", "2022-01-01"],
            [1.0, -999.0, 3.0],
            sentinel=-999.0,
        )
        bands = monthly_percentiles(series, [50])
        assert bands.values[1] == (2.0,)

    @pytest.mark.unit
    def test_months_without_data_reported_not_raised(self) -> None:
        series = SampleSeries.create(
            ["2020-01-01", "2020-02-01", "2021-01-01"],
            [1.0, None, 2.0],
        )
        bands = monthly_percentiles(series, [50])
        assert bands.months_with_data == (1,)
        gap_months = [g.month for g in bands.gaps]
        assert gap_months == list(range(2, 13))
        feb = next(g for g in bands.gaps if g.month == 2)
        assert feb.sample_count == 1

    @pytest.mark.unit
    def test_for_month_raises_per_month(self) -> None:
        series = SampleSeries.create(["2020-01-01"], [1.0])
        bands = monthly_percentiles(series, [50])
        assert bands.for_month(1) == {50.0: 1.0}
        with pytest.raises(InsufficientDataError) as excinfo:
            bands.for_month(6)
        assert excinfo.value.month == 6
        assert excinfo.value.sample_count == 0

    @pytest.mark.unit
    def test_empty_series_reports_all_months(self) -> None:
        bands = monthly_percentiles(SampleSeries.create([], []), [50])
        assert bands.months_with_data == ()
        assert len(bands.gaps) == 12

    @pytest.mark.unit
    @pytest.mark.parametrize("levels", [[], [50, 25], [0, 50], [50, 100], [10, 10]])
    def test_invalid_levels(self, levels: list[float]) -> None:
        with pytest.raises(ValidationError, match="percentile levels"):
            PercentileAggregator(levels)


class TestPooledMonthlyPercentiles:
    """Regional (grid-cell) aggregation."""

    @pytest.mark.unit
    def test_pools_cells_within_month(self) -> None:
        cells = {
            1: [np.array([1.0, 2.0]), np.array([3.0, 4.0, 5.0])],
            7: [[10.0], [np.nan]],
        }
        bands = pooled_monthly_percentiles(cells, [50])
        assert bands.values[1] == (3.0,)
        assert bands.values[7] == (10.0,)
        assert bands.months_with_data == (1, 7)

    @pytest.mark.unit
    def test_sentinel_excluded(self) -> None:
        cells = {4: [[1.0, -1.0, 3.0]]}
        bands = pooled_monthly_percentiles(cells, [50], sentinel=-1.0)
        assert bands.values[4] == (2.0,)

    @pytest.mark.unit
    def test_all_missing_month_is_a_gap(self) -> None:
        bands = pooled_monthly_percentiles({5: [[np.nan, np.nan]]}, [50])
        gap = next(g for g in bands.gaps if g.month == 5)
        assert gap.sample_count == 2
        with pytest.raises(InsufficientDataError):
            bands.for_month(5)

    @pytest.mark.unit
    def test_invalid_month_key(self) -> None:
        with pytest.raises(ValidationError, match="month keys"):
            pooled_monthly_percentiles({13: [[1.0]]}, [50])


class TestPercentileSetExports:
    """Column and DataFrame layouts."""

    @pytest.mark.unit
    def test_to_columns(self, seasonal_series: SampleSeries) -> None:
        cols = monthly_percentiles(seasonal_series, [10, 90]).to_columns()
        assert list(cols) == ["months", "p10", "p90"]
        assert cols["months"] == list(range(1, 13))
        assert len(cols["p10"]) == 12

    @pytest.mark.unit
    def test_to_dataframe(self, seasonal_series: SampleSeries) -> None:
        df = monthly_percentiles(seasonal_series, [25, 50, 75]).to_dataframe()
        assert list(df.columns) == ["p25", "p50", "p75"]
        assert df.index.name == "month"
        assert df.loc[6, "p50"] == pytest.approx(286.45)

    @pytest.mark.unit
    def test_payload_uses_camel_case(self, seasonal_series: SampleSeries) -> None:
        payload = monthly_percentiles(seasonal_series, [50]).to_payload()
        assert "monthsWithData" in payload
        assert payload["monthsWithData"] == list(range(1, 13))
