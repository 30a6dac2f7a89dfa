"""Tests for the top-level convenience functions."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

import climatecore as cc
from climatecore.config import Config


@pytest.fixture
def payload(monthly_times: list[str]) -> dict[str, Any]:
    """Timeseries payload with a linear rise and one sentinel value."""
    values: list[float | None] = [280.0 + 0.01 * i for i in range(len(monthly_times))]
    values[5] = -999.0
    values[6] = None
    return {"times": monthly_times, "values": values, "units": "K", "variable": "t2m"}


@pytest.fixture(autouse=True)
def _reset_config(monkeypatch: pytest.MonkeyPatch) -> None:
    import climatecore.config as _cfg

    monkeypatch.setattr(_cfg, "_default_config", Config())


@pytest.mark.unit
class TestTrend:
    """Tests for cc.trend()."""

    def test_from_series(self, seasonal_series: cc.SampleSeries) -> None:
        result = cc.trend(seasonal_series)
        assert isinstance(result, cc.TrendResult)
        assert result.slope_units == "K/year"

    def test_from_payload_uses_configured_sentinel(self, payload: dict[str, Any]) -> None:
        cc.configure(missing_value_sentinel=-999.0)
        result = cc.trend(payload)
        assert result.n_samples == 118
        assert result.slope > 0
        assert result.significant

    def test_rejects_other_types(self) -> None:
        with pytest.raises(TypeError, match="SampleSeries"):
            cc.trend([1.0, 2.0, 3.0])  # type: ignore[arg-type]


@pytest.mark.unit
class TestPercentiles:
    """Tests for cc.percentiles()."""

    def test_from_payload(self, payload: dict[str, Any]) -> None:
        bands = cc.percentiles(payload, [10, 50, 90], config=Config(missing_value_sentinel=-999.0))
        assert isinstance(bands, cc.PercentileSet)
        assert bands.months_with_data == tuple(range(1, 13))
        assert bands.units == "K"


@pytest.mark.unit
class TestRegionalStats:
    """Tests for cc.regional_stats()."""

    def test_from_grid(self, small_grid: cc.GridData) -> None:
        stats = cc.regional_stats(small_grid, {"west": -5, "south": -5, "east": 5, "north": 5})
        assert isinstance(stats, cc.RegionalStats)
        assert stats.mean == 285.0

    def test_empty_region(self, small_grid: cc.GridData) -> None:
        with pytest.raises(cc.EmptyRegionError):
            cc.regional_stats(small_grid, (100, 50, 120, 60))


@pytest.mark.unit
class TestAnomaly:
    """Tests for cc.anomaly()."""

    def test_from_series(self, seasonal_series: cc.SampleSeries) -> None:
        result = cc.anomaly(seasonal_series, "2009-01-01", kind="standardized")
        assert isinstance(result, cc.Anomaly)
        assert result.value > 0
        assert result.units == "σ"

    def test_accepts_date_objects(self, seasonal_series: cc.SampleSeries) -> None:
        by_date = cc.anomaly(seasonal_series, date(2009, 1, 1))
        by_string = cc.anomaly(seasonal_series, "2009-01-01")
        assert by_date == by_string
        assert by_date.time == date(2009, 1, 1)
