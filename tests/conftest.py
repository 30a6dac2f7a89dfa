"""Shared test fixtures for the climatecore test suite."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climatecore._types import GridData
from climatecore.config import Config
from climatecore.series import SampleSeries


@pytest.fixture
def test_config() -> Config:
    """Return a fresh default Config instance for test isolation."""
    return Config()


@pytest.fixture
def monthly_times() -> list[str]:
    """Ten years of month-start dates, 2000-01 to 2009-12."""
    return [d.strftime("%Y-%m-%d") for d in pd.date_range("2000-01-01", periods=120, freq="MS")]


@pytest.fixture
def seasonal_series(monthly_times: list[str]) -> SampleSeries:
    """Monthly temperatures (K) with a seasonal cycle and a year offset.

    Value for month ``m`` of year index ``y`` is ``280 + m + 0.1 * y``,
    so each month's samples are spread evenly over 0.9 K.
    """
    values = [280.0 + (i % 12 + 1) + 0.1 * (i // 12) for i in range(len(monthly_times))]
    return SampleSeries.create(monthly_times, values, units="K", variable="t2m")


@pytest.fixture
def small_grid() -> GridData:
    """A 3x4 grid with a missing cell at (lat=10, lon=20)."""
    return GridData(
        lats=np.array([-10.0, 0.0, 10.0]),
        lons=np.array([-20.0, 0.0, 20.0, 40.0]),
        values=np.array(
            [
                [280.0, 281.0, 282.0, 283.0],
                [284.0, 285.0, 286.0, 287.0],
                [288.0, 289.0, np.nan, 291.0],
            ]
        ),
        units="K",
        variable="t2m",
    )
