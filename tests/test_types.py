"""Tests for the climatecore internal types."""

from __future__ import annotations

import numpy as np
import pytest

from climatecore._types import GridData, SampleRecord, YearPeriod


@pytest.mark.unit
class TestTypeAliases:
    """Verify type aliases resolve correctly."""

    def test_sample_record_is_tuple(self) -> None:
        record: SampleRecord = ("2024-01-01", 1.0, False)
        assert isinstance(record, tuple)
        assert len(record) == 3

    def test_year_period_is_tuple_of_int(self) -> None:
        period: YearPeriod = (1991, 2020)
        assert all(isinstance(y, int) for y in period)


@pytest.mark.unit
class TestGridData:
    """Verify GridData construction and payload parsing."""

    def test_shape(self, small_grid: GridData) -> None:
        assert small_grid.shape == (3, 4)

    def test_frozen(self, small_grid: GridData) -> None:
        with pytest.raises(AttributeError):
            small_grid.units = "C"  # type: ignore[misc]

    def test_defaults(self) -> None:
        grid = GridData(lats=np.array([0.0]), lons=np.array([0.0]), values=np.array([[1.0]]))
        assert grid.units == ""
        assert grid.variable == ""
        assert grid.time is None

    def test_from_payload_null_cells_become_nan(self) -> None:
        grid = GridData.from_payload(
            {
                "lats": [0, 1],
                "lons": [10, 20],
                "values": [[1.0, None], [3.0, 4.0]],
                "units": "K",
                "variable": "t2m",
                "time": "2024-01-01",
            }
        )
        assert grid.values.dtype == np.float64
        assert np.isnan(grid.values[0, 1])
        assert grid.values[1, 0] == 3.0
        assert grid.units == "K"
        assert grid.variable == "t2m"
        assert grid.time == "2024-01-01"

    def test_from_payload_without_values(self) -> None:
        grid = GridData.from_payload({"lats": [0, 1], "lons": [10, 20, 30]})
        assert grid.values.shape == (2, 3)
        assert np.all(np.isnan(grid.values))
