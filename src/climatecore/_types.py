"""Internal shared types for cross-boundary data contracts.

These types define the data shapes passed between the series, analysis
and animation components. They are internal (prefixed ``_``);
``GridData`` is re-exported from ``climatecore.__init__`` because callers
build grids directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

import numpy as np
import numpy.typing as npt

from climatecore.exceptions import ValidationError

TimeLike = Union[str, date, datetime, np.datetime64]
"""Anything accepted as a timestamp: ISO-8601 string, date or datetime."""

SampleRecord = tuple[TimeLike, Union[float, None], bool]
"""``(timestamp, value, missing)`` tuple as delivered by the fetch layer."""

YearPeriod = tuple[int, int]
"""Inclusive ``(start_year, end_year)`` pair."""

FloatArray = npt.NDArray[np.float64]


@dataclass(frozen=True)
class GridData:
    """A regular latitude/longitude grid of values.

    ``values[i, j]`` is the value of the cell centred on ``lats[i]``,
    ``lons[j]``. Missing cells are NaN.

    Args:
        lats: Cell-center latitudes, shape ``(n_lat,)``.
        lons: Cell-center longitudes, shape ``(n_lon,)``.
        values: Cell values, shape ``(n_lat, n_lon)``.
        units: Physical units of *values* (e.g. ``"K"``).
        variable: Variable name (e.g. ``"t2m"``).
        time: Timestamp of the slice, if known.

    Example:
        >>> import numpy as np
        >>> grid = GridData(
        ...     lats=np.array([0.0]),
        ...     lons=np.array([0.0, 1.0]),
        ...     values=np.array([[290.0, 291.0]]),
        ... )
        >>> grid.shape
        (1, 2)
    """

    lats: FloatArray
    lons: FloatArray
    values: FloatArray
    units: str = ""
    variable: str = ""
    time: str | None = None

    @property
    def shape(self) -> tuple[int, int]:
        """Return ``(n_lat, n_lon)``."""
        return (len(self.lats), len(self.lons))

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GridData:
        """Build a grid from the data API's ``{lats, lons, values}`` shape.

        ``None`` cells become NaN. Shape agreement between ``values`` and
        the coordinates is checked by the consumers that need it.

        Raises:
            ValidationError: If coordinates are not numeric or the
                ``values`` rows are ragged.
        """
        try:
            lats = np.asarray(payload.get("lats", []), dtype=np.float64)
            lons = np.asarray(payload.get("lons", []), dtype=np.float64)
            rows = payload.get("values", [])
            if len(rows):
                values = np.array(
                    [[np.nan if v is None else v for v in row] for row in rows],
                    dtype=np.float64,
                )
            else:
                values = np.full((len(lats), len(lons)), np.nan, dtype=np.float64)
        except (ValueError, TypeError) as exc:
            raise ValidationError(
                what="Invalid grid payload",
                cause=str(exc),
                fix="Provide numeric lats and lons and one equal-length values row per latitude",
            ) from None
        return cls(
            lats=lats,
            lons=lons,
            values=values,
            units=str(payload.get("units", "")),
            variable=str(payload.get("variable", "")),
            time=payload.get("time"),
        )
