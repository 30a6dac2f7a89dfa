"""Result object model for analysis outputs.

All results are frozen pydantic models: plain values with no hidden
state, so the rendering layer can format them without calling back into
the library. They serialize with camelCase aliases (``pValue``,
``confidenceInterval``) to match the payloads the front end consumes.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from climatecore.exceptions import InsufficientDataError

if TYPE_CHECKING:
    import pandas as pd

# ── Anomaly classification thresholds (standardized units) ─────────
_NEAR_NORMAL_Z: float = 0.5
_SLIGHT_Z: float = 1.0
_NOTABLE_Z: float = 2.0


def _read_only(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


def _as_dict(mapping: Mapping[Any, Any]) -> dict[Any, Any]:
    return dict(mapping)


_MonthValues = Annotated[
    Mapping[int, tuple[float, ...]], AfterValidator(_read_only), PlainSerializer(_as_dict)
]
_LevelValues = Annotated[
    Mapping[float, float], AfterValidator(_read_only), PlainSerializer(_as_dict)
]


def _level_key(level: float) -> str:
    """Return the column name for a percentile level (``10.0`` -> ``"p10"``)."""
    return f"p{level:g}"


def _interpret_trend(slope: float, significant: bool) -> str:
    """Return plain-language interpretation of a trend.

    Example:
        >>> _interpret_trend(0.03, True)
        'significant increase'
        >>> _interpret_trend(-0.5, False)
        'no significant trend'
    """
    if math.isnan(slope):
        return "no data"
    if not significant or slope == 0.0:
        return "no significant trend"
    if slope > 0:
        return "significant increase"
    return "significant decrease"


def _classify_departure(z: float) -> tuple[int, str]:
    """Map a standardized departure to a signed level and label.

    Example:
        >>> _classify_departure(1.4)
        (2, 'above normal')
        >>> _classify_departure(-2.5)
        (-3, 'much below normal')
    """
    if math.isnan(z):
        return (0, "no data")
    magnitude = abs(z)
    if magnitude < _NEAR_NORMAL_Z:
        return (0, "near normal")
    direction = "above" if z > 0 else "below"
    sign = 1 if z > 0 else -1
    if magnitude < _SLIGHT_Z:
        return (sign, f"slightly {direction} normal")
    if magnitude < _NOTABLE_Z:
        return (2 * sign, f"{direction} normal")
    return (3 * sign, f"much {direction} normal")


class _ValueModel(BaseModel):
    """Frozen model base with camelCase serialization aliases."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-compatible dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ConfidenceInterval(_ValueModel):
    """Closed interval around an estimate."""

    lower: float
    upper: float


class YearRange(_ValueModel):
    """Inclusive range of calendar years."""

    start: int
    end: int


class BoundingBox(_ValueModel):
    """Geographic bounding box in WGS84 degrees.

    ``west > east`` denotes a box that crosses the anti-meridian.

    Example:
        >>> BoundingBox(west=170, south=-10, east=-170, north=10).crosses_antimeridian
        True
    """

    west: float
    south: float
    east: float
    north: float

    @field_validator("south", "north")
    @classmethod
    def _validate_lat(cls, v: float) -> float:
        if not -90.0 <= v <= 90.0:
            msg = f"latitude {v} is outside [-90, 90]"
            raise ValueError(msg)
        return v

    @field_validator("west", "east")
    @classmethod
    def _validate_lon(cls, v: float) -> float:
        if not -180.0 <= v <= 180.0:
            msg = f"longitude {v} is outside [-180, 180]"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _validate_order(self) -> BoundingBox:
        if self.south >= self.north:
            msg = "south must be less than north"
            raise ValueError(msg)
        if self.west == self.east:
            msg = "west and east must differ"
            raise ValueError(msg)
        return self

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    @property
    def center(self) -> tuple[float, float]:
        """Return ``(lat, lon)`` of the box center, wrapped to [-180, 180)."""
        lat = (self.south + self.north) / 2
        east = self.east + 360.0 if self.crosses_antimeridian else self.east
        lon = (self.west + east) / 2
        if lon >= 180.0:
            lon -= 360.0
        return (lat, lon)


class TrendResult(_ValueModel):
    """Linear trend of a series.

    Attributes:
        slope: Change in value units per year.
        intercept: Fitted value at the first valid sample.
        p_value: Two-tailed p-value of the slope (0..1).
        significant: ``p_value < alpha``.
        confidence_interval: ``slope ± t_crit × std_error``.
        period: Calendar years covered by the valid samples.
        std_error: Standard error of the slope.
        r_squared: Coefficient of determination.
        n_samples: Number of valid samples used.
        alpha: Significance threshold used.
        slope_units: Units of ``slope`` (e.g. ``"K/year"``).
    """

    slope: float
    intercept: float
    p_value: float = Field(ge=0.0, le=1.0)
    significant: bool
    confidence_interval: ConfidenceInterval
    period: YearRange
    std_error: float = 0.0
    r_squared: float = 0.0
    n_samples: int = 0
    alpha: float = 0.05
    slope_units: str = ""

    @model_validator(mode="after")
    def _validate_interval(self) -> TrendResult:
        ci = self.confidence_interval
        if not ci.lower <= self.slope <= ci.upper:
            msg = f"confidence interval [{ci.lower}, {ci.upper}] does not contain slope {self.slope}"
            raise ValueError(msg)
        return self

    @property
    def slope_per_decade(self) -> float:
        return self.slope * 10.0

    @property
    def interpretation(self) -> str:
        return _interpret_trend(self.slope, self.significant)

    def __repr__(self) -> str:
        flag = "significant" if self.significant else "not significant"
        return (
            f"TrendResult(slope={self.slope:.4g}{' ' + self.slope_units if self.slope_units else ''}, "
            f"p={self.p_value:.3g}, {flag})"
        )


class MonthGap(_ValueModel):
    """A calendar month for which a statistic could not be computed.

    ``sample_count`` is the number of samples in the month, all missing.
    """

    month: int = Field(ge=1, le=12)
    sample_count: int = 0


class PercentileSet(_ValueModel):
    """Monthly percentile bands.

    Attributes:
        levels: Ordered percentile levels, e.g. ``(10, 25, 50, 75, 90)``.
        values: Month (1-12) to one value per level, for months with data.
        months_with_data: Sorted months present in ``values``.
        gaps: Months that had no valid samples.
        units: Physical units of the values.
    """

    levels: tuple[float, ...]
    values: _MonthValues
    months_with_data: tuple[int, ...]
    gaps: tuple[MonthGap, ...] = ()
    units: str = ""

    def for_month(self, month: int) -> dict[float, float]:
        """Return ``{level: value}`` for *month*.

        Raises:
            InsufficientDataError: If *month* had no valid samples.
        """
        if month not in self.values:
            count = next((g.sample_count for g in self.gaps if g.month == month), 0)
            raise InsufficientDataError(
                what=f"No percentiles for month {month}",
                cause=f"{count} samples fell in month {month}, none of them valid",
                fix="Widen the date range or check the source for missing data",
                sample_count=0,
                month=month,
            )
        return dict(zip(self.levels, self.values[month]))

    def value(self, month: int, level: float) -> float:
        """Return the value at *level* for *month*."""
        by_level = self.for_month(month)
        try:
            return by_level[float(level)]
        except KeyError:
            msg = f"level {level} was not computed; available: {list(self.levels)}"
            raise KeyError(msg) from None

    def is_monotonic(self) -> bool:
        """Return ``True`` if every month's values are non-decreasing by level."""
        return all(
            all(lo <= hi for lo, hi in zip(row, row[1:])) for row in self.values.values()
        )

    def to_columns(self) -> dict[str, list[Any]]:
        """Return the column layout ``{"months": [...], "p10": [...], ...}``.

        Only months with data are included.
        """
        months = list(self.months_with_data)
        columns: dict[str, list[Any]] = {"months": months}
        for i, level in enumerate(self.levels):
            columns[_level_key(level)] = [self.values[m][i] for m in months]
        return columns

    def to_dataframe(self) -> pd.DataFrame:
        """Export to a DataFrame indexed by month with one column per level."""
        import pandas as pd

        columns = self.to_columns()
        months = columns.pop("months")
        return pd.DataFrame(columns, index=pd.Index(months, name="month"))


class RegionalStats(_ValueModel):
    """Summary statistics over the grid cells inside a bounding box.

    ``std`` is the population standard deviation. ``percentiles`` holds
    every requested level; ``p10``, ``p50`` and ``p90`` are always present.
    """

    bbox: BoundingBox
    mean: float
    std: float
    min: float
    max: float
    p10: float
    p50: float
    p90: float
    percentiles: _LevelValues = Field(default_factory=lambda: _read_only({}))
    cell_count: int = 0
    units: str = ""

    @model_validator(mode="after")
    def _validate_order(self) -> RegionalStats:
        if not self.min <= self.p10 <= self.p50 <= self.p90 <= self.max:
            msg = "expected min <= p10 <= p50 <= p90 <= max"
            raise ValueError(msg)
        return self

    def __repr__(self) -> str:
        units = f" {self.units}" if self.units else ""
        return (
            f"RegionalStats(mean={self.mean:.2f}{units}, std={self.std:.2f}, "
            f"cells={self.cell_count})"
        )


class MonthlyNormal(_ValueModel):
    """Mean and spread of one calendar month over a reference period."""

    mean: float
    std: float
    count: int


_MonthNormals = Annotated[
    Mapping[int, MonthlyNormal], AfterValidator(_read_only), PlainSerializer(_as_dict)
]


class Climatology(_ValueModel):
    """Per-month normals over a reference period of years."""

    normals: _MonthNormals
    reference_period: YearRange
    units: str = ""

    @property
    def months(self) -> tuple[int, ...]:
        return tuple(sorted(self.normals))

    def to_dataframe(self) -> pd.DataFrame:
        """Export to a DataFrame indexed by month with mean, std and count."""
        import pandas as pd

        rows = [
            {"month": m, "mean": n.mean, "std": n.std, "count": n.count}
            for m, n in sorted(self.normals.items())
        ]
        return pd.DataFrame(rows, columns=["month", "mean", "std", "count"]).set_index("month")


class AnimationState(_ValueModel):
    """Snapshot of an ``AnimationClock``.

    Example:
        >>> AnimationState(
        ...     current_time=date(2020, 3, 1),
        ...     start_time=date(2020, 1, 1),
        ...     end_time=date(2020, 12, 31),
        ...     playing=False,
        ...     speed=2.0,
        ... ).to_payload()["currentTime"]
        '2020-03-01'
    """

    current_time: date
    start_time: date
    end_time: date
    playing: bool
    speed: float = Field(gt=0.0)
    step_unit: Literal["day", "month", "year"] = "month"

    @model_validator(mode="after")
    def _validate_cursor(self) -> AnimationState:
        if not self.start_time <= self.current_time <= self.end_time:
            msg = "expected start_time <= current_time <= end_time"
            raise ValueError(msg)
        return self


class AnomalyClassification(_ValueModel):
    """Signed severity level (-3..3) with a label."""

    level: int = Field(ge=-3, le=3)
    label: str


class Anomaly(_ValueModel):
    """Departure of one sample from its month's climatological normal."""

    time: date
    value: float
    type: Literal["absolute", "standardized"]
    units: str = ""
    reference_period: YearRange
    classification: AnomalyClassification
