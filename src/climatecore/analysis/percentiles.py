"""Monthly climatological percentile bands.

Percentiles use linear interpolation between order statistics (Hyndman
and Fan type 7, numpy's ``method="linear"``): ``rank = p/100 * (n - 1)``,
interpolated between the floor and ceiling ranks.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt

from climatecore.config import Config, check_percentile_levels, get_default_config
from climatecore.exceptions import ValidationError
from climatecore.results import MonthGap, PercentileSet

if TYPE_CHECKING:
    from climatecore._types import FloatArray
    from climatecore.series import SampleSeries

logger = logging.getLogger(__name__)

MONTHS: tuple[int, ...] = tuple(range(1, 13))


def resolve_levels(
    levels: Sequence[float] | None,
    config: Config,
) -> tuple[float, ...]:
    """Return validated percentile levels, falling back to the config.

    Raises:
        ValidationError: If *levels* are empty, unordered or outside (0, 100).
    """
    if levels is None:
        return config.percentile_levels
    try:
        return check_percentile_levels(list(levels))
    except ValueError as exc:
        raise ValidationError(
            what=f"Invalid percentile levels: {list(levels)}",
            cause=str(exc),
            fix="Pass strictly increasing levels between 0 and 100, e.g. [10, 50, 90]",
        ) from None


def drop_missing(
    values: npt.ArrayLike,
    sentinel: float | None = None,
) -> FloatArray:
    """Flatten *values* and remove NaN and sentinel entries."""
    flat = np.asarray(values, dtype=np.float64).ravel()
    keep = ~np.isnan(flat)
    if sentinel is not None and not math.isnan(sentinel):
        keep &= flat != sentinel
    return flat[keep]


def linear_percentiles(values: FloatArray, levels: Sequence[float]) -> tuple[float, ...]:
    """Type-7 percentiles of a non-empty 1-D array.

    Example:
        >>> linear_percentiles(np.array([1.0, 2.0, 3.0, 4.0]), [25, 50])
        (1.75, 2.5)
    """
    result = np.percentile(values, list(levels), method="linear")
    return tuple(float(v) for v in result)


class PercentileAggregator:
    """Groups samples by calendar month and computes percentile bands.

    Args:
        levels: Ordered percentile levels; defaults to the configured
            ``percentile_levels``.
        sentinel: Missing-value sentinel for raw cell arrays; defaults to
            the configured ``missing_value_sentinel``.
        config: Configuration snapshot; defaults to the module default.

    Raises:
        ValidationError: If *levels* are invalid.
    """

    def __init__(
        self,
        levels: Sequence[float] | None = None,
        *,
        sentinel: float | None = None,
        config: Config | None = None,
    ) -> None:
        cfg = config if config is not None else get_default_config()
        self.levels = resolve_levels(levels, cfg)
        self.sentinel = cfg.missing_value_sentinel if sentinel is None else sentinel

    def __repr__(self) -> str:
        return f"PercentileAggregator(levels={list(self.levels)})"

    def aggregate(self, series: SampleSeries) -> PercentileSet:
        """Compute per-month percentiles over a point series.

        Years are ignored: every January sample contributes to month 1.
        Months without valid samples are reported in ``gaps``.
        """
        months = series.months
        valid = series.valid_mask
        samples: dict[int, FloatArray] = {}
        counts: dict[int, int] = {}
        for month in MONTHS:
            in_month = months == month
            counts[month] = int(np.count_nonzero(in_month))
            samples[month] = series.values[in_month & valid]
        return self._build(samples, counts, units=series.units)

    def aggregate_cells(
        self,
        cells_by_month: Mapping[int, Sequence[npt.ArrayLike]],
        *,
        units: str = "",
    ) -> PercentileSet:
        """Compute per-month percentiles over pooled grid-cell values.

        Args:
            cells_by_month: Month (1-12) to a list of per-cell value
                arrays; all cells of a month are pooled. Months absent
                from the mapping count as having no data.
            units: Physical units of the values.

        Raises:
            ValidationError: If a key is not a calendar month.
        """
        unknown = sorted(set(cells_by_month) - set(MONTHS))
        if unknown:
            raise ValidationError(
                what=f"Invalid month keys: {unknown}",
                cause="Months must be integers from 1 to 12",
                fix="Key the cell arrays by calendar month number",
            )

        samples: dict[int, FloatArray] = {}
        counts: dict[int, int] = {}
        for month in MONTHS:
            cells = cells_by_month.get(month, [])
            raw: list[Any] = [np.asarray(c, dtype=np.float64).ravel() for c in cells]
            pooled = np.concatenate(raw) if raw else np.array([], dtype=np.float64)
            counts[month] = int(pooled.size)
            samples[month] = drop_missing(pooled, self.sentinel)
        return self._build(samples, counts, units=units)

    def _build(
        self,
        samples: Mapping[int, FloatArray],
        counts: Mapping[int, int],
        *,
        units: str,
    ) -> PercentileSet:
        values: dict[int, tuple[float, ...]] = {}
        gaps: list[MonthGap] = []
        for month in MONTHS:
            month_values = samples[month]
            if month_values.size == 0:
                gaps.append(MonthGap(month=month, sample_count=counts[month]))
                continue
            values[month] = linear_percentiles(month_values, self.levels)

        if gaps:
            logger.warning(
                "No valid samples for month(s) %s; percentiles omitted",
                ", ".join(str(g.month) for g in gaps),
            )

        return PercentileSet(
            levels=self.levels,
            values=values,
            months_with_data=tuple(sorted(values)),
            gaps=tuple(gaps),
            units=units,
        )


def monthly_percentiles(
    series: SampleSeries,
    levels: Sequence[float] | None = None,
    *,
    config: Config | None = None,
) -> PercentileSet:
    """Compute calendar-month percentile bands for a point series.

    Example:
        >>> bands = monthly_percentiles(series, [10, 50, 90])  # doctest: +SKIP
        >>> bands.for_month(7)[50.0]  # doctest: +SKIP
        293.4
    """
    return PercentileAggregator(levels, config=config).aggregate(series)


def pooled_monthly_percentiles(
    cells_by_month: Mapping[int, Sequence[npt.ArrayLike]],
    levels: Sequence[float] | None = None,
    *,
    sentinel: float | None = None,
    units: str = "",
    config: Config | None = None,
) -> PercentileSet:
    """Compute calendar-month percentile bands over pooled grid cells."""
    aggregator = PercentileAggregator(levels, sentinel=sentinel, config=config)
    return aggregator.aggregate_cells(cells_by_month, units=units)
