"""Top-level convenience functions for climatecore.

These functions accept either a ``SampleSeries`` or the raw JSON payload
returned by the data API, so a fetch result can be analysed in one call.

Example:
    >>> import climatecore as cc
    >>> payload = {"times": [...], "values": [...], "units": "K"}
    >>> trend = cc.trend(payload)
    >>> bands = cc.percentiles(payload, levels=[10, 50, 90])
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Union

from climatecore._types import GridData, TimeLike
from climatecore.analysis.anomaly import AnomalyKind, PeriodLike, compute_anomaly
from climatecore.analysis.percentiles import monthly_percentiles
from climatecore.analysis.regional import BBoxLike, summarize_region
from climatecore.analysis.trend import estimate_trend
from climatecore.config import Config, get_default_config
from climatecore.results import Anomaly, PercentileSet, RegionalStats, TrendResult
from climatecore.series import SampleSeries

SeriesLike = Union[SampleSeries, Mapping[str, Any]]


def _resolve_series(data: SeriesLike, config: Config | None = None) -> SampleSeries:
    """Return *data* as a ``SampleSeries``.

    Payloads are parsed with the configured missing-value sentinel.

    Raises:
        TypeError: If *data* is neither a series nor a mapping.
    """
    if isinstance(data, SampleSeries):
        return data
    if isinstance(data, Mapping):
        cfg = config if config is not None else get_default_config()
        return SampleSeries.from_payload(dict(data), sentinel=cfg.missing_value_sentinel)
    raise TypeError(
        f"expected a SampleSeries or a timeseries payload mapping, got {type(data).__name__}"
    )


def trend(
    data: SeriesLike,
    *,
    alpha: float | None = None,
    config: Config | None = None,
) -> TrendResult:
    """Estimate the linear trend of a point time series.

    Args:
        data: ``SampleSeries`` or ``{"times", "values", "units"}`` payload.
        alpha: Significance threshold override.
        config: Optional configuration override.

    Returns:
        ``TrendResult`` with slope per year, p-value and interval.
    """
    return estimate_trend(_resolve_series(data, config), alpha=alpha, config=config)


def percentiles(
    data: SeriesLike,
    levels: Sequence[float] | None = None,
    *,
    config: Config | None = None,
) -> PercentileSet:
    """Compute calendar-month percentile bands for a point time series."""
    return monthly_percentiles(_resolve_series(data, config), levels, config=config)


def regional_stats(
    grid: GridData | Mapping[str, Any],
    bbox: BBoxLike,
    *,
    levels: Sequence[float] | None = None,
    config: Config | None = None,
) -> RegionalStats:
    """Summarise a grid slice inside a bounding box.

    Args:
        grid: ``GridData`` or ``{"lats", "lons", "values"}`` payload.
        bbox: ``BoundingBox``, ``{west, south, east, north}`` or a 4-tuple.
        levels: Extra percentile levels to report.
        config: Optional configuration override.
    """
    return summarize_region(grid, bbox, levels=levels, config=config)


def anomaly(
    data: SeriesLike,
    time: TimeLike,
    *,
    kind: AnomalyKind = "absolute",
    reference_period: PeriodLike | None = None,
    config: Config | None = None,
) -> Anomaly:
    """Compute and classify the anomaly of the sample at *time*."""
    return compute_anomaly(
        _resolve_series(data, config),
        time,
        kind=kind,
        reference_period=reference_period,
    )
