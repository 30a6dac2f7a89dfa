"""Monthly climatology and anomaly classification.

Pure computation module. A climatology holds, for each calendar month,
the mean and population standard deviation of the valid samples whose
year falls inside a reference period. Anomalies are departures of single
samples from their month's normal.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Literal, Union

import numpy as np

from climatecore._types import YearPeriod
from climatecore.analysis.percentiles import MONTHS
from climatecore.exceptions import InsufficientDataError, ValidationError
from climatecore.results import (
    Anomaly,
    AnomalyClassification,
    Climatology,
    MonthlyNormal,
    YearRange,
    _classify_departure,
)
from climatecore.series import parse_time

if TYPE_CHECKING:
    from climatecore._types import TimeLike
    from climatecore.series import SampleSeries

logger = logging.getLogger(__name__)

AnomalyKind = Literal["absolute", "standardized"]
PeriodLike = Union[YearRange, YearPeriod]

_STANDARDIZED_UNITS = "σ"


def _to_period(period: PeriodLike) -> YearRange:
    if isinstance(period, YearRange):
        start, end = period.start, period.end
    else:
        start, end = period
    if start > end:
        raise ValidationError(
            what=f"Invalid reference period: {start}-{end}",
            cause="Start year is after end year",
            fix="Pass (start_year, end_year) with start <= end",
        )
    return YearRange(start=int(start), end=int(end))


def monthly_climatology(
    series: SampleSeries,
    *,
    reference_period: PeriodLike | None = None,
) -> Climatology:
    """Compute per-month normals over a reference period.

    Args:
        series: Samples to summarise; missing entries are ignored.
        reference_period: Inclusive ``(start_year, end_year)``; defaults
            to the years spanned by the valid samples.

    Returns:
        ``Climatology`` with an entry for each month that has data.

    Raises:
        InsufficientDataError: If no valid samples fall in the period.
        ValidationError: If the period is reversed.
    """
    valid = series.valid_mask
    years = series.years

    if reference_period is None:
        if not np.any(valid):
            raise InsufficientDataError(
                what="Cannot compute a climatology",
                cause="The series has no valid samples",
                fix="Provide a series with observations",
                sample_count=0,
            )
        period = YearRange(start=int(years[valid].min()), end=int(years[valid].max()))
    else:
        period = _to_period(reference_period)

    in_period = valid & (years >= period.start) & (years <= period.end)
    if not np.any(in_period):
        raise InsufficientDataError(
            what="Cannot compute a climatology",
            cause=f"No valid samples between {period.start} and {period.end}",
            fix="Choose a reference period covered by the series",
            sample_count=0,
        )

    months = series.months
    normals: dict[int, MonthlyNormal] = {}
    for month in MONTHS:
        values = series.values[in_period & (months == month)]
        if values.size == 0:
            continue
        normals[month] = MonthlyNormal(
            mean=float(np.mean(values)),
            std=float(np.std(values)),
            count=int(values.size),
        )

    missing_months = [m for m in MONTHS if m not in normals]
    if missing_months:
        logger.warning("Climatology has no data for month(s) %s", missing_months)

    return Climatology(normals=normals, reference_period=period, units=series.units)


def compute_anomaly(
    series: SampleSeries,
    time: TimeLike,
    *,
    kind: AnomalyKind = "absolute",
    reference_period: PeriodLike | None = None,
    climatology: Climatology | None = None,
) -> Anomaly:
    """Compute the anomaly of the sample at *time*.

    The classification is always based on the standardized departure,
    whichever *kind* of value is reported.

    Args:
        series: Series containing the sample and its history.
        time: Timestamp of the sample; must match a sample exactly.
        kind: ``"absolute"`` (value minus normal, in series units) or
            ``"standardized"`` (departure divided by the month's std).
        reference_period: Years used for the normal when *climatology*
            is not given.
        climatology: Precomputed climatology to reuse.

    Raises:
        ValidationError: If *kind* is unknown or no sample is at *time*.
        InsufficientDataError: If the sample is missing, the month has no
            normal, or a standardized anomaly is requested for a month
            with zero spread.
    """
    if kind not in ("absolute", "standardized"):
        raise ValidationError(
            what=f"Unknown anomaly type: {kind!r}",
            cause="Supported types are 'absolute' and 'standardized'",
            fix="Pass kind='absolute' or kind='standardized'",
        )

    target = parse_time(time)
    hits = np.flatnonzero(series.times == target.to_datetime64())
    if hits.size == 0:
        raise ValidationError(
            what=f"No sample at {target.isoformat()}",
            cause="The requested time is not one of the series timestamps",
            fix="Pick a time from the series, e.g. the animation cursor",
        )
    index = int(hits[0])
    month = target.month
    if series.missing[index]:
        raise InsufficientDataError(
            what=f"Sample at {target.date().isoformat()} is missing",
            cause="The source reported no observation for this time",
            fix="Choose another time step",
            sample_count=0,
            month=month,
        )

    clim = climatology
    if clim is None:
        clim = monthly_climatology(series, reference_period=reference_period)
    normal = clim.normals.get(month)
    if normal is None:
        raise InsufficientDataError(
            what=f"No climatological normal for month {month}",
            cause=(
                f"No valid samples for month {month} between "
                f"{clim.reference_period.start} and {clim.reference_period.end}"
            ),
            fix="Widen the reference period",
            sample_count=0,
            month=month,
        )

    departure = float(series.values[index]) - normal.mean
    if normal.std > 0:
        z = departure / normal.std
    else:
        z = 0.0 if departure == 0 else math.copysign(math.inf, departure)

    if kind == "standardized":
        if normal.std == 0:
            raise InsufficientDataError(
                what=f"Cannot standardize the anomaly for month {month}",
                cause=f"All {normal.count} reference samples are identical",
                fix="Use kind='absolute' or a longer reference period",
                sample_count=normal.count,
                month=month,
            )
        value, units = z, _STANDARDIZED_UNITS
    else:
        value, units = departure, series.units

    level, label = _classify_departure(z)
    return Anomaly(
        time=target.date(),
        value=value,
        type=kind,
        units=units,
        reference_period=clim.reference_period,
        classification=AnomalyClassification(level=level, label=label),
    )
