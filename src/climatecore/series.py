"""Immutable time series of samples for one location and variable.

A ``SampleSeries`` is built once from an external fetch result and never
mutated. Missing observations are tracked in a boolean mask rather than
being dropped, so positions stay aligned with the source payload.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt
import pandas as pd

from climatecore.exceptions import ValidationError

if TYPE_CHECKING:
    from climatecore._types import FloatArray, SampleRecord, TimeLike

logger = logging.getLogger(__name__)

_DAYS_PER_YEAR = 365.25
_NS_PER_DAY = 86_400 * 10**9


def parse_time(value: TimeLike) -> pd.Timestamp:
    """Convert *value* to a timezone-naive UTC ``pandas.Timestamp``.

    Args:
        value: ISO-8601 string, ``date``, ``datetime`` or ``datetime64``.

    Returns:
        Naive timestamp; aware inputs are converted to UTC first.

    Raises:
        ValidationError: If *value* cannot be interpreted as a timestamp.

    Example:
        >>> parse_time("2024-03-01T06:00:00Z")
        Timestamp('2024-03-01 06:00:00')
    """
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as exc:
        raise ValidationError(
            what=f"Invalid timestamp: {value!r}",
            cause=str(exc),
            fix="Use ISO-8601 dates such as '2024-01-31'",
        ) from None
    if pd.isna(ts):
        raise ValidationError(
            what=f"Invalid timestamp: {value!r}",
            cause="Value parses to 'not a time'",
            fix="Use ISO-8601 dates such as '2024-01-31'",
        )
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def _readonly(array: npt.NDArray[Any]) -> npt.NDArray[Any]:
    out = array.copy()
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class SampleSeries:
    """Ordered ``(timestamp, value)`` samples with a missing-value mask.

    Use :meth:`create`, :meth:`from_records` or :meth:`from_payload`
    rather than the constructor; they normalise timestamps and resolve
    sentinels.

    Attributes:
        times: Strictly increasing ``datetime64[ns]`` timestamps.
        values: Sample values (float64), same length as ``times``.
        missing: ``True`` where the sample is not an observation.
        units: Physical units of ``values``.
        variable: Variable name.

    Example:
        >>> s = SampleSeries.create(["2020-01-01", "2020-02-01"], [1.0, 2.0])
        >>> len(s), s.valid_count
        (2, 2)
    """

    times: npt.NDArray[np.datetime64]
    values: FloatArray
    missing: npt.NDArray[np.bool_]
    units: str = ""
    variable: str = ""

    def __post_init__(self) -> None:
        times = np.asarray(self.times, dtype="datetime64[ns]")
        values = np.asarray(self.values, dtype=np.float64)
        missing = np.asarray(self.missing, dtype=bool)

        if times.ndim != 1 or values.ndim != 1 or missing.ndim != 1:
            raise ValidationError(
                what="Sample arrays must be one-dimensional",
                cause=f"Got shapes {times.shape}, {values.shape}, {missing.shape}",
                fix="Pass flat sequences of timestamps and values",
            )
        if not len(times) == len(values) == len(missing):
            raise ValidationError(
                what="Sample lengths do not match",
                cause=(
                    f"{len(times)} timestamps, {len(values)} values, "
                    f"{len(missing)} missing flags"
                ),
                fix="Pass exactly one value per timestamp",
            )
        if len(times) > 1:
            steps = np.diff(times.astype(np.int64))
            bad = np.flatnonzero(steps <= 0)
            if bad.size:
                i = int(bad[0])
                raise ValidationError(
                    what="Timestamps are not strictly increasing",
                    cause=(
                        f"Sample {i + 1} ({pd.Timestamp(times[i + 1]).isoformat()}) "
                        f"does not follow sample {i} ({pd.Timestamp(times[i]).isoformat()})"
                    ),
                    fix="Sort samples by time and remove duplicates",
                )

        object.__setattr__(self, "times", _readonly(times))
        object.__setattr__(self, "values", _readonly(values))
        object.__setattr__(self, "missing", _readonly(missing | np.isnan(values)))

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def create(
        cls,
        times: Sequence[TimeLike],
        values: Sequence[float | None],
        missing: Sequence[bool] | None = None,
        *,
        sentinel: float | None = None,
        units: str = "",
        variable: str = "",
    ) -> SampleSeries:
        """Validate and build a series.

        Args:
            times: Timestamps, strictly increasing.
            values: One value per timestamp; ``None`` and NaN are missing.
            missing: Optional explicit missing flags.
            sentinel: Value that marks a missing observation.
            units: Physical units of *values*.
            variable: Variable name.

        Returns:
            A new immutable ``SampleSeries``.

        Raises:
            ValidationError: On length mismatch, non-numeric values, or
                unparsable or unordered timestamps.
        """
        if len(times) != len(values):
            raise ValidationError(
                what="Sample lengths do not match",
                cause=f"{len(times)} timestamps but {len(values)} values",
                fix="Pass exactly one value per timestamp",
            )
        if missing is not None and len(missing) != len(values):
            raise ValidationError(
                what="Sample lengths do not match",
                cause=f"{len(values)} values but {len(missing)} missing flags",
                fix="Pass exactly one missing flag per value",
            )

        parsed = np.array([parse_time(t).to_datetime64() for t in times], dtype="datetime64[ns]")
        raw = np.empty(len(values), dtype=np.float64)
        for i, v in enumerate(values):
            try:
                raw[i] = math.nan if v is None else float(v)
            except (ValueError, TypeError) as exc:
                raise ValidationError(
                    what=f"Invalid sample value at index {i}: {v!r}",
                    cause=str(exc),
                    fix="Pass numbers, or None for a missing observation",
                ) from None

        mask = np.zeros(len(raw), dtype=bool) if missing is None else np.asarray(missing, dtype=bool)
        if sentinel is not None and not math.isnan(sentinel):
            mask = mask | (raw == sentinel)

        return cls(times=parsed, values=raw, missing=mask, units=units, variable=variable)

    @classmethod
    def from_records(
        cls,
        records: Iterable[SampleRecord],
        *,
        sentinel: float | None = None,
        units: str = "",
        variable: str = "",
    ) -> SampleSeries:
        """Build a series from ``(timestamp, value, missing)`` tuples."""
        rows = list(records)
        return cls.create(
            [r[0] for r in rows],
            [r[1] for r in rows],
            [bool(r[2]) for r in rows],
            sentinel=sentinel,
            units=units,
            variable=variable,
        )

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        *,
        sentinel: float | None = None,
    ) -> SampleSeries:
        """Build a series from the point-timeseries API payload.

        Accepts ``{"times": [...], "values": [...], "units": ..., "variable": ...}``
        and also the nested ``{"data": {"times": ..., "values": ...}}`` form.
        ``null`` values are treated as missing.
        """
        data = payload.get("data", payload)
        return cls.create(
            data.get("times", []),
            data.get("values", []),
            sentinel=sentinel,
            units=str(payload.get("units", "")),
            variable=str(payload.get("variable", "")),
        )

    # ── Queries ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.times)

    def __repr__(self) -> str:
        if len(self) == 0:
            return "SampleSeries(empty)"
        start = pd.Timestamp(self.times[0]).date().isoformat()
        end = pd.Timestamp(self.times[-1]).date().isoformat()
        return f"SampleSeries({start}..{end}, samples={len(self)}, valid={self.valid_count})"

    @property
    def valid_mask(self) -> npt.NDArray[np.bool_]:
        """Boolean mask of samples that are real observations."""
        return ~self.missing

    @property
    def valid_count(self) -> int:
        return int(np.count_nonzero(~self.missing))

    @property
    def months(self) -> npt.NDArray[np.int64]:
        """Calendar month (1-12) of each sample."""
        return pd.DatetimeIndex(self.times).month.to_numpy(dtype=np.int64)

    @property
    def years(self) -> npt.NDArray[np.int64]:
        """Calendar year of each sample."""
        return pd.DatetimeIndex(self.times).year.to_numpy(dtype=np.int64)

    def decimal_years(self, origin: TimeLike | None = None) -> FloatArray:
        """Return sample times as fractional years since *origin*.

        Args:
            origin: Reference time; defaults to the first sample.

        Returns:
            ``(t - origin)`` in days divided by 365.25.
        """
        if len(self) == 0:
            return np.array([], dtype=np.float64)
        ref = self.times[0] if origin is None else parse_time(origin).to_datetime64()
        delta_ns = (self.times - np.datetime64(ref, "ns")).astype(np.int64)
        return delta_ns.astype(np.float64) / _NS_PER_DAY / _DAYS_PER_YEAR

    def slice_by_range(self, start: TimeLike, end: TimeLike) -> SampleSeries:
        """Return the samples with ``start <= time <= end``.

        Args:
            start: Inclusive lower bound.
            end: Inclusive upper bound.

        Returns:
            A new series, empty when the range does not overlap.

        Raises:
            ValidationError: If *start* is after *end*.
        """
        lo = parse_time(start).to_datetime64()
        hi = parse_time(end).to_datetime64()
        if lo > hi:
            raise ValidationError(
                what="Invalid date range",
                cause=f"Start {start} is after end {end}",
                fix="Swap the bounds or pass start <= end",
            )
        keep = (self.times >= lo) & (self.times <= hi)
        return SampleSeries(
            times=self.times[keep],
            values=self.values[keep],
            missing=self.missing[keep],
            units=self.units,
            variable=self.variable,
        )

    def has_gaps(self, max_interval_days: float) -> bool:
        """Return ``True`` if any adjacent samples are further apart than allowed.

        Args:
            max_interval_days: Largest acceptable spacing in days.

        Raises:
            ValidationError: If *max_interval_days* is not positive.
        """
        if not max_interval_days > 0:
            raise ValidationError(
                what=f"Invalid gap threshold: {max_interval_days}",
                cause="Threshold must be a positive number of days",
                fix="Pass e.g. 31 for monthly data",
            )
        if len(self) < 2:
            return False
        spacing = np.diff(self.times.astype(np.int64)).astype(np.float64) / _NS_PER_DAY
        widest = int(np.argmax(spacing))
        if spacing[widest] <= max_interval_days:
            return False
        logger.debug(
            "Widest gap %.1f days after %s exceeds %s days",
            spacing[widest],
            pd.Timestamp(self.times[widest]).date(),
            max_interval_days,
        )
        return True

    def valid(self) -> SampleSeries:
        """Return a copy holding only the non-missing samples."""
        keep = ~self.missing
        return SampleSeries(
            times=self.times[keep],
            values=self.values[keep],
            missing=self.missing[keep],
            units=self.units,
            variable=self.variable,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Export samples to a DataFrame with timestamp, value and missing columns."""
        return pd.DataFrame(
            {
                "timestamp": pd.DatetimeIndex(self.times),
                "value": self.values,
                "missing": self.missing,
            }
        )
