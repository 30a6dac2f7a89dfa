"""Deterministic animation clock for stepping through a date range.

The clock owns no timer. The caller runs its own periodic callback,
passes the elapsed wall time to :meth:`AnimationClock.tick`, and calls
:meth:`AnimationClock.pause` (or leaves :meth:`AnimationClock.running`)
before discarding the clock.

Playback loops: a step that would move the cursor past ``end_time``
wraps it back to ``start_time`` instead of stopping.

Example:
    >>> clock = AnimationClock("2020-01-01", "2020-12-31", speed=1.0)
    >>> with clock.running():
    ...     state = clock.tick(2.0)
    >>> state.current_time.isoformat()
    '2020-03-01'
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import TYPE_CHECKING, get_args

import pandas as pd

from climatecore.config import Config, StepUnit, get_default_config
from climatecore.exceptions import ValidationError
from climatecore.results import AnimationState
from climatecore.series import parse_time

if TYPE_CHECKING:
    from climatecore._types import TimeLike

logger = logging.getLogger(__name__)

_STEP_UNITS: tuple[str, ...] = get_args(StepUnit)


def _step_offset(unit: StepUnit, count: int) -> pd.DateOffset:
    if unit == "day":
        return pd.DateOffset(days=count)
    if unit == "month":
        return pd.DateOffset(months=count)
    return pd.DateOffset(years=count)


def _to_day(value: TimeLike) -> pd.Timestamp:
    return parse_time(value).normalize()


class AnimationClock:
    """Time cursor over ``[start_time, end_time]`` with play/pause/seek.

    States are ``idle`` (not playing) and ``running`` (playing). The
    cursor advances in whole calendar steps; fractional progress from
    :meth:`tick` accumulates until a full step completes. Month and year
    steps are measured from the last seek position, so day-of-month
    clamping (Jan 31 -> Feb 29) never drifts later steps.

    Args:
        start: First date of the range; defaults to ``animation_start``.
        end: Last date of the range; defaults to ``animation_end``.
        speed: Steps per second; defaults to ``animation_speed``.
        step_unit: ``"day"``, ``"month"`` or ``"year"``; defaults to
            ``animation_step_unit``.
        config: Configuration snapshot; defaults to the module default.

    Raises:
        ValidationError: If the range is reversed, the speed is not
            positive, or the step unit is unknown.
    """

    def __init__(
        self,
        start: TimeLike | None = None,
        end: TimeLike | None = None,
        *,
        speed: float | None = None,
        step_unit: StepUnit | None = None,
        config: Config | None = None,
    ) -> None:
        cfg = config if config is not None else get_default_config()
        self._start, self._end = self._check_range(
            cfg.animation_start if start is None else start,
            cfg.animation_end if end is None else end,
        )
        self._speed = self._check_speed(cfg.animation_speed if speed is None else speed)
        self._unit: StepUnit = self._check_unit(
            cfg.animation_step_unit if step_unit is None else step_unit
        )
        self._playing = False
        self._anchor = self._start
        self._steps = 0
        self._pending = 0.0
        self._cycle: int | None = None

    # ── Validation ────────────────────────────────────────────────────

    @staticmethod
    def _check_range(start: TimeLike, end: TimeLike) -> tuple[pd.Timestamp, pd.Timestamp]:
        lo, hi = _to_day(start), _to_day(end)
        if lo > hi:
            raise ValidationError(
                what="Invalid animation range",
                cause=f"Start {lo.date().isoformat()} is after end {hi.date().isoformat()}",
                fix="Pass start <= end",
            )
        return lo, hi

    @staticmethod
    def _check_speed(speed: float) -> float:
        if not (speed > 0 and math.isfinite(speed)):
            raise ValidationError(
                what=f"Invalid animation speed: {speed}",
                cause="Speed must be a finite number greater than 0",
                fix="Pass a positive number of steps per second, e.g. 2",
            )
        return float(speed)

    @staticmethod
    def _check_unit(unit: str) -> StepUnit:
        if unit not in _STEP_UNITS:
            raise ValidationError(
                what=f"Invalid animation step unit: {unit!r}",
                cause=f"Supported units: {list(_STEP_UNITS)}",
                fix="Use 'day', 'month' or 'year'",
            )
        return unit  # type: ignore[return-value]

    # ── State ─────────────────────────────────────────────────────────

    @property
    def current_time(self) -> date:
        return self._cursor().date()

    @property
    def start_time(self) -> date:
        return self._start.date()

    @property
    def end_time(self) -> date:
        return self._end.date()

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def state(self) -> str:
        """``"running"`` while playing, otherwise ``"idle"``."""
        return "running" if self._playing else "idle"

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def step_unit(self) -> StepUnit:
        return self._unit

    @property
    def progress(self) -> float:
        """Fraction of the range before the cursor, in [0, 1]."""
        span = (self._end - self._start).total_seconds()
        if span == 0:
            return 0.0
        return (self._cursor() - self._start).total_seconds() / span

    def snapshot(self) -> AnimationState:
        """Return an immutable copy of the clock state."""
        return AnimationState(
            current_time=self.current_time,
            start_time=self.start_time,
            end_time=self.end_time,
            playing=self._playing,
            speed=self._speed,
            step_unit=self._unit,
        )

    def __repr__(self) -> str:
        return (
            f"AnimationClock({self.start_time}..{self.end_time}, "
            f"current={self.current_time}, {self.state}, speed={self._speed})"
        )

    # ── Transitions ───────────────────────────────────────────────────

    def play(self) -> AnimationState:
        """Start playback; no-op if already running."""
        if not self._playing:
            self._playing = True
            logger.debug("Animation playing from %s", self.current_time)
        return self.snapshot()

    def pause(self) -> AnimationState:
        """Stop playback; no-op if already idle.

        Accumulated fractional progress is kept, so play/pause/play
        resumes exactly where it left off.
        """
        if self._playing:
            self._playing = False
            logger.debug("Animation paused at %s", self.current_time)
        return self.snapshot()

    @contextmanager
    def running(self) -> Iterator[AnimationClock]:
        """Play for the duration of a ``with`` block, then always pause."""
        self.play()
        try:
            yield self
        finally:
            self.pause()

    def seek(self, time: TimeLike) -> AnimationState:
        """Move the cursor to *time*, clamped to the range.

        Valid in either state; does not change ``playing``. Pending
        fractional progress is discarded.
        """
        target = _to_day(time)
        clamped = min(max(target, self._start), self._end)
        if clamped != target:
            logger.debug("Seek to %s clamped to %s", target.date(), clamped.date())
        self._anchor = clamped
        self._steps = 0
        self._pending = 0.0
        return self.snapshot()

    def seek_fraction(self, fraction: float) -> AnimationState:
        """Seek to a position given as a fraction of the range.

        Maps a timeline slider in [0, 1] onto a date; values outside
        are clamped.

        Raises:
            ValidationError: If *fraction* is NaN or infinite.
        """
        if not math.isfinite(fraction):
            raise ValidationError(
                what=f"Invalid timeline position: {fraction}",
                cause="Position must be a finite number",
                fix="Pass a value between 0 and 1",
            )
        fraction = min(max(fraction, 0.0), 1.0)
        target = self._start + (self._end - self._start) * fraction
        return self.seek(target.floor("D"))

    def set_speed(self, speed: float) -> AnimationState:
        """Change playback speed (steps per second).

        Raises:
            ValidationError: If *speed* is not a finite positive number.
        """
        self._speed = self._check_speed(speed)
        return self.snapshot()

    def set_step_unit(self, unit: StepUnit) -> AnimationState:
        """Change the calendar step; the cursor stays where it is."""
        self._unit = self._check_unit(unit)
        self._cycle = None
        return self.seek(self._cursor())

    def set_range(self, start: TimeLike, end: TimeLike) -> AnimationState:
        """Replace the range, clamping the cursor into it."""
        cursor = self._cursor()
        self._start, self._end = self._check_range(start, end)
        self._cycle = None
        return self.seek(cursor)

    def tick(self, elapsed_seconds: float) -> AnimationState:
        """Advance by ``elapsed_seconds × speed`` steps while running.

        Whole steps move the cursor; the remainder is carried to the next
        tick. A step past ``end_time`` wraps to ``start_time``. While
        idle this is a no-op.

        Raises:
            ValidationError: If *elapsed_seconds* is negative or not finite.
        """
        if not (elapsed_seconds >= 0 and math.isfinite(elapsed_seconds)):
            raise ValidationError(
                what=f"Invalid elapsed time: {elapsed_seconds}",
                cause="Elapsed time must be a finite, non-negative number of seconds",
                fix="Pass the seconds since the previous tick",
            )
        if not self._playing:
            return self.snapshot()

        self._pending += elapsed_seconds * self._speed
        whole = int(math.floor(self._pending))
        self._pending -= whole
        if whole:
            self._advance(whole)
        return self.snapshot()

    # ── Internals ─────────────────────────────────────────────────────

    def _cursor(self) -> pd.Timestamp:
        if self._steps == 0:
            return self._anchor
        return self._anchor + _step_offset(self._unit, self._steps)

    def _advance(self, count: int) -> None:
        room = self._last_step(self._anchor) - self._steps
        if count <= room:
            self._steps += count
            return
        # One step past the last position wraps to the start.
        logger.debug("Animation reached %s, looping to start", self.end_time)
        count -= room + 1
        self._anchor = self._start
        self._steps = count % self._cycle_length()

    def _last_step(self, anchor: pd.Timestamp) -> int:
        """Largest step count from *anchor* that stays within ``end_time``."""
        end = self._end
        if self._unit == "day":
            return (end - anchor).days
        months = (end.year - anchor.year) * 12 + (end.month - anchor.month)
        last = months if self._unit == "month" else months // 12
        if anchor + _step_offset(self._unit, last) > end:
            last -= 1
        return last

    def _cycle_length(self) -> int:
        """Number of distinct cursor positions from the start of the range."""
        if self._cycle is None:
            self._cycle = self._last_step(self._start) + 1
        return self._cycle
