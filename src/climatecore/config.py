"""Configuration management for climatecore.

Every analysis function accepts an explicit ``config`` and otherwise
captures the module-level default at call time, so later ``configure()``
calls never change the meaning of results already computed.
"""

from __future__ import annotations

import json
import logging
import math
import os
from datetime import date
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from climatecore.exceptions import ConfigurationError

logger = logging.getLogger("climatecore")

_CONFIG_ENV_VAR = "CLIMATECORE_CONFIG"
_DEFAULT_CONFIG_PATH = Path("~/.climatecore/config.json")

StepUnit = Literal["day", "month", "year"]

DEFAULT_PERCENTILE_LEVELS: tuple[float, ...] = (10.0, 25.0, 50.0, 75.0, 90.0, 95.0, 99.0)


def check_percentile_levels(levels: tuple[float, ...] | list[float]) -> tuple[float, ...]:
    """Return *levels* as a tuple if they are usable percentile levels.

    Levels must be non-empty, finite, strictly increasing and lie in the
    open interval (0, 100).

    Raises:
        ValueError: If any of the above does not hold.
    """
    result = tuple(float(level) for level in levels)
    if not result:
        msg = "percentile levels must not be empty"
        raise ValueError(msg)
    for level in result:
        if not math.isfinite(level) or not 0.0 < level < 100.0:
            msg = f"percentile level {level} is outside (0, 100)"
            raise ValueError(msg)
    for lower, upper in zip(result, result[1:]):
        if upper <= lower:
            msg = "percentile levels must be strictly increasing"
            raise ValueError(msg)
    return result


class Config(BaseModel):
    """Analytics configuration model.

    Immutable pydantic model. Fields also accept the camelCase keys used by
    the front end (``significanceAlpha`` and so on).

    Args:
        significance_alpha: Threshold below which a trend p-value is
            reported as significant.
        percentile_levels: Ordered percentile levels for banding.
        animation_step_unit: Calendar step the animation clock advances by.
        missing_value_sentinel: Value meaning "no observation", or ``None``
            to rely on NaN and explicit missing flags only.
        animation_speed: Default clock speed in steps per second.
        animation_start: Default first date of the animation range.
        animation_end: Default last date of the animation range.

    Example:
        >>> cfg = Config(significance_alpha=0.01)
        >>> cfg.animation_step_unit
        'month'
    """

    model_config = ConfigDict(
        frozen=True,
        validate_default=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    significance_alpha: float = 0.05
    percentile_levels: tuple[float, ...] = DEFAULT_PERCENTILE_LEVELS
    animation_step_unit: StepUnit = "month"
    missing_value_sentinel: float | None = None
    animation_speed: float = 2.0
    animation_start: date = date(2020, 1, 1)
    animation_end: date = date(2024, 12, 31)

    @field_validator("significance_alpha")
    @classmethod
    def _validate_alpha(cls, v: float) -> float:
        """Ensure alpha is a probability strictly between 0 and 1."""
        if not 0.0 < v < 1.0:
            msg = "significance_alpha must be between 0 and 1 (exclusive)"
            raise ValueError(msg)
        return v

    @field_validator("percentile_levels")
    @classmethod
    def _validate_levels(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        return check_percentile_levels(v)

    @field_validator("animation_speed")
    @classmethod
    def _validate_speed(cls, v: float) -> float:
        """Ensure speed is positive."""
        if v <= 0:
            msg = "animation_speed must be greater than 0"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _validate_range(self) -> Config:
        if self.animation_start > self.animation_end:
            msg = "animation_start must not be after animation_end"
            raise ValueError(msg)
        return self


_default_config = Config()


def configure(**kwargs: Any) -> None:
    """Set module-level default configuration.

    Creates a new ``Config`` from the current defaults merged with
    the provided keyword arguments.

    Args:
        **kwargs: Any ``Config`` field (e.g. ``significance_alpha``,
            ``percentile_levels``, ``animation_step_unit``).

    Raises:
        pydantic.ValidationError: If a provided value fails validation.

    Example:
        >>> configure(significance_alpha=0.1, animation_step_unit="year")
    """
    global _default_config  # noqa: PLW0603
    current = _default_config.model_dump()
    current.update(kwargs)
    _default_config = Config(**current)
    logger.debug("Default configuration updated: %s", sorted(kwargs))


def get_default_config() -> Config:
    """Return the current module-level default configuration."""
    return _default_config


def resolve_config_path(explicit: Path | None = None) -> Path | None:
    """Resolve the configuration file path.

    Resolution order:
        1. *explicit* argument (highest priority)
        2. ``CLIMATECORE_CONFIG`` environment variable
        3. Default ``~/.climatecore/config.json``

    Args:
        explicit: An explicitly requested path.

    Returns:
        Resolved ``Path``, or ``None`` if no file exists at the chosen
        location.
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
    elif os.environ.get(_CONFIG_ENV_VAR):
        path = Path(os.environ[_CONFIG_ENV_VAR]).expanduser()
    else:
        path = _DEFAULT_CONFIG_PATH.expanduser()

    if not path.exists():
        return None
    return path


def load_config(path: Path | str) -> Config:
    """Load a ``Config`` from a JSON file.

    Keys may be given either as field names (``significance_alpha``) or
    in the front end's camelCase form (``significanceAlpha``).

    Args:
        path: Absolute or ``~``-expanded path to the JSON file.

    Returns:
        Parsed and validated configuration.

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, is
            not a JSON object, or contains invalid settings.
    """
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            what="Cannot read configuration file",
            cause=f"File not found: {resolved}",
            fix=f"Create {resolved} or unset the {_CONFIG_ENV_VAR} environment variable",
        ) from None
    except PermissionError:
        raise ConfigurationError(
            what="Cannot read configuration file",
            cause=f"Permission denied: {resolved}",
            fix=f"Check file permissions on {resolved}",
        ) from None

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            what="Invalid configuration file format",
            cause=f"JSON parse error in {resolved}: {exc}",
            fix='Ensure the file contains a JSON object such as {"significanceAlpha": 0.05}',
        ) from None

    if not isinstance(parsed, dict):
        raise ConfigurationError(
            what="Invalid configuration file format",
            cause=f"Expected a JSON object in {resolved}, got {type(parsed).__name__}",
            fix='Ensure the file contains a JSON object such as {"significanceAlpha": 0.05}',
        )

    try:
        return Config.model_validate(parsed)
    except ValueError as exc:
        raise ConfigurationError(
            what="Invalid configuration values",
            cause=f"{resolved}: {exc}",
            fix="Correct the listed settings",
        ) from exc
