"""climatecore — client-side climate analytics for map and globe viewers.

Example:
    >>> import climatecore as cc
    >>>
    >>> series = cc.SampleSeries.create(times, values, units="K")
    >>> result = cc.trend(series)
    >>> print(f"{result.slope_per_decade:.2f} K/decade, p={result.p_value:.3f}")
    >>>
    >>> stats = cc.regional_stats(grid_payload, (-10, 35, 30, 60))
    >>> clock = cc.AnimationClock("2020-01-01", "2024-12-31")
"""

from climatecore.__about__ import __version__
from climatecore._types import GridData
from climatecore.animation import AnimationClock
from climatecore.api import anomaly, percentiles, regional_stats, trend
from climatecore.config import Config, configure
from climatecore.exceptions import (
    ClimateCoreError,
    ConfigurationError,
    EmptyRegionError,
    InsufficientDataError,
    ValidationError,
)
from climatecore.results import (
    AnimationState,
    Anomaly,
    BoundingBox,
    Climatology,
    PercentileSet,
    RegionalStats,
    TrendResult,
)
from climatecore.series import SampleSeries
from climatecore.units import convert_temperature

__all__ = [
    # Version
    "__version__",
    # Semantic API (top-level functions)
    "anomaly",
    "percentiles",
    "regional_stats",
    "trend",
    # Inputs
    "GridData",
    "SampleSeries",
    # Animation
    "AnimationClock",
    # Configuration
    "Config",
    "configure",
    # Results
    "AnimationState",
    "Anomaly",
    "BoundingBox",
    "Climatology",
    "PercentileSet",
    "RegionalStats",
    "TrendResult",
    # Units
    "convert_temperature",
    # Exceptions
    "ClimateCoreError",
    "ConfigurationError",
    "EmptyRegionError",
    "InsufficientDataError",
    "ValidationError",
]
