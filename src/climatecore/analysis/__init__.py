"""Statistical analysis over sample series and grids."""

from climatecore.analysis.anomaly import compute_anomaly, monthly_climatology
from climatecore.analysis.percentiles import (
    PercentileAggregator,
    monthly_percentiles,
    pooled_monthly_percentiles,
)
from climatecore.analysis.regional import RegionalSummarizer, summarize_region
from climatecore.analysis.trend import TrendEstimator, estimate_trend

__all__ = [
    "PercentileAggregator",
    "RegionalSummarizer",
    "TrendEstimator",
    "compute_anomaly",
    "estimate_trend",
    "monthly_climatology",
    "monthly_percentiles",
    "pooled_monthly_percentiles",
    "summarize_region",
]
