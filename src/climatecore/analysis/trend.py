"""Ordinary least-squares trend estimation.

Pure computation module: a ``SampleSeries`` in, a ``TrendResult`` out.
Time is measured in fractional years since the first valid sample, so
slopes are in value units per year and the intercept is the fitted value
at the start of the record.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np
from scipy import stats

from climatecore.config import Config, get_default_config
from climatecore.exceptions import InsufficientDataError, ValidationError
from climatecore.results import ConfidenceInterval, TrendResult, YearRange

if TYPE_CHECKING:
    from climatecore.series import SampleSeries

logger = logging.getLogger(__name__)

MIN_TREND_SAMPLES = 3


class TrendEstimator:
    """Linear trend estimator with a fixed significance threshold.

    Args:
        alpha: Significance threshold; defaults to the configured
            ``significance_alpha``.
        config: Configuration snapshot; defaults to the module default.

    Raises:
        ValidationError: If *alpha* is not strictly between 0 and 1.

    Example:
        >>> estimator = TrendEstimator(alpha=0.01)
        >>> result = estimator.estimate(series)  # doctest: +SKIP
    """

    def __init__(self, alpha: float | None = None, config: Config | None = None) -> None:
        cfg = config if config is not None else get_default_config()
        alpha = cfg.significance_alpha if alpha is None else alpha
        if not 0.0 < alpha < 1.0:
            raise ValidationError(
                what=f"Invalid significance level: {alpha}",
                cause="alpha must be strictly between 0 and 1",
                fix="Pass e.g. alpha=0.05",
            )
        self.alpha = float(alpha)

    def __repr__(self) -> str:
        return f"TrendEstimator(alpha={self.alpha})"

    def estimate(self, series: SampleSeries) -> TrendResult:
        """Fit ``value = intercept + slope * years`` over the valid samples.

        The p-value is two-tailed from Student's t distribution with
        ``n - 2`` degrees of freedom; the confidence interval is
        ``slope ± t(1 - alpha/2, n - 2) * se(slope)``.

        Args:
            series: Samples to fit; missing entries are ignored.

        Returns:
            ``TrendResult``. Constant input gives slope 0 and p-value 1.

        Raises:
            InsufficientDataError: If fewer than 3 valid samples remain.
        """
        valid = series.valid()
        n = len(valid)
        if n < MIN_TREND_SAMPLES:
            raise InsufficientDataError(
                what="Not enough samples to estimate a trend",
                cause=f"{n} valid samples after removing missing values, need {MIN_TREND_SAMPLES}",
                fix="Widen the date range or choose a location with more observations",
                sample_count=n,
            )

        x = valid.decimal_years()
        y = valid.values
        years = valid.years
        period = YearRange(start=int(years[0]), end=int(years[-1]))
        slope_units = f"{series.units}/year" if series.units else ""

        if np.ptp(y) == 0.0:
            logger.warning("All %d samples are identical; reporting a flat trend", n)
            return TrendResult(
                slope=0.0,
                intercept=float(y[0]),
                p_value=1.0,
                significant=False,
                confidence_interval=ConfidenceInterval(lower=0.0, upper=0.0),
                period=period,
                std_error=0.0,
                r_squared=0.0,
                n_samples=n,
                alpha=self.alpha,
                slope_units=slope_units,
            )

        sum_x = float(np.sum(x))
        sum_y = float(np.sum(y))
        sum_xy = float(np.sum(x * y))
        sum_xx = float(np.sum(x * x))

        denominator = n * sum_xx - sum_x * sum_x
        slope = (n * sum_xy - sum_x * sum_y) / denominator
        intercept = (sum_y - slope * sum_x) / n

        residuals = y - (intercept + slope * x)
        sse = float(np.sum(residuals * residuals))
        sst = float(np.sum((y - sum_y / n) ** 2))
        dof = n - 2
        residual_se = math.sqrt(sse / dof)
        std_error = residual_se / math.sqrt(denominator / n)
        r_squared = 1.0 - sse / sst if sst > 0 else 0.0

        if std_error == 0.0:
            # Exact fit: every sample lies on the line.
            p_value = 0.0
            lower = upper = slope
        else:
            t_stat = slope / std_error
            p_value = float(min(max(2.0 * stats.t.sf(abs(t_stat), dof), 0.0), 1.0))
            margin = float(stats.t.ppf(1.0 - self.alpha / 2.0, dof)) * std_error
            lower, upper = slope - margin, slope + margin

        significant = p_value < self.alpha
        logger.debug(
            "Trend over %d samples: slope=%.6g se=%.3g p=%.3g significant=%s",
            n,
            slope,
            std_error,
            p_value,
            significant,
        )

        return TrendResult(
            slope=slope,
            intercept=intercept,
            p_value=p_value,
            significant=significant,
            confidence_interval=ConfidenceInterval(lower=lower, upper=upper),
            period=period,
            std_error=std_error,
            r_squared=r_squared,
            n_samples=n,
            alpha=self.alpha,
            slope_units=slope_units,
        )


def estimate_trend(
    series: SampleSeries,
    *,
    alpha: float | None = None,
    config: Config | None = None,
) -> TrendResult:
    """Estimate the linear trend of *series*.

    Convenience wrapper around ``TrendEstimator(alpha, config).estimate``.

    Example:
        >>> s = SampleSeries.create(
        ...     ["2000-01-01", "2001-01-01", "2002-01-01", "2003-01-01"],
        ...     [1.0, 2.0, 3.0, 4.0],
        ... )
        >>> round(estimate_trend(s).slope, 2)  # doctest: +SKIP
        1.0
    """
    return TrendEstimator(alpha=alpha, config=config).estimate(series)
