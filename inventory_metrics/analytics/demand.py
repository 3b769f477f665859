"""
Demand Statistics

Per-key mean and sample standard deviation of daily unit sales over a
trailing window, with a proportional fallback when the deviation is undefined.
"""

import polars as pl
import structlog

from .schema import ENTITY_KEY

logger = structlog.get_logger(__name__)


class DemandStatisticsEstimator:
    """
    Estimates daily demand statistics per (store, region, product).

    Output columns:
    - avg_daily_sales: arithmetic mean of units_sold
    - stddev_sales: sample standard deviation (null when undefined)
    - effective_stddev: stddev_sales, or fallback_factor * mean when undefined
    - sample_days: distinct observation dates in the window

    Example:
        estimator = DemandStatisticsEstimator(min_sample_days=30)
        stats = estimator.estimate(resolver.trailing_window(90))
        eligible = estimator.eligible(stats)
    """

    def __init__(
        self,
        min_sample_days: int = 30,
        fallback_factor: float = 0.3,
    ):
        self.min_sample_days = min_sample_days
        self.fallback_factor = fallback_factor

    def estimate(self, window: pl.DataFrame) -> pl.DataFrame:
        """Compute demand statistics for every key present in the window"""
        stats = window.group_by(ENTITY_KEY).agg([
            pl.col("units_sold").mean().alias("avg_daily_sales"),
            pl.col("units_sold").std(ddof=1).alias("stddev_sales"),
            pl.col("date").n_unique().alias("sample_days"),
        ])

        # Fallback is evaluated per row, so one sparse key never affects another
        undefined = pl.col("stddev_sales").is_null() | pl.col("stddev_sales").is_nan()
        stats = stats.with_columns(
            pl.when(undefined)
            .then(pl.col("avg_daily_sales") * self.fallback_factor)
            .otherwise(pl.col("stddev_sales"))
            .alias("effective_stddev"),
            pl.when(undefined)
            .then(None)
            .otherwise(pl.col("stddev_sales"))
            .alias("stddev_sales"),
        )

        return stats.sort(ENTITY_KEY)

    def eligible(self, stats: pl.DataFrame) -> pl.DataFrame:
        """Keep keys with enough history for reorder analysis"""
        eligible = stats.filter(pl.col("sample_days") >= self.min_sample_days)

        excluded = len(stats) - len(eligible)
        if excluded:
            logger.info(
                "Excluded keys below minimum sample",
                excluded=excluded,
                min_sample_days=self.min_sample_days,
            )

        return eligible
