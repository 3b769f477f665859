"""
Seasonal Index

Average daily sales per season and weather for each category-location,
indexed against that category-location's baseline.
"""

from typing import Optional

import polars as pl
import structlog

from inventory_metrics.config import MetricsSettings
from .schema import SeasonalImpact, floored, net_revenue

logger = structlog.get_logger(__name__)

GROUP_COLUMNS = ["season", "weather", "category", "store_id", "region"]
BASELINE_COLUMNS = ["category", "store_id", "region"]


class SeasonalIndexCalculator:
    """
    Seasonal demand index per (season, weather, category, store, region).

    baseline       = mean(avg_daily_sales) over the category-location's rows
    seasonal_index = avg_daily_sales / max(baseline, sales_floor) * 100

    Example:
        calculator = SeasonalIndexCalculator(settings.metrics)
        seasonal = calculator.calculate(resolver.trailing_months(12))
    """

    def __init__(self, settings: Optional[MetricsSettings] = None):
        self.settings = settings or MetricsSettings()

    def impact(self, ratio: pl.Expr) -> pl.Expr:
        s = self.settings
        return (
            pl.when(ratio >= s.seasonal_high_ratio).then(pl.lit(SeasonalImpact.HIGH_IMPACT.value))
            .when(ratio >= s.seasonal_low_ratio).then(pl.lit(SeasonalImpact.NORMAL_IMPACT.value))
            .otherwise(pl.lit(SeasonalImpact.LOW_IMPACT.value))
        )

    def calculate(self, window: pl.DataFrame) -> pl.DataFrame:
        """Aggregate a category-enriched window into seasonal index rows"""
        seasonal = (
            window
            .filter(pl.col("season").is_not_null())
            .group_by(GROUP_COLUMNS)
            .agg([
                pl.col("units_sold").sum().alias("total_units_sold"),
                net_revenue().sum().alias("total_revenue"),
                pl.col("units_sold").mean().alias("avg_daily_sales"),
                pl.col("inventory_level").mean().alias("avg_inventory_level"),
                pl.col("date").n_unique().alias("days_count"),
            ])
        )

        seasonal = seasonal.with_columns(
            pl.col("avg_daily_sales").mean().over(BASELINE_COLUMNS).alias("category_baseline")
        )

        ratio = pl.col("avg_daily_sales") / floored(pl.col("category_baseline"), self.settings.sales_floor)
        seasonal = seasonal.with_columns(
            (ratio * 100).alias("seasonal_index"),
            self.impact(ratio).alias("impact_classification"),
        )

        logger.debug("Calculated seasonal index", rows=len(seasonal))
        return seasonal.sort(["category", "season", "weather", "store_id", "region"], nulls_last=True)
