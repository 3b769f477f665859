"""
Rollup Aggregation

Reduces the per-entity result sets into organization, store, category and
season summaries with dense rankings and blended status labels.
"""

from datetime import date
from typing import Optional

import polars as pl
import structlog

from inventory_metrics.config import MetricsSettings
from .classification import ClassificationEngine
from .schema import (
    ABCClass,
    MovementType,
    OverallStatus,
    SeasonalImpact,
    SeasonClassification,
    StockStatus,
    STORE_KEY,
    floored,
    inventory_value,
    net_revenue,
    round_half_up,
)

logger = structlog.get_logger(__name__)

SLOW_MOVEMENT = [MovementType.SLOW_MOVER.value, MovementType.NON_MOVER.value]


def count_where(condition: pl.Expr) -> pl.Expr:
    """Number of rows matching a condition inside an aggregation"""
    return condition.cast(pl.Int64).sum()


def dense_rank(column: str, descending: bool = True) -> pl.Expr:
    """Dense rank: ties share a rank and no ranks are skipped"""
    return pl.col(column).rank(method="dense", descending=descending).cast(pl.Int64)


def fill_rate(critical: str, total: str) -> pl.Expr:
    """Percentage of items not in critical stock"""
    return (pl.col(total) - pl.col(critical)) / floored(pl.col(total).cast(pl.Float64), 1) * 100


class RollupAggregator:
    """
    Cross-entity reductions over the per-entity views.

    Every method reads finished result sets and never reaches back into the
    per-key calculators, so rollups can run once all partitions complete.

    Example:
        rollups = RollupAggregator(settings.metrics)
        stores = rollups.store_performance(snapshot, sales, turnover, stock_levels)
    """

    def __init__(self, settings: Optional[MetricsSettings] = None):
        self.settings = settings or MetricsSettings()
        self.classifier = ClassificationEngine(self.settings)

    def _sales_by(self, sales_window: pl.DataFrame, keys) -> pl.DataFrame:
        return sales_window.group_by(keys).agg([
            pl.col("units_sold").sum().alias("total_units_sold_90d"),
            net_revenue().sum().alias("total_revenue_90d"),
            pl.col("date").n_unique().alias("days_count"),
        ]).with_columns(
            (pl.col("total_units_sold_90d") / floored(pl.col("days_count").cast(pl.Float64), 1))
            .alias("avg_daily_sales"),
            (pl.col("total_revenue_90d") / floored(pl.col("days_count").cast(pl.Float64), 1))
            .alias("avg_daily_revenue"),
        )

    def _inventory_by(self, snapshot: pl.DataFrame, keys) -> pl.DataFrame:
        return snapshot.group_by(keys).agg([
            pl.col("product_id").n_unique().alias("unique_products"),
            pl.col("inventory_level").sum().alias("current_inventory_units"),
            inventory_value().sum().alias("current_inventory_value"),
        ])

    def _turnover_by(self, turnover: pl.DataFrame, keys) -> pl.DataFrame:
        return turnover.group_by(keys).agg([
            pl.col("inventory_turnover_ratio").mean().alias("inventory_turnover_ratio"),
            count_where(pl.col("movement_type") == MovementType.FAST_MOVER.value).alias("fast_movers"),
            count_where(pl.col("movement_type").is_in(SLOW_MOVEMENT)).alias("slow_movers"),
        ])

    def _stock_by(self, stock_levels: pl.DataFrame, keys) -> pl.DataFrame:
        return stock_levels.group_by(keys).agg([
            count_where(pl.col("stock_status") == StockStatus.CRITICAL.value).alias("critical_items"),
            count_where(pl.col("stock_status") == StockStatus.LOW.value).alias("low_items"),
            pl.len().cast(pl.Int64).alias("total_items"),
        ]).with_columns(
            (pl.col("critical_items") + pl.col("low_items")).alias("total_alerts"),
            fill_rate("critical_items", "total_items").alias("fill_rate_pct"),
        )

    # ------------------------------------------------------------------
    # Store and category performance
    # ------------------------------------------------------------------

    def store_performance(
        self,
        snapshot: pl.DataFrame,
        sales_window: pl.DataFrame,
        turnover: pl.DataFrame,
        stock_levels: pl.DataFrame,
        data_date: Optional[date] = None,
    ) -> pl.DataFrame:
        """Per store location; only locations present in every input appear"""
        stores = (
            self._inventory_by(snapshot, STORE_KEY)
            .join(self._sales_by(sales_window, STORE_KEY), on=STORE_KEY, how="inner")
            .join(self._turnover_by(turnover, STORE_KEY), on=STORE_KEY, how="inner")
            .join(self._stock_by(stock_levels, STORE_KEY), on=STORE_KEY, how="inner")
        )

        stores = stores.with_columns(
            dense_rank("inventory_turnover_ratio").alias("turnover_rank"),
            dense_rank("fill_rate_pct").alias("service_level_rank"),
            self.classifier.performance_rating("inventory_turnover_ratio").alias("performance_rating"),
            pl.lit(data_date, dtype=pl.Date).alias("data_updated_date"),
        )

        return stores.sort(
            ["inventory_turnover_ratio", *STORE_KEY],
            descending=[True, False, False],
        )

    def category_performance(
        self,
        snapshot: pl.DataFrame,
        sales_window: pl.DataFrame,
        turnover: pl.DataFrame,
        stock_levels: pl.DataFrame,
        abc: pl.DataFrame,
        data_date: Optional[date] = None,
    ) -> pl.DataFrame:
        """Per category; only categories present in every input appear"""
        keys = ["category"]
        abc_counts = abc.group_by(keys).agg([
            count_where(pl.col("abc_classification") == ABCClass.A.value).alias("class_a_count"),
            count_where(pl.col("abc_classification") == ABCClass.B.value).alias("class_b_count"),
            count_where(pl.col("abc_classification") == ABCClass.C.value).alias("class_c_count"),
        ])

        categories = (
            self._inventory_by(snapshot, keys)
            .join(self._sales_by(sales_window, keys), on=keys, how="inner")
            .join(self._turnover_by(turnover, keys), on=keys, how="inner")
            .join(self._stock_by(stock_levels, keys), on=keys, how="inner")
            .join(abc_counts, on=keys, how="inner")
        )

        categories = categories.with_columns(
            round_half_up(
                pl.col("current_inventory_units")
                / floored(pl.col("avg_daily_sales"), self.settings.sales_floor)
            ).alias("days_of_supply"),
            (
                pl.col("total_revenue_90d")
                / floored(pl.col("current_inventory_value"), 1)
            ).alias("inventory_roi_90d"),
            dense_rank("inventory_turnover_ratio").alias("turnover_rank"),
            dense_rank("total_revenue_90d").alias("revenue_rank"),
            self.classifier.performance_rating("inventory_turnover_ratio").alias("performance_rating"),
            pl.lit(data_date, dtype=pl.Date).alias("data_updated_date"),
        )

        return categories.sort(["total_revenue_90d", "category"], descending=[True, False])

    # ------------------------------------------------------------------
    # Organization
    # ------------------------------------------------------------------

    def executive_summary(
        self,
        snapshot: pl.DataFrame,
        kpi_window: pl.DataFrame,
        turnover: pl.DataFrame,
        stock_levels: pl.DataFrame,
        abc: pl.DataFrame,
        data_date: Optional[date] = None,
    ) -> pl.DataFrame:
        """Single-row organization KPI summary"""
        s = self.settings

        locations = snapshot.select(STORE_KEY).unique().height
        products = snapshot["product_id"].n_unique()
        inventory_units = int(snapshot["inventory_level"].sum() or 0)
        inventory_val = float(snapshot.select(inventory_value().sum()).item() or 0.0)
        weekly_units = int(kpi_window["units_sold"].sum() or 0)

        avg_turnover = float(turnover["inventory_turnover_ratio"].mean() or 0.0) if len(turnover) else 0.0
        movement_counts = {
            m.value: turnover.filter(pl.col("movement_type") == m.value).height for m in MovementType
        }

        status_counts = {
            st.value: stock_levels.filter(pl.col("stock_status") == st.value).height for st in StockStatus
        }
        total_items = stock_levels.height
        critical = status_counts[StockStatus.CRITICAL.value]
        low = status_counts[StockStatus.LOW.value]
        critical_ratio = critical / max(total_items, 1)

        abc_counts = {c.value: abc.filter(pl.col("abc_classification") == c.value).height for c in ABCClass}
        total_revenue = float(abc["total_revenue"].sum() or 0.0) if len(abc) else 0.0
        abc_revenue = {
            c.value: float(abc.filter(pl.col("abc_classification") == c.value)["total_revenue"].sum() or 0.0)
            for c in ABCClass
        }

        if avg_turnover >= s.status_good_turnover and critical_ratio < s.status_good_critical_ratio:
            overall = OverallStatus.GOOD
        elif avg_turnover >= s.status_average_turnover and critical_ratio < s.status_average_critical_ratio:
            overall = OverallStatus.AVERAGE
        else:
            overall = OverallStatus.NEEDS_IMPROVEMENT

        logger.info(
            "Executive summary computed",
            overall_status=overall.value,
            avg_turnover=round(avg_turnover, 2),
            critical_items=critical,
        )

        return pl.DataFrame({
            "total_store_locations": [locations],
            "total_products": [products],
            "total_inventory_units": [inventory_units],
            "total_inventory_value": [inventory_val],
            "weekly_units_sold": [weekly_units],
            "avg_turnover_ratio": [avg_turnover],
            "fast_moving_products": [movement_counts[MovementType.FAST_MOVER.value]],
            "medium_moving_products": [movement_counts[MovementType.MEDIUM_MOVER.value]],
            "slow_moving_products": [movement_counts[MovementType.SLOW_MOVER.value]],
            "non_moving_products": [movement_counts[MovementType.NON_MOVER.value]],
            "critical_stock_items": [critical],
            "low_stock_items": [low],
            "total_alerts": [critical + low],
            "fill_rate_pct": [(total_items - critical) / max(total_items, 1) * 100],
            "class_a_products": [abc_counts[ABCClass.A.value]],
            "class_b_products": [abc_counts[ABCClass.B.value]],
            "class_c_products": [abc_counts[ABCClass.C.value]],
            "class_a_revenue_pct": [abc_revenue[ABCClass.A.value] / max(total_revenue, 1) * 100],
            "class_b_revenue_pct": [abc_revenue[ABCClass.B.value] / max(total_revenue, 1) * 100],
            "class_c_revenue_pct": [abc_revenue[ABCClass.C.value] / max(total_revenue, 1) * 100],
            "data_updated_date": pl.Series([data_date], dtype=pl.Date),
            "overall_status": [overall.value],
        })

    # ------------------------------------------------------------------
    # Seasonality
    # ------------------------------------------------------------------

    def seasonality_summary(self, seasonal: pl.DataFrame) -> pl.DataFrame:
        """
        Per-season rollup of the seasonal analysis.

        The highest impact category is the one with the largest mean seasonal
        index in that season; equal indexes resolve to the first category name.
        """
        s = self.settings

        seasons = seasonal.group_by("season").agg([
            pl.col("total_units_sold").sum().alias("total_units_sold"),
            pl.col("total_revenue").sum().alias("total_revenue"),
            pl.col("avg_daily_sales").mean().alias("avg_daily_sales"),
            pl.col("days_count").sum().alias("total_days"),
            pl.struct(["store_id", "region", "category"]).n_unique().alias("category_location_count"),
            count_where(pl.col("impact_classification") == SeasonalImpact.HIGH_IMPACT.value)
            .alias("high_impact_count"),
            count_where(pl.col("impact_classification") == SeasonalImpact.NORMAL_IMPACT.value)
            .alias("normal_impact_count"),
            count_where(pl.col("impact_classification") == SeasonalImpact.LOW_IMPACT.value)
            .alias("low_impact_count"),
            pl.len().cast(pl.Int64).alias("total_combinations"),
        ])

        top_categories = (
            seasonal.group_by(["season", "category"])
            .agg(pl.col("seasonal_index").mean().alias("highest_impact_index"))
            .sort(["season", "highest_impact_index", "category"], descending=[False, True, False])
            .group_by("season", maintain_order=True)
            .first()
            .rename({"category": "highest_impact_category"})
        )

        overall_avg = pl.col("avg_daily_sales").mean()
        ratio = pl.col("avg_daily_sales") / floored(overall_avg, s.sales_floor)
        seasons = seasons.with_columns(
            (pl.col("high_impact_count") / floored(pl.col("total_combinations").cast(pl.Float64), 1) * 100)
            .alias("high_impact_pct"),
            (ratio * 100).alias("seasonal_index"),
            pl.when(ratio >= s.seasonal_high_ratio).then(pl.lit(SeasonClassification.HIGH_SEASON.value))
            .when(ratio >= s.seasonal_low_ratio).then(pl.lit(SeasonClassification.NORMAL_SEASON.value))
            .otherwise(pl.lit(SeasonClassification.LOW_SEASON.value))
            .alias("season_classification"),
        )

        seasons = seasons.join(top_categories, on="season", how="left")
        return seasons.sort(["seasonal_index", "season"], descending=[True, False])
