"""
Inventory Metrics Pipeline

Orchestrates the metric calculators into named result sets:

Phase 1 (per key): windows, demand statistics, reorder policy, turnover,
stock status.
Phase 2 (per partition): quartile and ABC ranking, risk scoring.
Rollups: organization, store, category and season summaries.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from inventory_metrics.config import MetricsSettings, get_settings
from inventory_metrics.config.logging import run_context
from .classification import ClassificationEngine
from .demand import DemandStatisticsEstimator
from .reorder import ReorderPolicyCalculator
from .risk import RiskScorer
from .rollups import RollupAggregator
from .schema import (
    ENTITY_KEY,
    STORE_KEY,
    StockStatus,
    coerce_observations,
    inventory_value,
    net_price,
    net_revenue,
)
from .seasonal import SeasonalIndexCalculator
from .turnover import TurnoverCalculator
from .windows import WindowResolver

logger = structlog.get_logger(__name__)


# Output column order and rounding per result set
VIEW_COLUMNS: Dict[str, List[str]] = {
    "current_stock_levels": [
        *ENTITY_KEY, "category", "inventory_level", "price", "discount_pct",
        "inventory_value", "stock_status", "season", "weather",
    ],
    "reorder_analysis": [
        *ENTITY_KEY, "category", "current_stock", "avg_daily_sales", "std_dev_sales",
        "lead_time_days", "safety_stock", "reorder_point", "days_of_supply",
        "suggested_order_qty", "coverage_ratio", "alert_level",
    ],
    "inventory_turnover": [
        *ENTITY_KEY, "category", "avg_inventory_level", "avg_daily_sales", "cogs_90_days",
        "avg_inventory_value", "inventory_turnover_ratio", "days_of_supply", "avg_unit_price",
        "movement_type", "performance_rating",
    ],
    "abc_classification": [
        *ENTITY_KEY, "category", "total_revenue", "revenue_percentage", "cumulative_percentage",
        "revenue_rank", "abc_classification", "management_strategy", "total_units_sold",
        "avg_selling_price", "avg_inventory_level",
    ],
    "seasonal_analysis": [
        "season", "weather", "category", "store_id", "region", "total_units_sold",
        "total_revenue", "avg_daily_sales", "avg_inventory_level", "days_count",
        "category_baseline", "seasonal_index", "impact_classification",
    ],
    "stockout_risk": [
        *ENTITY_KEY, "category", "inventory_level", "avg_daily_sales", "reorder_point",
        "safety_stock", "days_of_supply", "inventory_turnover_ratio", "movement_type",
        "abc_classification", "revenue_percentage", "stockout_risk_score",
        "risk_classification", "inventory_risk_score", "revenue_impact_score",
        "demand_volatility_score", "recommended_action",
    ],
    "executive_summary": [
        "total_store_locations", "total_products", "total_inventory_units",
        "total_inventory_value", "weekly_units_sold", "avg_turnover_ratio",
        "fast_moving_products", "medium_moving_products", "slow_moving_products",
        "non_moving_products", "critical_stock_items", "low_stock_items", "total_alerts",
        "fill_rate_pct", "class_a_products", "class_b_products", "class_c_products",
        "class_a_revenue_pct", "class_b_revenue_pct", "class_c_revenue_pct",
        "data_updated_date", "overall_status",
    ],
    "store_performance": [
        *STORE_KEY, "unique_products", "current_inventory_units", "current_inventory_value",
        "avg_daily_sales", "avg_daily_revenue", "inventory_turnover_ratio", "fast_movers",
        "slow_movers", "critical_items", "low_items", "total_alerts", "fill_rate_pct",
        "turnover_rank", "service_level_rank", "performance_rating", "data_updated_date",
    ],
    "category_performance": [
        "category", "unique_products", "current_inventory_units", "current_inventory_value",
        "avg_daily_sales", "avg_daily_revenue", "total_revenue_90d", "inventory_turnover_ratio",
        "fast_movers", "slow_movers", "critical_items", "low_items", "total_alerts",
        "fill_rate_pct", "class_a_count", "class_b_count", "class_c_count", "days_of_supply",
        "inventory_roi_90d", "turnover_rank", "revenue_rank", "performance_rating",
        "data_updated_date",
    ],
    "seasonality_summary": [
        "season", "total_units_sold", "total_revenue", "avg_daily_sales", "total_days",
        "category_location_count", "high_impact_count", "normal_impact_count",
        "low_impact_count", "high_impact_pct", "seasonal_index", "season_classification",
        "highest_impact_category", "highest_impact_index",
    ],
}

ROUND_2 = {
    "price", "discount_pct", "inventory_value", "avg_daily_sales", "std_dev_sales",
    "coverage_ratio", "cogs_90_days", "avg_inventory_value", "inventory_turnover_ratio",
    "avg_unit_price", "total_revenue", "revenue_percentage", "cumulative_percentage",
    "avg_selling_price", "category_baseline", "seasonal_index", "total_inventory_value",
    "avg_turnover_ratio", "fill_rate_pct", "class_a_revenue_pct", "class_b_revenue_pct",
    "class_c_revenue_pct", "current_inventory_value", "avg_daily_revenue",
    "total_revenue_90d", "inventory_roi_90d", "high_impact_pct", "highest_impact_index",
}
ROUND_0 = {"avg_inventory_level"}


@dataclass
class MetricsReport:
    """Named result sets produced by one pipeline run"""
    latest_date: Optional[date]
    views: Dict[str, pl.DataFrame]
    started_at: datetime
    completed_at: datetime
    input_rows: int
    excluded_rows: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def view_names(self) -> List[str]:
        return list(self.views)

    def __getitem__(self, name: str) -> pl.DataFrame:
        return self.views[name]

    def write(self, directory: Union[str, Path], file_format: str = "parquet") -> Dict[str, str]:
        """Write every result set to `directory` as parquet or csv"""
        output_dir = Path(directory)
        output_dir.mkdir(parents=True, exist_ok=True)

        written = {}
        for name, df in self.views.items():
            output_file = output_dir / f"{name}.{file_format}"
            if file_format == "parquet":
                df.write_parquet(output_file)
            elif file_format == "csv":
                df.write_csv(output_file)
            else:
                raise ValueError(f"Unsupported file format: {file_format}")
            written[name] = str(output_file)
            logger.info(f"Written {len(df)} rows to {output_file}")

        return written


def present(df: pl.DataFrame, name: str) -> pl.DataFrame:
    """Select the documented columns of a result set and round display values"""
    columns = VIEW_COLUMNS[name]
    exprs = []
    for column in columns:
        if column in ROUND_2:
            exprs.append(pl.col(column).round(2))
        elif column in ROUND_0:
            exprs.append(pl.col(column).round(0))
        else:
            exprs.append(pl.col(column))
    return df.select(exprs)


class InventoryMetricsPipeline:
    """
    Recomputes every derived view from an observation snapshot.

    The pipeline holds configuration only; each run is an independent pure
    transform of its inputs, so running twice on the same data yields the same
    report.

    Example:
        pipeline = InventoryMetricsPipeline()
        report = pipeline.run(observations, products, stores)
        risk = report["stockout_risk"]
    """

    def __init__(self, settings: Optional[MetricsSettings] = None):
        self.settings = settings or get_settings().metrics
        s = self.settings
        self.estimator = DemandStatisticsEstimator(
            min_sample_days=s.min_sample_days,
            fallback_factor=s.stddev_fallback_factor,
        )
        self.reorder = ReorderPolicyCalculator(
            lead_time_days=s.lead_time_days,
            service_level_z=s.service_level_z,
            sales_floor=s.sales_floor,
            reorder_point_floor=s.reorder_point_floor,
        )
        self.turnover = TurnoverCalculator(
            window_days=s.turnover_window_days,
            annualization_days=s.turnover_annualization_days,
            no_sales_days_of_supply=s.no_sales_days_of_supply,
        )
        self.classifier = ClassificationEngine(s)
        self.seasonal = SeasonalIndexCalculator(s)
        self.risk = RiskScorer(s)
        self.rollups = RollupAggregator(s)

    # ------------------------------------------------------------------
    # Input resolution
    # ------------------------------------------------------------------

    def resolve_dimensions(
        self,
        observations: pl.DataFrame,
        products: pl.DataFrame,
        stores: Optional[pl.DataFrame] = None,
    ) -> pl.DataFrame:
        """Attach product category and drop rows whose product or store is unknown"""
        categories = (
            products.select([
                pl.col("product_id").cast(pl.Utf8),
                pl.col("category").cast(pl.Utf8),
            ])
            .filter(pl.col("category").is_not_null())
            .unique(subset=["product_id"], keep="first", maintain_order=True)
        )
        resolved = observations.join(categories, on="product_id", how="inner")

        if stores is not None:
            locations = stores.select([
                pl.col("store_id").cast(pl.Utf8),
                pl.col("region").cast(pl.Utf8),
            ]).unique()
            resolved = resolved.join(locations, on=STORE_KEY, how="semi")

        return resolved

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def current_stock_levels(self, snapshot: pl.DataFrame) -> pl.DataFrame:
        stock = snapshot.with_columns(
            inventory_value().alias("inventory_value"),
            self.classifier.stock_status().alias("stock_status"),
        )
        severity = (
            pl.col("stock_status")
            .replace_strict({status.value: rank for rank, status in enumerate(StockStatus)}, return_dtype=pl.Int64)
        )
        return (
            stock.with_columns(severity.alias("_severity"))
            .sort(["_severity", "inventory_level", *ENTITY_KEY])
            .drop("_severity")
        )

    def reorder_analysis(self, demand_window: pl.DataFrame, snapshot: pl.DataFrame) -> pl.DataFrame:
        stats = self.estimator.eligible(self.estimator.estimate(demand_window))
        policy = self.reorder.calculate(stats, snapshot)
        policy = policy.join(snapshot.select([*ENTITY_KEY, "category"]), on=ENTITY_KEY, how="inner")
        policy = self.classifier.reorder_alert_levels(policy)
        policy = policy.with_columns(
            pl.col("inventory_level").alias("current_stock"),
            pl.col("stddev_sales").alias("std_dev_sales"),
        )
        return policy.sort(["category", "coverage_ratio", *ENTITY_KEY])

    def inventory_turnover(self, turnover_window: pl.DataFrame) -> pl.DataFrame:
        turnover = self.turnover.calculate(turnover_window)
        turnover = self.classifier.movement_types(turnover)
        turnover = turnover.rename({"cogs": "cogs_90_days"})
        return turnover.sort(
            ["category", "inventory_turnover_ratio", *ENTITY_KEY],
            descending=[False, True, False, False, False],
        )

    def abc_classification(self, abc_window: pl.DataFrame) -> pl.DataFrame:
        revenue = abc_window.group_by([*ENTITY_KEY, "category"]).agg([
            net_revenue().sum().alias("total_revenue"),
            pl.col("units_sold").sum().alias("total_units_sold"),
            net_price().mean().alias("avg_selling_price"),
            pl.col("inventory_level").mean().alias("avg_inventory_level"),
        ])
        abc = self.classifier.abc_classes(revenue)
        return abc.sort([*STORE_KEY, "revenue_rank"])

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        observations: pl.DataFrame,
        products: pl.DataFrame,
        stores: Optional[pl.DataFrame] = None,
        reference_date: Optional[date] = None,
    ) -> MetricsReport:
        """
        Compute every result set.

        Args:
            observations: Inventory observation facts
            products: Product dimension with product_id and category
            stores: Optional store dimension with store_id and region
            reference_date: Overrides the configured reference date

        Returns:
            MetricsReport with one frame per result set
        """
        anchor = reference_date or self.settings.reference_date
        with run_context(reference_date=str(anchor) if anchor else "latest"):
            return self._run(observations, products, stores, anchor)

    def _run(
        self,
        observations: pl.DataFrame,
        products: pl.DataFrame,
        stores: Optional[pl.DataFrame],
        anchor: Optional[date],
    ) -> MetricsReport:
        started_at = datetime.utcnow()
        s = self.settings

        observations = coerce_observations(observations)
        input_rows = len(observations)

        # The latest date is taken from the full observation set
        resolver = WindowResolver(observations, anchor)

        resolved = self.resolve_dimensions(observations, products, stores)
        excluded_rows = input_rows - len(resolved)
        warnings = []
        if excluded_rows:
            message = f"{excluded_rows} observations dropped: unresolved product or store"
            warnings.append(message)
            logger.warning("Unresolved dimension keys", excluded_rows=excluded_rows)

        windows = WindowResolver(resolved, resolver.latest_date)
        logger.info(
            "Starting metrics computation",
            input_rows=input_rows,
            latest_date=str(windows.latest_date),
        )

        # Phase 1: per-key views
        snapshot = windows.latest_snapshot()
        if not windows.is_empty:
            observed = windows.on_date().select(ENTITY_KEY).unique().height
            stale_keys = len(snapshot) - observed
            if stale_keys:
                warnings.append(
                    f"{stale_keys} keys not observed on {windows.latest_date}: "
                    "stock carried from their last observation"
                )
                logger.warning("Stale snapshot keys", stale_keys=stale_keys)
        stock_levels = self.current_stock_levels(snapshot)
        demand_window = windows.trailing_window(s.demand_window_days)
        turnover_window = windows.trailing_window(s.turnover_window_days)

        # Phase 2: partition rankings
        reorder = self.reorder_analysis(demand_window, snapshot)
        turnover = self.inventory_turnover(turnover_window)
        abc = self.abc_classification(windows.trailing_window(s.abc_window_days))
        seasonal = self.seasonal.calculate(windows.trailing_months(s.seasonal_window_months))
        risk = self.risk.score(stock_levels, reorder, turnover, abc)

        # Rollups
        sales_window = windows.trailing_window(s.rollup_sales_window_days)
        executive = self.rollups.executive_summary(
            snapshot,
            windows.trailing_window(s.kpi_window_days),
            turnover,
            stock_levels,
            abc,
            data_date=windows.latest_date,
        )
        store_perf = self.rollups.store_performance(
            snapshot, sales_window, turnover, stock_levels, data_date=windows.latest_date,
        )
        category_perf = self.rollups.category_performance(
            snapshot, sales_window, turnover, stock_levels, abc, data_date=windows.latest_date,
        )
        seasonality = self.rollups.seasonality_summary(seasonal)

        frames = {
            "current_stock_levels": stock_levels,
            "reorder_analysis": reorder,
            "inventory_turnover": turnover,
            "abc_classification": abc,
            "seasonal_analysis": seasonal,
            "stockout_risk": risk,
            "executive_summary": executive,
            "store_performance": store_perf,
            "category_performance": category_perf,
            "seasonality_summary": seasonality,
        }
        views = {name: present(df, name) for name, df in frames.items()}

        completed_at = datetime.utcnow()
        report = MetricsReport(
            latest_date=windows.latest_date,
            views=views,
            started_at=started_at,
            completed_at=completed_at,
            input_rows=input_rows,
            excluded_rows=excluded_rows,
            warnings=warnings,
        )

        logger.info(
            "Metrics computation complete",
            duration_seconds=round(report.duration_seconds, 3),
            **{f"{name}_rows": len(df) for name, df in views.items()},
        )
        return report
