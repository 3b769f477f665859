"""
Inventory Turnover

Per-key sales, stock and value aggregates over a trailing window, with an
annualized turnover ratio used for movement classification.
"""

import polars as pl
import structlog

from .schema import ENTITY_KEY, inventory_value, net_revenue, round_half_up

logger = structlog.get_logger(__name__)


class TurnoverCalculator:
    """
    Computes turnover aggregates per (store, region, product, category).

    inventory_turnover_ratio = (units_sold * annualization / window) / avg_inventory,
    rounded to 2 decimals before ranking; 0 when the average inventory is 0.

    Example:
        calculator = TurnoverCalculator(window_days=90)
        turnover = calculator.calculate(window_with_category)
    """

    def __init__(
        self,
        window_days: int = 90,
        annualization_days: float = 365.0,
        no_sales_days_of_supply: int = 999,
    ):
        self.window_days = window_days
        self.annualization_days = annualization_days
        self.no_sales_days_of_supply = no_sales_days_of_supply

    def calculate(self, window: pl.DataFrame) -> pl.DataFrame:
        """Aggregate a category-enriched window into turnover metrics"""
        turnover = window.group_by([*ENTITY_KEY, "category"]).agg([
            pl.col("units_sold").sum().alias("total_units_sold"),
            pl.col("units_sold").mean().alias("avg_daily_sales"),
            pl.col("inventory_level").mean().alias("avg_inventory_level"),
            pl.col("price").mean().alias("avg_unit_price"),
            net_revenue().sum().alias("cogs"),
            inventory_value().mean().alias("avg_inventory_value"),
        ])

        annualized = pl.col("total_units_sold") * self.annualization_days / self.window_days
        turnover = turnover.with_columns(
            pl.when(pl.col("avg_inventory_level") > 0)
            .then((annualized / pl.col("avg_inventory_level")).round(2))
            .otherwise(0.0)
            .alias("inventory_turnover_ratio"),
            pl.when(pl.col("avg_daily_sales") > 0)
            .then(round_half_up(pl.col("avg_inventory_level") / pl.col("avg_daily_sales")))
            .otherwise(self.no_sales_days_of_supply)
            .alias("days_of_supply"),
        )

        logger.debug("Calculated turnover", keys=len(turnover), window_days=self.window_days)
        return turnover
