"""
Reorder Policy

Safety stock, reorder point and replenishment suggestions derived from demand
statistics and the latest stock snapshot.

    safety_stock        = max(0, round(z * sigma * sqrt(L)))
    reorder_point       = round(mean * L + safety_stock)
    days_of_supply      = round(stock / max(mean, sales_floor))
    suggested_order_qty = max(0, reorder_point + safety_stock - stock)
    coverage_ratio      = stock / max(reorder_point, reorder_point_floor)
"""

import math

import polars as pl
import structlog

from .schema import ENTITY_KEY, floored, round_half_up

logger = structlog.get_logger(__name__)


class ReorderPolicyCalculator:
    """
    Derives the reorder policy for keys with eligible demand statistics.

    Example:
        calculator = ReorderPolicyCalculator(lead_time_days=7, service_level_z=1.65)
        policy = calculator.calculate(eligible_stats, snapshot)
    """

    def __init__(
        self,
        lead_time_days: int = 7,
        service_level_z: float = 1.65,
        sales_floor: float = 0.1,
        reorder_point_floor: float = 1.0,
    ):
        self.lead_time_days = lead_time_days
        self.service_level_z = service_level_z
        self.sales_floor = sales_floor
        self.reorder_point_floor = reorder_point_floor

    def safety_stock(self) -> pl.Expr:
        raw = self.service_level_z * pl.col("effective_stddev") * math.sqrt(self.lead_time_days)
        return pl.max_horizontal(round_half_up(raw), pl.lit(0, dtype=pl.Int64))

    def calculate(self, stats: pl.DataFrame, snapshot: pl.DataFrame) -> pl.DataFrame:
        """
        Join statistics to current stock and compute the policy columns.

        Keys missing from either input are dropped.
        """
        policy = stats.join(
            snapshot.select([*ENTITY_KEY, "inventory_level"]),
            on=ENTITY_KEY,
            how="inner",
        )

        policy = policy.with_columns(
            pl.lit(self.lead_time_days, dtype=pl.Int64).alias("lead_time_days"),
            self.safety_stock().alias("safety_stock"),
        )

        policy = policy.with_columns(
            round_half_up(
                pl.col("avg_daily_sales") * self.lead_time_days + pl.col("safety_stock")
            ).alias("reorder_point"),
            round_half_up(
                pl.col("inventory_level") / floored(pl.col("avg_daily_sales"), self.sales_floor)
            ).alias("days_of_supply"),
        )

        policy = policy.with_columns(
            pl.max_horizontal(
                pl.col("reorder_point") + pl.col("safety_stock") - pl.col("inventory_level"),
                pl.lit(0, dtype=pl.Int64),
            ).alias("suggested_order_qty"),
            (
                pl.col("inventory_level")
                / floored(pl.col("reorder_point").cast(pl.Float64), self.reorder_point_floor)
            ).alias("coverage_ratio"),
        )

        logger.debug("Calculated reorder policy", keys=len(policy))
        return policy
