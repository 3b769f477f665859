"""
Classification Engine

Assigns ordinal labels to entities, either from fixed absolute thresholds or
from their rank inside a partition:

- Fixed thresholds: stock status, turnover performance rating
- Within-partition quartiles: reorder alert level, movement type
- Pareto (ABC) revenue tiers within a store location
"""

from typing import List, Optional, Sequence

import polars as pl
import structlog

from inventory_metrics.config import MetricsSettings
from .schema import (
    ABCClass,
    AlertLevel,
    ManagementStrategy,
    MovementType,
    PerformanceRating,
    StockStatus,
    STORE_KEY,
    round_half_up_to,
)

logger = structlog.get_logger(__name__)


def label_buckets(column: str, labels: Sequence[str]) -> pl.Expr:
    """Map bucket numbers 1..n to labels; anything past the last bucket gets the last label"""
    expr = pl.when(pl.col(column) == 1).then(pl.lit(labels[0]))
    for position, label in enumerate(labels[1:-1], start=2):
        expr = expr.when(pl.col(column) == position).then(pl.lit(label))
    return expr.otherwise(pl.lit(labels[-1]))


class ClassificationEngine:
    """
    Fixed-threshold and rank-based classification.

    Rank-based methods sort each partition by the metric and then by the
    configured tie-break columns, so equal metric values always land in the
    same bucket order across runs.

    Example:
        engine = ClassificationEngine(settings.metrics)
        df = df.with_columns(engine.stock_status().alias("stock_status"))
        df = engine.quartiles(df, "coverage_ratio", ["category"])
    """

    def __init__(self, settings: Optional[MetricsSettings] = None):
        self.settings = settings or MetricsSettings()

    # ------------------------------------------------------------------
    # Fixed thresholds
    # ------------------------------------------------------------------

    def stock_status(self, column: str = "inventory_level") -> pl.Expr:
        """Stock status from absolute inventory bands (upper bounds inclusive)"""
        s = self.settings
        return (
            pl.when(pl.col(column) <= s.stock_critical_max).then(pl.lit(StockStatus.CRITICAL.value))
            .when(pl.col(column) <= s.stock_low_max).then(pl.lit(StockStatus.LOW.value))
            .when(pl.col(column) <= s.stock_normal_max).then(pl.lit(StockStatus.NORMAL.value))
            .otherwise(pl.lit(StockStatus.HIGH.value))
        )

    def performance_rating(self, column: str) -> pl.Expr:
        """Rating from absolute turnover bands"""
        s = self.settings
        return (
            pl.when(pl.col(column) >= s.performance_excellent_turnover)
            .then(pl.lit(PerformanceRating.EXCELLENT.value))
            .when(pl.col(column) >= s.performance_good_turnover)
            .then(pl.lit(PerformanceRating.GOOD.value))
            .when(pl.col(column) >= s.performance_average_turnover)
            .then(pl.lit(PerformanceRating.AVERAGE.value))
            .otherwise(pl.lit(PerformanceRating.NEEDS_IMPROVEMENT.value))
        )

    # ------------------------------------------------------------------
    # Within-partition quantiles
    # ------------------------------------------------------------------

    def quartiles(
        self,
        df: pl.DataFrame,
        metric: str,
        partition_by: List[str],
        descending: bool = False,
        buckets: int = 4,
        alias: str = "quartile_rank",
    ) -> pl.DataFrame:
        """
        Split each partition into equal-sized ranked buckets (NTILE semantics).

        Bucket sizes differ by at most one; the remainder goes to the earliest
        buckets. A partition with fewer rows than buckets gets buckets 1..n.
        """
        tie_break = [
            c for c in self.settings.tie_break_columns
            if c in df.columns and c != metric and c not in partition_by
        ]
        order = [*partition_by, metric, *tie_break]
        ranked = df.sort(
            order,
            descending=[False] * len(partition_by) + [descending] + [False] * len(tie_break),
            nulls_last=True,
        )

        ranked = ranked.with_columns(
            pl.int_range(pl.len(), dtype=pl.Int64).over(partition_by).alias("_position"),
            pl.len().over(partition_by).cast(pl.Int64).alias("_size"),
        )

        base = pl.col("_size") // buckets
        remainder = pl.col("_size") % buckets
        large = base + 1
        cutoff = remainder * large

        ranked = ranked.with_columns(
            pl.when(pl.col("_position") < cutoff)
            .then(pl.col("_position") // large + 1)
            .otherwise(remainder + (pl.col("_position") - cutoff) // pl.max_horizontal(base, pl.lit(1)) + 1)
            .alias(alias)
        )

        return ranked.drop(["_position", "_size"])

    def reorder_alert_levels(self, policy: pl.DataFrame) -> pl.DataFrame:
        """Quartiles of coverage ratio per category, lowest coverage most urgent"""
        ranked = self.quartiles(policy, "coverage_ratio", ["category"], descending=False)
        return ranked.with_columns(
            label_buckets("quartile_rank", [level.value for level in AlertLevel]).alias("alert_level")
        )

    def movement_types(self, turnover: pl.DataFrame) -> pl.DataFrame:
        """Quartiles of turnover ratio per category, highest turnover fastest"""
        ranked = self.quartiles(turnover, "inventory_turnover_ratio", ["category"], descending=True)
        return ranked.with_columns(
            label_buckets("quartile_rank", [m.value for m in MovementType]).alias("movement_type"),
            label_buckets("quartile_rank", [r.value for r in PerformanceRating]).alias("performance_rating"),
        )

    # ------------------------------------------------------------------
    # ABC (Pareto) classification
    # ------------------------------------------------------------------

    def abc_classes(self, revenue: pl.DataFrame) -> pl.DataFrame:
        """
        Pareto tiers per store location.

        Expects one row per (store, region, product) with a `total_revenue`
        column. Products are ranked by revenue descending (ties by product_id).
        Shares are rounded to `revenue_share_decimals` before they are
        accumulated, so the published share and cumulative share are the
        values the tiers and risk bands are decided on. The running share is
        capped at 100 percent.
        """
        s = self.settings
        ranked = revenue.sort(
            [*STORE_KEY, "total_revenue", "product_id"],
            descending=[False, False, True, False],
        )

        partition_total = pl.col("total_revenue").sum().over(STORE_KEY)
        ranked = ranked.with_columns(
            pl.when(partition_total > 0)
            .then(round_half_up_to(pl.col("total_revenue") / partition_total * 100, s.revenue_share_decimals))
            .otherwise(0.0)
            .alias("revenue_percentage"),
            pl.int_range(1, pl.len() + 1, dtype=pl.Int64).over(STORE_KEY).alias("revenue_rank"),
            (partition_total > 0).alias("_has_revenue"),
        )

        ranked = ranked.with_columns(
            round_half_up_to(pl.col("revenue_percentage").cum_sum().over(STORE_KEY), s.revenue_share_decimals)
            .clip(upper_bound=100.0)
            .alias("cumulative_percentage")
        )

        cumulative = pl.col("cumulative_percentage")
        ranked = ranked.with_columns(
            pl.when(~pl.col("_has_revenue")).then(pl.lit(ABCClass.C.value))
            .when(cumulative <= s.abc_a_threshold).then(pl.lit(ABCClass.A.value))
            .when(cumulative <= s.abc_b_threshold).then(pl.lit(ABCClass.B.value))
            .otherwise(pl.lit(ABCClass.C.value))
            .alias("abc_classification"),
        )

        ranked = ranked.with_columns(
            pl.col("abc_classification")
            .replace_strict(
                {
                    ABCClass.A.value: ManagementStrategy.TIGHT_CONTROL.value,
                    ABCClass.B.value: ManagementStrategy.MODERATE_CONTROL.value,
                    ABCClass.C.value: ManagementStrategy.BASIC_CONTROL.value,
                },
                return_dtype=pl.Utf8,
            )
            .alias("management_strategy")
        )

        return ranked.drop("_has_revenue")
