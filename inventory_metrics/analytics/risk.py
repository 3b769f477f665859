"""
Stockout Risk Scoring

Combines three independently bucketed sub-scores into a weighted composite
risk score with a classification and a recommended action.
"""

from typing import Optional

import polars as pl
import structlog

from inventory_metrics.config import MetricsSettings
from .schema import (
    ENTITY_KEY,
    MovementType,
    RecommendedAction,
    RiskClassification,
    floored,
    round_half_up,
)

logger = structlog.get_logger(__name__)


class RiskScorer:
    """
    Stockout risk per (store, region, product).

    Sub-scores (defaults, all configurable in MetricsSettings):
    - inventory_risk_score: out of stock 100, then coverage bands 90/70/40/10
    - revenue_impact_score: revenue share bands 100/60/20
    - demand_volatility_score: movement type 80/50/20/10

    Keys without a positive average daily sales from reorder analysis are not
    scored. Missing ABC or turnover data scores in the lowest band.

    Example:
        scorer = RiskScorer(settings.metrics)
        risk = scorer.score(stock_levels, reorder, turnover, abc)
    """

    def __init__(self, settings: Optional[MetricsSettings] = None):
        self.settings = settings or MetricsSettings()

    def inventory_risk_score(self) -> pl.Expr:
        s = self.settings
        coverage = pl.col("coverage_ratio")
        expr = pl.when(pl.col("inventory_level") == 0).then(s.risk_out_of_stock_score)
        for bound, score in zip(s.risk_coverage_bands, s.risk_coverage_scores):
            expr = expr.when(coverage <= bound).then(score)
        return expr.otherwise(s.risk_coverage_scores[-1])

    def revenue_impact_score(self) -> pl.Expr:
        s = self.settings
        share = pl.col("revenue_percentage")
        expr = pl.when(share >= s.risk_revenue_bands[0]).then(s.risk_revenue_scores[0])
        for bound, score in zip(s.risk_revenue_bands[1:], s.risk_revenue_scores[1:]):
            expr = expr.when(share >= bound).then(score)
        return expr.otherwise(s.risk_revenue_scores[-1])

    def demand_volatility_score(self) -> pl.Expr:
        s = self.settings
        movement = pl.col("movement_type")
        movers = [MovementType.FAST_MOVER, MovementType.MEDIUM_MOVER, MovementType.SLOW_MOVER]
        expr = pl.when(movement == movers[0].value).then(s.risk_movement_scores[0])
        for mover, score in zip(movers[1:], s.risk_movement_scores[1:]):
            expr = expr.when(movement == mover.value).then(score)
        return expr.otherwise(s.risk_movement_scores[-1])

    def composite(self) -> pl.Expr:
        s = self.settings
        return round_half_up(
            pl.col("inventory_risk_score") * s.risk_inventory_weight
            + pl.col("revenue_impact_score") * s.risk_revenue_weight
            + pl.col("demand_volatility_score") * s.risk_volatility_weight
        )

    def _band(self, labels) -> pl.Expr:
        s = self.settings
        score = pl.col("stockout_risk_score")
        return (
            pl.when(score >= s.risk_critical_score).then(pl.lit(labels[0]))
            .when(score >= s.risk_high_score).then(pl.lit(labels[1]))
            .when(score >= s.risk_moderate_score).then(pl.lit(labels[2]))
            .otherwise(pl.lit(labels[3]))
        )

    def assess(self, factors: pl.DataFrame) -> pl.DataFrame:
        """
        Score a frame of risk factors.

        Expects inventory_level, coverage_ratio, revenue_percentage and
        movement_type columns; nulls fall through to the lowest band.
        """
        scored = factors.with_columns(
            self.inventory_risk_score().cast(pl.Int64).alias("inventory_risk_score"),
            self.revenue_impact_score().cast(pl.Int64).alias("revenue_impact_score"),
            self.demand_volatility_score().cast(pl.Int64).alias("demand_volatility_score"),
        )
        scored = scored.with_columns(self.composite().alias("stockout_risk_score"))
        return scored.with_columns(
            self._band([c.value for c in RiskClassification]).alias("risk_classification"),
            self._band([a.value for a in RecommendedAction]).alias("recommended_action"),
        )

    def score(
        self,
        stock_levels: pl.DataFrame,
        reorder: pl.DataFrame,
        turnover: pl.DataFrame,
        abc: pl.DataFrame,
    ) -> pl.DataFrame:
        """Join the per-entity views and score every key with positive demand"""
        factors = (
            stock_levels.select([*ENTITY_KEY, "category", "inventory_level"])
            .join(
                reorder.select([
                    *ENTITY_KEY, "avg_daily_sales", "reorder_point", "safety_stock", "days_of_supply",
                ]),
                on=ENTITY_KEY,
                how="left",
            )
            .join(
                turnover.select([*ENTITY_KEY, "inventory_turnover_ratio", "movement_type"]),
                on=ENTITY_KEY,
                how="left",
            )
            .join(
                abc.select([*ENTITY_KEY, "abc_classification", "revenue_percentage"]),
                on=ENTITY_KEY,
                how="left",
            )
            .filter(pl.col("avg_daily_sales") > 0)
        )

        factors = factors.with_columns(
            (
                pl.col("inventory_level")
                / floored(pl.col("reorder_point").cast(pl.Float64), self.settings.reorder_point_floor)
            ).alias("coverage_ratio"),
            pl.max_horizontal(pl.col("days_of_supply"), pl.lit(1)).alias("days_of_supply"),
        )

        risk = self.assess(factors).sort(
            ["stockout_risk_score", *ENTITY_KEY],
            descending=[True, False, False, False],
        )

        logger.debug(
            "Scored stockout risk",
            keys=len(risk),
            critical=risk.filter(
                pl.col("risk_classification") == RiskClassification.CRITICAL_RISK.value
            ).height,
        )
        return risk
