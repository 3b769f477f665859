"""
Shared schema, labels and expressions for the metrics pipeline.
"""

from enum import Enum
from typing import Dict, List

import polars as pl


OBSERVATION_SCHEMA: Dict[str, pl.DataType] = {
    "date": pl.Date,
    "store_id": pl.Utf8,
    "region": pl.Utf8,
    "product_id": pl.Utf8,
    "inventory_level": pl.Int64,
    "units_sold": pl.Int64,
    "units_ordered": pl.Int64,
    "demand_forecast": pl.Float64,
    "price": pl.Float64,
    "discount_pct": pl.Float64,
    "weather": pl.Utf8,
    "promotion": pl.Utf8,
    "competitor_price": pl.Float64,
    "season": pl.Utf8,
}

PRODUCT_SCHEMA: Dict[str, pl.DataType] = {
    "product_id": pl.Utf8,
    "category": pl.Utf8,
}

STORE_SCHEMA: Dict[str, pl.DataType] = {
    "store_id": pl.Utf8,
    "region": pl.Utf8,
}

ENTITY_KEY: List[str] = ["store_id", "region", "product_id"]
STORE_KEY: List[str] = ["store_id", "region"]
NATURAL_KEY: List[str] = ["date", "store_id", "region", "product_id"]


class StockStatus(str, Enum):
    """Fixed-threshold stock status"""
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class AlertLevel(str, Enum):
    """Reorder urgency quartile (lowest coverage first)"""
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    MODERATE = "MODERATE"
    ADEQUATE = "ADEQUATE"


class MovementType(str, Enum):
    """Turnover quartile (highest turnover first)"""
    FAST_MOVER = "FAST_MOVER"
    MEDIUM_MOVER = "MEDIUM_MOVER"
    SLOW_MOVER = "SLOW_MOVER"
    NON_MOVER = "NON_MOVER"


class PerformanceRating(str, Enum):
    """Turnover performance rating"""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"


class ABCClass(str, Enum):
    """Pareto revenue tier"""
    A = "A"
    B = "B"
    C = "C"


class ManagementStrategy(str, Enum):
    """Control policy attached to an ABC tier"""
    TIGHT_CONTROL = "TIGHT_CONTROL"
    MODERATE_CONTROL = "MODERATE_CONTROL"
    BASIC_CONTROL = "BASIC_CONTROL"


class SeasonalImpact(str, Enum):
    """Seasonal index band for a category-location"""
    HIGH_IMPACT = "HIGH_IMPACT"
    NORMAL_IMPACT = "NORMAL_IMPACT"
    LOW_IMPACT = "LOW_IMPACT"


class SeasonClassification(str, Enum):
    """Seasonal index band for a whole season"""
    HIGH_SEASON = "HIGH_SEASON"
    NORMAL_SEASON = "NORMAL_SEASON"
    LOW_SEASON = "LOW_SEASON"


class RiskClassification(str, Enum):
    """Stockout risk band"""
    CRITICAL_RISK = "CRITICAL_RISK"
    HIGH_RISK = "HIGH_RISK"
    MODERATE_RISK = "MODERATE_RISK"
    LOW_RISK = "LOW_RISK"


class RecommendedAction(str, Enum):
    """Action mirroring the stockout risk band"""
    IMMEDIATE_REORDER = "IMMEDIATE_REORDER"
    REORDER_SOON = "REORDER_SOON"
    MONITOR_CLOSELY = "MONITOR_CLOSELY"
    STANDARD_REVIEW = "STANDARD_REVIEW"


class OverallStatus(str, Enum):
    """Organization-level status"""
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"


def round_half_up(expr: pl.Expr) -> pl.Expr:
    """Round a non-negative expression to the nearest integer, halves up"""
    return (expr + 0.5).floor().cast(pl.Int64)


def round_half_up_to(expr: pl.Expr, decimals: int) -> pl.Expr:
    """Round a non-negative expression to `decimals` places, halves up"""
    scale = 10 ** decimals
    return (expr * scale + 0.5).floor() / scale


def net_price() -> pl.Expr:
    """Unit price after discount"""
    return pl.col("price") * (1 - pl.col("discount_pct") / 100)


def net_revenue() -> pl.Expr:
    """Revenue of a daily observation after discount"""
    return pl.col("units_sold") * net_price()


def inventory_value() -> pl.Expr:
    """Value of the stock on hand after discount"""
    return pl.col("inventory_level") * net_price()


def floored(expr: pl.Expr, floor: float) -> pl.Expr:
    """Clamp a denominator so ratios never divide by zero"""
    return pl.max_horizontal(expr, pl.lit(floor))


def coerce_observations(df: pl.DataFrame) -> pl.DataFrame:
    """
    Cast an observation frame to the canonical schema.

    Optional attribute columns missing from the input are added as nulls so
    that downstream selects never fail on narrow test or partner frames.
    """
    missing = [
        pl.lit(None, dtype=dtype).alias(name)
        for name, dtype in OBSERVATION_SCHEMA.items()
        if name not in df.columns
    ]
    if missing:
        df = df.with_columns(missing)

    return df.select(
        [pl.col(name).cast(dtype) for name, dtype in OBSERVATION_SCHEMA.items()]
    ).with_columns(
        pl.col("discount_pct").fill_null(0.0),
        pl.col("price").fill_null(0.0),
    )
