"""
Inventory Analytics Module
"""
from .classification import ClassificationEngine
from .demand import DemandStatisticsEstimator
from .pipeline import InventoryMetricsPipeline, MetricsReport
from .reorder import ReorderPolicyCalculator
from .risk import RiskScorer
from .rollups import RollupAggregator
from .seasonal import SeasonalIndexCalculator
from .turnover import TurnoverCalculator
from .windows import WindowResolver

__all__ = [
    "ClassificationEngine",
    "DemandStatisticsEstimator",
    "InventoryMetricsPipeline",
    "MetricsReport",
    "ReorderPolicyCalculator",
    "RiskScorer",
    "RollupAggregator",
    "SeasonalIndexCalculator",
    "TurnoverCalculator",
    "WindowResolver",
]
