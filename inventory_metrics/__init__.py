"""
Inventory Metrics Platform

Inventory health, replenishment, turnover, ABC, seasonality and stockout
risk metrics for multi-store retail networks.
"""

__version__ = "1.0.0"
