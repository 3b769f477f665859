"""
Inventory Metrics Platform
Configuration Module
"""
from .settings import DataSettings, MetricsSettings, Settings, get_settings

__all__ = ["DataSettings", "MetricsSettings", "Settings", "get_settings"]
