"""
Inventory Metrics Platform
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety. Every analytical
constant used by the metrics pipeline lives here so a run can be reproduced
or tuned without touching the calculators.
"""

from datetime import date
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MetricsSettings(BaseSettings):
    """Analytical policy constants for the metrics pipeline"""

    model_config = SettingsConfigDict(env_prefix="METRICS_")

    # Reference date (defaults to the latest observed date)
    reference_date: Optional[date] = Field(default=None, description="Anchor date for all windows")

    # Windows
    demand_window_days: int = Field(default=90, ge=1, description="Trailing window for demand statistics")
    turnover_window_days: int = Field(default=90, ge=1, description="Trailing window for turnover")
    abc_window_days: int = Field(default=180, ge=1, description="Trailing window for ABC revenue")
    seasonal_window_months: int = Field(default=12, ge=1, description="Trailing window for seasonal analysis")
    kpi_window_days: int = Field(default=7, ge=1, description="Trailing window for weekly KPIs")
    rollup_sales_window_days: int = Field(default=90, ge=1, description="Sales window for store/category rollups")

    # Demand statistics
    min_sample_days: int = Field(default=30, ge=1, description="Minimum distinct days for reorder analysis")
    stddev_fallback_factor: float = Field(default=0.3, ge=0, description="Fallback stddev as a share of the mean")

    # Reorder policy
    lead_time_days: int = Field(default=7, ge=0, description="Replenishment lead time in days")
    service_level_z: float = Field(default=1.65, ge=0, description="Safety stock z-score (95% service level)")
    sales_floor: float = Field(default=0.1, gt=0, description="Floor for average daily sales denominators")
    reorder_point_floor: float = Field(default=1.0, gt=0, description="Floor for reorder point denominators")

    # Stock status bands (upper bounds, inclusive)
    stock_critical_max: int = Field(default=10, description="Inventory at or below is CRITICAL")
    stock_low_max: int = Field(default=50, description="Inventory at or below is LOW")
    stock_normal_max: int = Field(default=200, description="Inventory at or below is NORMAL")

    # ABC cutoffs (cumulative revenue percentage)
    abc_a_threshold: float = Field(default=80.0, description="Cumulative share at or below is class A")
    abc_b_threshold: float = Field(default=95.0, description="Cumulative share at or below is class B")
    revenue_share_decimals: int = Field(default=2, ge=0, description="Decimals revenue shares are rounded to")

    # Seasonal bands (ratio to baseline)
    seasonal_high_ratio: float = Field(default=1.2, description="Ratio at or above is high impact")
    seasonal_low_ratio: float = Field(default=0.8, description="Ratio below is low impact")

    # Turnover
    turnover_annualization_days: float = Field(default=365.0, gt=0, description="Days per year for annualizing")
    no_sales_days_of_supply: int = Field(default=999, description="Days of supply reported for items without sales")
    performance_excellent_turnover: float = Field(default=6.0, description="Turnover for EXCELLENT rating")
    performance_good_turnover: float = Field(default=4.0, description="Turnover for GOOD rating")
    performance_average_turnover: float = Field(default=2.0, description="Turnover for AVERAGE rating")

    # Risk scoring
    risk_inventory_weight: float = Field(default=0.4, ge=0, description="Weight of inventory risk sub-score")
    risk_revenue_weight: float = Field(default=0.4, ge=0, description="Weight of revenue impact sub-score")
    risk_volatility_weight: float = Field(default=0.2, ge=0, description="Weight of demand volatility sub-score")
    risk_critical_score: int = Field(default=90, description="Score at or above is CRITICAL_RISK")
    risk_high_score: int = Field(default=70, description="Score at or above is HIGH_RISK")
    risk_moderate_score: int = Field(default=50, description="Score at or above is MODERATE_RISK")

    # Risk sub-score tables: scores[i] applies up to bands[i], the last score beyond
    risk_out_of_stock_score: int = Field(default=100, description="Inventory risk when out of stock")
    risk_coverage_bands: List[float] = Field(
        default=[0.10, 0.25, 0.50],
        description="Coverage ratio upper bounds (inclusive), ascending",
    )
    risk_coverage_scores: List[int] = Field(
        default=[90, 70, 40, 10],
        description="Inventory risk per coverage band",
    )
    risk_revenue_bands: List[float] = Field(
        default=[90.0, 50.0],
        description="Revenue share lower bounds (inclusive), descending",
    )
    risk_revenue_scores: List[int] = Field(
        default=[100, 60, 20],
        description="Revenue impact per revenue share band",
    )
    risk_movement_scores: List[int] = Field(
        default=[80, 50, 20, 10],
        description="Demand volatility for fast, medium, slow and non movers",
    )

    # Executive status
    status_good_turnover: float = Field(default=4.0, description="Minimum turnover for GOOD status")
    status_good_critical_ratio: float = Field(default=0.05, description="Critical ratio below which status is GOOD")
    status_average_turnover: float = Field(default=2.0, description="Minimum turnover for AVERAGE status")
    status_average_critical_ratio: float = Field(default=0.10, description="Critical ratio below which status is AVERAGE")

    # Deterministic secondary ordering for ranked partitions
    tie_break_columns: List[str] = Field(
        default=["store_id", "region", "product_id"],
        description="Secondary sort keys applied after the ranking metric",
    )

    @model_validator(mode="after")
    def validate_bands(self) -> "MetricsSettings":
        """Validate that ordered thresholds are ordered"""
        if not self.stock_critical_max <= self.stock_low_max <= self.stock_normal_max:
            raise ValueError("Stock bands must satisfy critical <= low <= normal")
        if not self.abc_a_threshold <= self.abc_b_threshold:
            raise ValueError("ABC thresholds must satisfy A <= B")
        if not self.seasonal_low_ratio <= self.seasonal_high_ratio:
            raise ValueError("Seasonal ratios must satisfy low <= high")
        if not self.risk_moderate_score <= self.risk_high_score <= self.risk_critical_score:
            raise ValueError("Risk bands must satisfy moderate <= high <= critical")
        if self.risk_coverage_bands != sorted(self.risk_coverage_bands):
            raise ValueError("Coverage bands must be ascending")
        if not self.risk_revenue_bands or self.risk_revenue_bands != sorted(self.risk_revenue_bands, reverse=True):
            raise ValueError("Revenue bands must be non-empty and descending")
        if len(self.risk_coverage_scores) != len(self.risk_coverage_bands) + 1:
            raise ValueError("Coverage scores need one entry per band plus one")
        if len(self.risk_revenue_scores) != len(self.risk_revenue_bands) + 1:
            raise ValueError("Revenue scores need one entry per band plus one")
        if len(self.risk_movement_scores) != 4:
            raise ValueError("Movement scores need one entry per movement type")
        return self


class DataSettings(BaseSettings):
    """Data source and output configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    observations_path: str = Field(default="./data/inventory.csv", description="Observation fact file")
    products_path: Optional[str] = Field(default=None, description="Product dimension file")
    stores_path: Optional[str] = Field(default=None, description="Store dimension file")
    output_path: str = Field(default="./data/metrics", description="Result set output directory")
    default_format: str = Field(default="parquet", description="Default output format")
    validate_on_load: bool = Field(default=True, description="Run data quality checks on load")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate output format"""
        allowed = ["parquet", "csv"]
        if v.lower() not in allowed:
            raise ValueError(f"Format must be one of: {allowed}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="inventory-metrics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8088"],
        description="Allowed CORS origins"
    )

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
