"""
Observation Loader

Batch ingestion of daily inventory observations from CSV or Parquet files.
Supports:
- Raw dataset headers ("Store ID", "Units Sold", ...) or canonical names
- Casting to the observation schema
- Product/store dimensions from files or derived from the fact file
- Data quality validation and profiling
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog

from inventory_metrics.analytics.schema import (
    NATURAL_KEY,
    PRODUCT_SCHEMA,
    STORE_SCHEMA,
    coerce_observations,
)
from inventory_metrics.config import DataSettings
from inventory_metrics.quality.validators import (
    ValidationResult,
    ValidationStatus,
    create_observations_validator,
    create_products_validator,
    create_stores_validator,
    profile_observations,
)

logger = structlog.get_logger(__name__)


RAW_COLUMN_MAP: Dict[str, str] = {
    "Date": "date",
    "Store ID": "store_id",
    "Product ID": "product_id",
    "Category": "category",
    "Region": "region",
    "Inventory Level": "inventory_level",
    "Units Sold": "units_sold",
    "Units Ordered": "units_ordered",
    "Demand Forecast": "demand_forecast",
    "Price": "price",
    "Discount": "discount_pct",
    "Weather Condition": "weather",
    "Holiday/Promotion": "promotion",
    "Competitor Pricing": "competitor_price",
    "Seasonality": "season",
}

NULL_VALUES: List[str] = ["", "NULL", "null", "None", "NA", "N/A"]


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    PARQUET = "parquet"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileFormat":
        suffix = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            raise ValueError(f"Unsupported file format: {path}")


class InvalidObservationsError(ValueError):
    """Raised when loaded observations fail error-severity quality checks"""

    def __init__(self, result: ValidationResult):
        self.result = result
        failed = ", ".join(check.name for check in result.errors)
        super().__init__(f"Observation data failed validation: {failed}")


@dataclass
class LoadedObservations:
    """Observations with their dimensions and load audit"""
    observations: pl.DataFrame
    products: pl.DataFrame
    stores: pl.DataFrame
    source: str
    rows_read: int = 0
    rows_dropped: int = 0
    validation: Optional[ValidationResult] = None
    profile: Dict[str, Any] = field(default_factory=dict)
    loaded_at: datetime = field(default_factory=datetime.utcnow)


def normalize_columns(df: pl.DataFrame) -> pl.DataFrame:
    """Rename raw dataset headers to canonical column names"""
    renames = {raw: name for raw, name in RAW_COLUMN_MAP.items() if raw in df.columns}
    if renames:
        df = df.rename(renames)

    if "date" in df.columns and df["date"].dtype == pl.Utf8:
        df = df.with_columns(pl.col("date").str.to_date("%Y-%m-%d", strict=False))
    elif "date" in df.columns and df["date"].dtype == pl.Datetime:
        df = df.with_columns(pl.col("date").dt.date())

    return df


def derive_products(df: pl.DataFrame) -> pl.DataFrame:
    """
    Product dimension from a fact file carrying a category column.

    A product listed under several categories keeps the first category in
    alphabetical order.
    """
    if "category" not in df.columns:
        return pl.DataFrame(schema=PRODUCT_SCHEMA)

    return (
        df.select([
            pl.col("product_id").cast(pl.Utf8),
            pl.col("category").cast(pl.Utf8),
        ])
        .drop_nulls()
        .unique()
        .sort(["category", "product_id"])
        .unique(subset=["product_id"], keep="first", maintain_order=True)
        .with_columns(
            (pl.col("category") + pl.lit(" Product ") + pl.col("product_id")).alias("product_name")
        )
    )


def derive_stores(df: pl.DataFrame) -> pl.DataFrame:
    """Store location dimension from the distinct (store_id, region) pairs"""
    return (
        df.select([
            pl.col("store_id").cast(pl.Utf8),
            pl.col("region").cast(pl.Utf8),
        ])
        .drop_nulls()
        .unique()
        .sort(["store_id", "region"])
        .with_columns(
            (pl.lit("Store ") + pl.col("store_id") + pl.lit(" - ") + pl.col("region")).alias("store_name")
        )
    )


class ObservationLoader:
    """
    Loads observation and dimension files for the metrics pipeline.

    Rows with an unparseable date are dropped, and for a repeated
    (date, store_id, region, product_id) key the first row is kept.

    Example:
        loader = ObservationLoader(settings.data)
        loaded = loader.load()
        report = pipeline.run(loaded.observations, loaded.products, loaded.stores)
    """

    def __init__(
        self,
        settings: Optional[DataSettings] = None,
        validate: Optional[bool] = None,
    ):
        self.settings = settings or DataSettings()
        self.validate = self.settings.validate_on_load if validate is None else validate

    def _read_csv(self, path: Path) -> pl.DataFrame:
        return pl.read_csv(
            path,
            null_values=NULL_VALUES,
            try_parse_dates=True,
            infer_schema_length=10000,
        )

    def _read_parquet(self, path: Path) -> pl.DataFrame:
        return pl.read_parquet(path)

    def _read_file(self, path: Union[str, Path]) -> pl.DataFrame:
        """Read file based on its extension"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        readers = {
            FileFormat.CSV: self._read_csv,
            FileFormat.PARQUET: self._read_parquet,
        }
        return readers[FileFormat.from_path(path)](path)

    def read_dimension(self, path: Union[str, Path], schema: Dict[str, pl.DataType]) -> pl.DataFrame:
        """Read a product or store dimension file"""
        df = normalize_columns(self._read_file(path))
        missing = [name for name in schema if name not in df.columns]
        if missing:
            raise ValueError(f"Dimension file {path} is missing columns: {missing}")
        return df.with_columns([pl.col(name).cast(dtype) for name, dtype in schema.items()])

    def _validate_dimension(self, df: pl.DataFrame, kind: str) -> None:
        validator = create_products_validator() if kind == "products" else create_stores_validator()
        result = validator.validate(df)
        if result.status == ValidationStatus.FAILED:
            raise InvalidObservationsError(result)

    def load(
        self,
        path: Optional[Union[str, Path]] = None,
        products_path: Optional[Union[str, Path]] = None,
        stores_path: Optional[Union[str, Path]] = None,
    ) -> LoadedObservations:
        """
        Load observations and their dimensions.

        Args:
            path: Observation file, defaults to the configured path
            products_path: Product dimension file, derived from the facts when unset
            stores_path: Store dimension file, derived from the facts when unset

        Returns:
            LoadedObservations ready for the pipeline

        Raises:
            FileNotFoundError: a configured file does not exist
            InvalidObservationsError: error-severity quality checks failed
        """
        path = Path(path or self.settings.observations_path)
        products_path = products_path or self.settings.products_path
        stores_path = stores_path or self.settings.stores_path

        logger.info("Loading observations", file=str(path))

        raw = normalize_columns(self._read_file(path))
        rows_read = len(raw)

        if "date" in raw.columns:
            raw = raw.filter(pl.col("date").is_not_null())
        if all(column in raw.columns for column in NATURAL_KEY):
            raw = raw.unique(subset=NATURAL_KEY, keep="first", maintain_order=True)
        rows_dropped = rows_read - len(raw)
        if rows_dropped:
            logger.warning("Dropped unparseable or duplicate observations", rows=rows_dropped)

        if products_path:
            products = self.read_dimension(products_path, PRODUCT_SCHEMA)
            if self.validate:
                self._validate_dimension(products, "products")
        else:
            products = derive_products(raw)

        if stores_path:
            stores = self.read_dimension(stores_path, STORE_SCHEMA)
            if self.validate:
                self._validate_dimension(stores, "stores")
        else:
            stores = derive_stores(raw)

        observations = coerce_observations(raw)

        validation = None
        profile: Dict[str, Any] = {}
        if self.validate:
            validation = create_observations_validator(products, stores).validate(observations)
            if validation.status == ValidationStatus.FAILED:
                logger.error("Observation validation failed", file=str(path))
                raise InvalidObservationsError(validation)
            profile = profile_observations(observations, products)

        logger.info(
            "Observations loaded",
            rows=len(observations),
            products=len(products),
            stores=len(stores),
        )

        return LoadedObservations(
            observations=observations,
            products=products,
            stores=stores,
            source=str(path),
            rows_read=rows_read,
            rows_dropped=rows_dropped,
            validation=validation,
            profile=profile,
        )
