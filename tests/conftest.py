"""
Test Suite Configuration
"""
from datetime import date, timedelta
from typing import Callable, Dict, Optional, Sequence

import pytest
import polars as pl

from inventory_metrics.analytics.schema import coerce_observations
from inventory_metrics.config import MetricsSettings
from inventory_metrics.data import ObservationGenerator


@pytest.fixture
def metrics_settings() -> MetricsSettings:
    """Default analytical settings, independent of the environment"""
    return MetricsSettings(reference_date=None)


@pytest.fixture
def observation_factory() -> Callable[..., pl.DataFrame]:
    """
    Build a daily observation series for one (store, region, product).

    `units` and `inventory` are either one value for every day or a sequence
    with one value per day.
    """
    def make(
        product_id: str = "P0001",
        store_id: str = "S001",
        region: str = "North",
        start: date = date(2024, 1, 1),
        days: int = 10,
        units=5,
        inventory=100,
        price: float = 10.0,
        discount_pct: float = 0.0,
        season: Optional[str] = "Winter",
        weather: str = "Sunny",
    ) -> pl.DataFrame:
        units_seq = list(units) if isinstance(units, Sequence) else [units] * days
        inventory_seq = list(inventory) if isinstance(inventory, Sequence) else [inventory] * days
        return coerce_observations(pl.DataFrame({
            "date": [start + timedelta(days=i) for i in range(days)],
            "store_id": [store_id] * days,
            "region": [region] * days,
            "product_id": [product_id] * days,
            "inventory_level": inventory_seq,
            "units_sold": units_seq,
            "units_ordered": [0] * days,
            "price": [price] * days,
            "discount_pct": [discount_pct] * days,
            "weather": [weather] * days,
            "promotion": ["0"] * days,
            "season": [season] * days,
        }))

    return make


@pytest.fixture
def products_df() -> pl.DataFrame:
    """Product dimension for hand-built observations"""
    return pl.DataFrame({
        "product_id": ["P0001", "P0002", "P0003", "P0004"],
        "category": ["Groceries", "Groceries", "Toys", "Toys"],
    })


@pytest.fixture(scope="session")
def generated_data() -> Dict[str, pl.DataFrame]:
    """Seeded synthetic dataset: 4 locations, 8 products, 200 days"""
    generator = ObservationGenerator(n_stores=2, n_regions=2, n_products=8, seed=7)
    return generator.generate(start_date=date(2024, 1, 1), days=200)
