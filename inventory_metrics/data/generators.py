"""
Synthetic Data Generator

Generates realistic retail inventory data for testing and development.
Includes:
- Products across categories with base prices
- Store locations (store, region)
- Daily observations with seasonal demand, weather, promotions and restocking
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import polars as pl
import structlog

from inventory_metrics.analytics.schema import coerce_observations
from inventory_metrics.ingestion.loader import RAW_COLUMN_MAP

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = ["Electronics", "Clothing", "Groceries", "Toys", "Furniture"]
REGIONS = ["North", "South", "East", "West"]
WEATHER_CONDITIONS = ["Sunny", "Rainy", "Cloudy", "Snowy"]
DISCOUNTS = [0, 5, 10, 15, 20]

SEASONS_BY_MONTH = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Autumn", 10: "Autumn", 11: "Autumn",
}

# Demand multiplier per category and season, 1.0 when absent
SEASONAL_DEMAND = {
    "Clothing": {"Winter": 1.4, "Summer": 0.8},
    "Toys": {"Winter": 1.6, "Spring": 0.8},
    "Furniture": {"Spring": 1.2, "Winter": 0.7},
    "Electronics": {"Autumn": 1.2},
}

PRICE_RANGES = {
    "Electronics": (50.0, 100.0),
    "Clothing": (15.0, 60.0),
    "Groceries": (2.0, 20.0),
    "Toys": (10.0, 50.0),
    "Furniture": (60.0, 100.0),
}


def season_for(day: date) -> str:
    """Meteorological season of a calendar day"""
    return SEASONS_BY_MONTH[day.month]


# =============================================================================
# GENERATORS
# =============================================================================

class ObservationGenerator:
    """
    Generate daily inventory observations for every store location and product.

    Inventory is tracked per (store, region, product): each day opens with the
    current level, sells at most what is on hand, and places a replenishment
    order that arrives the next day when stock falls below a reorder level.
    A share of replenishments is skipped so that stockouts occur.

    Example:
        generator = ObservationGenerator(n_products=20, seed=7)
        data = generator.generate(start_date=date(2024, 1, 1), days=365)
        data["observations"], data["products"], data["stores"]
    """

    def __init__(
        self,
        n_stores: int = 2,
        n_regions: int = 2,
        n_products: int = 10,
        seed: int = 42,
        categories: Optional[List[str]] = None,
        skip_restock_probability: float = 0.2,
        promotion_probability: float = 0.1,
    ):
        self.n_stores = n_stores
        self.n_regions = min(n_regions, len(REGIONS))
        self.n_products = n_products
        self.categories = categories or CATEGORIES
        self.skip_restock_probability = skip_restock_probability
        self.promotion_probability = promotion_probability
        self.rng = np.random.default_rng(seed)

    def generate_products(self) -> pl.DataFrame:
        """Generate product catalog"""
        product_ids = [f"P{i:04d}" for i in range(1, self.n_products + 1)]
        categories = [self.categories[i % len(self.categories)] for i in range(self.n_products)]
        prices = [
            round(float(self.rng.uniform(*PRICE_RANGES.get(category, (10.0, 100.0)))), 2)
            for category in categories
        ]
        return pl.DataFrame({
            "product_id": product_ids,
            "category": categories,
            "product_name": [f"{c} Product {p}" for c, p in zip(categories, product_ids)],
            "base_price": prices,
        })

    def generate_stores(self) -> pl.DataFrame:
        """Generate store locations, every store present in every region"""
        rows = [
            {"store_id": f"S{s:03d}", "region": region}
            for s in range(1, self.n_stores + 1)
            for region in REGIONS[:self.n_regions]
        ]
        return pl.DataFrame(rows).with_columns(
            (pl.lit("Store ") + pl.col("store_id") + pl.lit(" - ") + pl.col("region")).alias("store_name")
        )

    def generate(
        self,
        start_date: date = date(2024, 1, 1),
        days: int = 180,
    ) -> Dict[str, pl.DataFrame]:
        """Generate observations with their product and store dimensions"""
        products = self.generate_products()
        stores = self.generate_stores()

        n_locations = len(stores)
        n = n_locations * len(products)

        store_ids = np.repeat(np.array(stores["store_id"].to_list()), len(products))
        regions = np.repeat(np.array(stores["region"].to_list()), len(products))
        product_ids = np.tile(np.array(products["product_id"].to_list()), n_locations)
        categories = np.tile(np.array(products["category"].to_list()), n_locations)
        base_prices = np.tile(products["base_price"].to_numpy(), n_locations)

        base_demand = self.rng.gamma(2.0, 20.0, size=n)
        reorder_level = np.ceil(base_demand * 4)
        order_size = np.ceil(base_demand * 10).astype(np.int64)
        inventory = self.rng.integers(100, 500, size=n).astype(np.int64)
        in_transit = np.zeros(n, dtype=np.int64)

        frames = []
        for offset in range(days):
            day = start_date + timedelta(days=offset)
            season = season_for(day)

            inventory = inventory + in_transit

            seasonal = np.array([SEASONAL_DEMAND.get(c, {}).get(season, 1.0) for c in categories])
            promotion = self.rng.random(n) < self.promotion_probability
            expected = base_demand * seasonal * np.where(promotion, 1.3, 1.0)

            demand = self.rng.poisson(expected)
            sold = np.minimum(demand, inventory)
            closing = inventory - sold

            restock = (closing < reorder_level) & (self.rng.random(n) >= self.skip_restock_probability)
            ordered = np.where(restock, order_size, 0)

            price = np.round(base_prices * self.rng.normal(1.0, 0.02, size=n), 2)

            frames.append(pl.DataFrame({
                "store_id": store_ids,
                "region": regions,
                "product_id": product_ids,
                "inventory_level": inventory,
                "units_sold": sold,
                "units_ordered": ordered,
                "demand_forecast": np.round(expected * self.rng.normal(1.0, 0.1, size=n), 2),
                "price": price,
                "discount_pct": self.rng.choice(DISCOUNTS, size=n).astype(np.float64),
                "weather": self.rng.choice(WEATHER_CONDITIONS, size=n),
                "promotion": np.where(promotion, "1", "0"),
                "competitor_price": np.round(price * self.rng.normal(1.0, 0.05, size=n), 2),
                "season": np.full(n, season),
            }).with_columns(pl.lit(day).alias("date")))

            inventory = closing
            in_transit = ordered

        observations = coerce_observations(pl.concat(frames))

        logger.info(
            "Generated observations",
            rows=len(observations),
            locations=n_locations,
            products=len(products),
            days=days,
        )

        return {
            "observations": observations,
            "products": products,
            "stores": stores,
        }

    @staticmethod
    def to_raw(observations: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
        """Render observations with the raw dataset headers, category included"""
        canonical_to_raw = {name: raw for raw, name in RAW_COLUMN_MAP.items()}
        joined = observations.join(
            products.select(["product_id", "category"]), on="product_id", how="left"
        )
        return joined.select([
            pl.col(name).alias(raw) for name, raw in canonical_to_raw.items() if name in joined.columns
        ])

    def save(
        self,
        output_dir: Union[str, Path],
        data: Optional[Dict[str, pl.DataFrame]] = None,
        raw: bool = True,
    ) -> Dict[str, Path]:
        """
        Write a generated dataset to files.

        With raw=True the observations are written as a single CSV with the
        raw dataset headers and no dimension files, the way the source
        dataset is shipped. Otherwise canonical Parquet files are written for
        observations, products and stores.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        data = data or self.generate()

        if raw:
            path = output_dir / "inventory.csv"
            self.to_raw(data["observations"], data["products"]).write_csv(path)
            written = {"observations": path}
        else:
            written = {}
            for name, df in data.items():
                path = output_dir / f"{name}.parquet"
                df.write_parquet(path)
                written[name] = path

        for name, path in written.items():
            logger.info("Saved dataset", name=name, path=str(path))

        return written
