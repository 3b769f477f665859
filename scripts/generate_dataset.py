"""
Inventory Dataset Generator
Writes a synthetic daily inventory dataset in the raw retail format.

Usage:
    python scripts/generate_dataset.py --stores 5 --products 20 --days 365
"""

import argparse
from datetime import date
from pathlib import Path

from inventory_metrics.config.logging import configure_logging
from inventory_metrics.data import ObservationGenerator

DEFAULT_OUTPUT_DIR = Path(__file__).parent.parent / "data"


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic inventory dataset")
    parser.add_argument("--stores", type=int, default=5, help="Number of stores")
    parser.add_argument("--regions", type=int, default=4, help="Regions per store")
    parser.add_argument("--products", type=int, default=20, help="Number of products")
    parser.add_argument("--days", type=int, default=365, help="Number of days")
    parser.add_argument("--start", type=date.fromisoformat, default=date(2024, 1, 1), help="First day (YYYY-MM-DD)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT_DIR, help="Output directory")
    parser.add_argument(
        "--canonical",
        action="store_true",
        help="Write canonical parquet files with dimensions instead of the raw CSV",
    )
    args = parser.parse_args()

    configure_logging()

    generator = ObservationGenerator(
        n_stores=args.stores,
        n_regions=args.regions,
        n_products=args.products,
        seed=args.seed,
    )
    data = generator.generate(start_date=args.start, days=args.days)
    written = generator.save(args.output, data=data, raw=not args.canonical)

    print("=" * 50)
    print("DATASET GENERATION COMPLETE")
    print("=" * 50)
    print(f"   Observations: {len(data['observations']):,}")
    print(f"   Products:     {len(data['products']):,}")
    print(f"   Locations:    {len(data['stores']):,}")
    for name, path in written.items():
        print(f"   {name}: {path}")


if __name__ == "__main__":
    main()
