"""
Metrics Batch Job
Loads observations, runs the metrics pipeline and writes every result set.

Usage:
    python scripts/compute_metrics.py --input data/inventory.csv --output data/metrics
"""

import argparse
import sys
from datetime import date
from pathlib import Path

from inventory_metrics.analytics import InventoryMetricsPipeline
from inventory_metrics.config import get_settings
from inventory_metrics.config.logging import configure_logging, get_logger
from inventory_metrics.ingestion import InvalidObservationsError, ObservationLoader


def main() -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Compute inventory metrics")
    parser.add_argument("--input", type=Path, default=None, help="Observation file (csv or parquet)")
    parser.add_argument("--products", type=Path, default=None, help="Product dimension file")
    parser.add_argument("--stores", type=Path, default=None, help="Store dimension file")
    parser.add_argument("--output", type=Path, default=Path(settings.data.output_path), help="Output directory")
    parser.add_argument("--format", choices=["parquet", "csv"], default=settings.data.default_format)
    parser.add_argument("--reference-date", type=date.fromisoformat, default=None, help="Metrics as of this date")
    parser.add_argument("--no-validate", action="store_true", help="Skip data quality checks")
    args = parser.parse_args()

    configure_logging()
    logger = get_logger("compute_metrics")

    loader = ObservationLoader(settings.data, validate=not args.no_validate)
    try:
        loaded = loader.load(args.input, args.products, args.stores)
    except (FileNotFoundError, InvalidObservationsError) as e:
        logger.error("Could not load observations", error=str(e))
        return 1

    pipeline = InventoryMetricsPipeline(settings.metrics)
    report = pipeline.run(
        loaded.observations,
        loaded.products,
        loaded.stores,
        reference_date=args.reference_date,
    )
    written = report.write(args.output, args.format)

    logger.info(
        "Metrics written",
        latest_date=str(report.latest_date),
        views=len(written),
        output=str(args.output),
        duration_seconds=report.duration_seconds,
    )
    for warning in report.warnings:
        logger.warning(warning)
    return 0


if __name__ == "__main__":
    sys.exit(main())
