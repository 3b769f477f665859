"""
Report state shared by the API routes.

The most recent MetricsReport lives on `app.state.report`; routes read it
through `get_report` and the refresh endpoint replaces it.
"""

from typing import Optional

from fastapi import HTTPException, Request
import structlog

from inventory_metrics.analytics import InventoryMetricsPipeline, MetricsReport
from inventory_metrics.config import Settings, get_settings
from inventory_metrics.ingestion import ObservationLoader

logger = structlog.get_logger(__name__)


def compute_report(settings: Optional[Settings] = None) -> MetricsReport:
    """Load the configured sources and run the metrics pipeline"""
    settings = settings or get_settings()
    loaded = ObservationLoader(settings.data).load()
    report = InventoryMetricsPipeline(settings.metrics).run(
        loaded.observations,
        loaded.products,
        loaded.stores,
    )
    logger.info(
        "Metrics report computed",
        source=loaded.source,
        latest_date=str(report.latest_date),
        duration_seconds=report.duration_seconds,
    )
    return report


def get_report(request: Request) -> MetricsReport:
    """Current report, 503 while none has been computed"""
    report: Optional[MetricsReport] = getattr(request.app.state, "report", None)
    if report is None:
        raise HTTPException(status_code=503, detail="No metrics report available")
    return report
