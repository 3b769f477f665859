"""
Metrics View Endpoints

REST API over the result sets of the latest metrics report.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
import structlog

from inventory_metrics.analytics import MetricsReport
from inventory_metrics.ingestion import InvalidObservationsError
from inventory_metrics.serving.api.dependencies import compute_report, get_report

logger = structlog.get_logger(__name__)
router = APIRouter()


class ViewSummary(BaseModel):
    """Result set name and size"""
    name: str
    rows: int
    columns: List[str]


class ViewListResponse(BaseModel):
    """Available result sets"""
    latest_date: Optional[date]
    computed_at: datetime
    views: List[ViewSummary]


class ViewResponse(BaseModel):
    """Paginated result set rows"""
    name: str
    latest_date: Optional[date]
    total: int
    limit: int
    offset: int
    items: List[Dict[str, Any]]


class RefreshResponse(BaseModel):
    """Outcome of a report recomputation"""
    status: str
    latest_date: Optional[date]
    input_rows: int
    excluded_rows: int
    duration_seconds: float
    warnings: List[str]


@router.get("", response_model=ViewListResponse)
async def list_views(report: MetricsReport = Depends(get_report)) -> ViewListResponse:
    """List result sets with their row counts"""
    return ViewListResponse(
        latest_date=report.latest_date,
        computed_at=report.completed_at,
        views=[
            ViewSummary(name=name, rows=len(df), columns=df.columns)
            for name, df in report.views.items()
        ],
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_views(request: Request) -> RefreshResponse:
    """
    Recompute every result set from the configured sources.

    The previous report keeps serving if the recomputation fails.
    """
    try:
        report = await run_in_threadpool(compute_report)
    except FileNotFoundError as e:
        logger.error("Refresh failed", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    except InvalidObservationsError as e:
        logger.error("Refresh failed", error=str(e))
        raise HTTPException(
            status_code=422,
            detail={
                "message": str(e),
                "failed_checks": [check.message for check in e.result.errors],
            },
        )

    request.app.state.report = report

    return RefreshResponse(
        status="refreshed",
        latest_date=report.latest_date,
        input_rows=report.input_rows,
        excluded_rows=report.excluded_rows,
        duration_seconds=report.duration_seconds,
        warnings=report.warnings,
    )


@router.get("/{name}", response_model=ViewResponse)
async def get_view(
    name: str,
    limit: int = Query(100, ge=1, le=10000),
    offset: int = Query(0, ge=0),
    report: MetricsReport = Depends(get_report),
) -> ViewResponse:
    """Rows of one result set in its documented order"""
    if name not in report.views:
        raise HTTPException(status_code=404, detail=f"Unknown view: {name}")

    df = report[name]
    return ViewResponse(
        name=name,
        latest_date=report.latest_date,
        total=len(df),
        limit=limit,
        offset=offset,
        items=df.slice(offset, limit).to_dicts(),
    )
