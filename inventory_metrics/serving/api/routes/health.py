"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from inventory_metrics.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Reports whether a metrics report is loaded and how fresh its data is.
    The service is degraded, not down, while no report is available.
    """
    settings = get_settings()
    report = getattr(request.app.state, "report", None)

    if report is None:
        checks = {"report": {"status": "missing"}}
        overall_status = "degraded"
    else:
        checks = {
            "report": {
                "status": "ready",
                "latest_date": str(report.latest_date) if report.latest_date else None,
                "computed_at": report.completed_at.isoformat(),
                "views": len(report.views),
                "warnings": len(report.warnings),
            }
        }
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """
    Kubernetes readiness probe endpoint.

    Returns 200 once a metrics report is available to serve.
    """
    if getattr(request.app.state, "report", None) is None:
        response.status_code = 503
        return {"status": "not_ready", "reason": "report_unavailable"}
    return {"status": "ready"}
