"""Unauthenticated liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..health import HealthService

router = APIRouter(tags=["health"])


@router.get("/health")
def get_health(request: Request) -> JSONResponse:
    """Return 200 when every health indicator is up, 500 otherwise."""
    health: HealthService = request.app.state.health_service
    report = health.check()
    status_code = status.HTTP_200_OK if report.is_up else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(
        status_code=status_code,
        content={"status": report.status, "components": report.components},
    )
