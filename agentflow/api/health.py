"""
Health check endpoints.

Liveness probe used by load balancers and orchestrators.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from agentflow.db import verify_database_connection

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/check")
async def health_check(request: Request) -> JSONResponse:
    """Report ``Ok`` when the database answers, ``Failed`` (503) otherwise."""
    settings = request.app.state.settings
    db_ok = verify_database_connection()
    body: dict[str, Any] = {
        "status": "Ok" if db_ok else "Failed",
        "version": settings.app_version,
        "timestamp": datetime.now(UTC).isoformat(),
        "database": "ok" if db_ok else "unavailable",
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)
