"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()

SERVICE_VERSION = "0.1.0"


@router.get("/", response_model=HealthResponse)
def get_health(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> HealthResponse:
    """
    Service health and database connectivity. Answers 503 when the database
    is unreachable so load balancers take the instance out of rotation.
    """
    settings = get_settings()
    connected = check_db_connected(db)
    if not connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=SERVICE_VERSION,
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        cron_secret_configured=settings.CRON_SECRET is not None,
        debug_endpoints_enabled=settings.DEBUG_ENDPOINTS_ENABLED,
    )
