"""Schemas for the health check response."""

from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel


class HealthResponse(CamelModel):
    """Liveness plus the settings operators check first when the trial cron misbehaves."""

    status: Literal["ok", "degraded"] = Field(
        default="ok", description="degraded when the database is unreachable"
    )
    service: str = "medsas-api"
    version: str
    environment: str = Field(description="dev or prod")
    database: Literal["connected", "disconnected"]
    cron_secret_configured: bool = Field(
        description="Whether the trial-expiry endpoints accept the X-Cron-Secret header"
    )
    debug_endpoints_enabled: bool
