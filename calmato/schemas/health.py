"""Liveness payload for GET /health/."""

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """'degraded' whenever the credential store cannot be reached."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: Literal["connected", "disconnected"]
