# Sidecar response schemas.
# Created: 2026-10-19

from __future__ import annotations

from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str = "ok"


class RootStatus(BaseModel):
    status: str = "ok"
    server: str


class AiStatus(BaseModel):
    """Availability of the AI service."""

    available: bool
    message: str
