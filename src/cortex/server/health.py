# Health router.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import APIRouter

from cortex.server.schemas import HealthStatus

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
async def get_health():
    """Liveness check."""
    return HealthStatus()
