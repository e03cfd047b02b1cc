# Typed sidecar calls built on the readiness-gated client.
# Created: 2026-10-19

from __future__ import annotations

import logging

from cortex.client.readiness import ReadinessGatedClient
from cortex.server.schemas import AiStatus, HealthStatus

logger = logging.getLogger(__name__)


async def check_health(client: ReadinessGatedClient) -> HealthStatus:
    """Ask the sidecar whether it is up."""
    data = await client.request("/health")
    return HealthStatus.model_construct(**data)


async def get_ai_status(client: ReadinessGatedClient) -> AiStatus:
    """Check whether the AI service is available."""
    logger.debug("Checking AI status")
    data = await client.request("/ai/status")
    return AiStatus.model_construct(**data)
