# Sidecar client: readiness-gated HTTP calls and typed service helpers.
# Created: 2026-10-19

from cortex.client.readiness import (
    SERVER_READY_EVENT,
    ClientState,
    EventSource,
    ReadinessGatedClient,
    StatusSource,
)

__all__ = [
    "SERVER_READY_EVENT",
    "ClientState",
    "EventSource",
    "ReadinessGatedClient",
    "StatusSource",
]
