# Error taxonomy shared by the sidecar client, bridge client and host services.
# Created: 2026-10-19
#
# Transport-level failures are never wrapped: they surface as httpx.TransportError,
# aliased here as TransportFailure for callers that want a local name.

from __future__ import annotations

import httpx

TransportFailure = httpx.TransportError


class CortexError(Exception):
    """Base class for all Cortex errors."""


class RequestFailed(CortexError):
    """The sidecar answered with a non-success HTTP status."""

    def __init__(self, status: int, status_text: str, url: str = "") -> None:
        self.status = status
        self.status_text = status_text
        self.url = url
        super().__init__(f"Sidecar request failed: {status} {status_text}")


class DiscoveryTimeout(CortexError):
    """The sidecar port was not discovered within the requested wait."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Sidecar port not discovered within {timeout:g}s")


class BridgeError(CortexError):
    """The credential bridge answered with an unexpected status."""

    def __init__(self, status: int, service: str, detail: str = "") -> None:
        self.status = status
        self.service = service
        message = f'Bridge returned {status} for service "{service}"'
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ClientClosed(CortexError):
    """The sidecar client was closed before or while waiting for discovery."""


class SidecarError(CortexError):
    """The sidecar process could not be started or never reported its port."""
