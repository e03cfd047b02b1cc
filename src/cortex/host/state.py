# Host application state and the server status query.
# Created: 2026-10-19

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pydantic import BaseModel


class ServerStatus(BaseModel):
    """Status of the sidecar server."""

    # Whether the sidecar is running and has reported its port
    running: bool = False
    port: int | None = None


@dataclass
class AppState:
    """State shared by the host services for one application session."""

    # Per-session bearer token for the bridge (UUID4)
    bridge_token: str = ""
    bridge_port: int | None = None
    # Set once the sidecar reports its port
    server_port: int | None = None
    sidecar_pid: int | None = None


async def get_server_status(state: AppState) -> ServerStatus:
    """Current status of the sidecar, as seen by the host."""
    return ServerStatus(running=state.server_port is not None, port=state.server_port)


def status_query(state: AppState) -> Callable[[], Awaitable[ServerStatus]]:
    """Bind :func:`get_server_status` to *state* for use as a client status source."""

    async def _query() -> ServerStatus:
        return await get_server_status(state)

    return _query
