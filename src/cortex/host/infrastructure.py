# Startup orchestration for the bridge and sidecar.
# Created: 2026-10-19

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from cortex.bridge.server import BridgeHandle, start_bridge
from cortex.bridge.store import CredentialStore
from cortex.client.readiness import SERVER_READY_EVENT
from cortex.errors import SidecarError
from cortex.host.events import EventBus
from cortex.host.sidecar import SidecarManager
from cortex.host.state import AppState

logger = logging.getLogger(__name__)


@dataclass
class Infrastructure:
    """Running host services for one session."""

    state: AppState
    bus: EventBus
    bridge: BridgeHandle | None = None
    sidecar: SidecarManager | None = None

    async def stop(self) -> None:
        if self.sidecar is not None:
            await self.sidecar.stop()
        if self.bridge is not None:
            await self.bridge.stop()
            self.bridge = None
            self.state.bridge_port = None


async def start_infrastructure(
    state: AppState,
    bus: EventBus,
    store: CredentialStore,
    sidecar: SidecarManager | None = None,
) -> Infrastructure:
    """Start the bridge, then the sidecar, then emit ``server-ready``.

    Startup failures are logged, not raised: the app keeps running without a
    sidecar and clients simply never become ready.
    """
    state.bridge_token = str(uuid.uuid4())
    logger.info("Generated bridge token for this session")
    infra = Infrastructure(state=state, bus=bus)

    try:
        infra.bridge = await start_bridge(state.bridge_token, store)
    except (OSError, RuntimeError, TimeoutError):
        logger.error("Failed to start bridge", exc_info=True)
        return infra
    state.bridge_port = infra.bridge.port

    infra.sidecar = sidecar or SidecarManager(state)
    try:
        port = await infra.sidecar.start(state.bridge_port, state.bridge_token)
    except SidecarError as e:
        logger.error("Failed to start sidecar: %s", e)
        return infra

    logger.info("Sidecar ready on port %d", port)
    bus.emit(SERVER_READY_EVENT, {"port": port})
    return infra
