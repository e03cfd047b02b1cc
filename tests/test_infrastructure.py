# Tests for host/infrastructure.py: bridge + sidecar startup and ready event.
# Created: 2026-10-19

import sys
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from cortex.bridge.client import BridgeClient
from cortex.bridge.store import MemoryCredentialStore
from cortex.client.readiness import SERVER_READY_EVENT, ReadinessGatedClient
from cortex.client.services import check_health, get_ai_status
from cortex.errors import SidecarError
from cortex.host.events import EventBus
from cortex.host.infrastructure import start_infrastructure
from cortex.host.sidecar import SidecarManager
from cortex.host.state import AppState, status_query


@pytest.fixture
def store():
    return MemoryCredentialStore({"anthropic": "sk-ant"})


def _fake_sidecar(state, port=None, error=None):
    sidecar = MagicMock(spec=SidecarManager)

    async def _start(bridge_port, bridge_token):
        if error:
            raise error
        state.server_port = port
        return port

    async def _stop():
        state.server_port = None

    sidecar.start = AsyncMock(side_effect=_start)
    sidecar.stop = AsyncMock(side_effect=_stop)
    return sidecar


class TestStartInfrastructure:
    async def test_emits_server_ready(self, store):
        state, bus = AppState(), EventBus()
        events = []
        bus.subscribe(SERVER_READY_EVENT, events.append)
        sidecar = _fake_sidecar(state, port=4444)

        infra = await start_infrastructure(state, bus, store, sidecar=sidecar)
        try:
            assert events == [{"port": 4444}]
            uuid.UUID(state.bridge_token)
            assert state.bridge_port == infra.bridge.port
            sidecar.start.assert_awaited_once_with(state.bridge_port, state.bridge_token)

            bridge = BridgeClient(f"http://127.0.0.1:{state.bridge_port}", state.bridge_token)
            assert await bridge.get_api_key("anthropic") == "sk-ant"
        finally:
            await infra.stop()

        sidecar.stop.assert_awaited_once()
        assert state.bridge_port is None
        assert state.server_port is None

    async def test_sidecar_failure_emits_nothing(self, store, caplog):
        state, bus = AppState(), EventBus()
        events = []
        bus.subscribe(SERVER_READY_EVENT, events.append)
        sidecar = _fake_sidecar(state, error=SidecarError("exited"))

        infra = await start_infrastructure(state, bus, store, sidecar=sidecar)
        try:
            assert events == []
            assert state.server_port is None
            assert "Failed to start sidecar" in caplog.text
        finally:
            await infra.stop()

    async def test_client_discovers_via_event(self, store):
        state, bus = AppState(), EventBus()
        client = ReadinessGatedClient(status_query(state), bus)
        client.initialize()

        infra = await start_infrastructure(
            state, bus, store, sidecar=_fake_sidecar(state, port=4545)
        )
        try:
            assert await client.wait_until_ready(timeout=1) == 4545
        finally:
            await client.aclose()
            await infra.stop()


class TestEndToEnd:
    async def test_real_sidecar(self, store):
        """Spawn the real sidecar and talk to it through the gated client."""
        state, bus = AppState(), EventBus()
        sidecar = SidecarManager(state, command=[sys.executable, "-m", "cortex", "serve"])
        client = ReadinessGatedClient(status_query(state), bus, discovery_timeout=30)
        client.initialize()

        infra = await start_infrastructure(state, bus, store, sidecar=sidecar)
        try:
            async with client:
                health = await check_health(client)
                ai_status = await get_ai_status(client)
                assert health.status == "ok"
                assert ai_status.available is False
                assert client.port == state.server_port
        finally:
            await infra.stop()
