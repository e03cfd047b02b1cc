# Tests for host/sidecar.py: spawning, port marker parsing, shutdown.
# Created: 2026-10-19

import sys

import pytest

from cortex.errors import SidecarError
from cortex.host.sidecar import SidecarManager, default_command
from cortex.host.state import AppState


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


_REPORTS_PORT = (
    "import time\n"
    "print('Cortex sidecar listening on http://127.0.0.1:5555', flush=True)\n"
    "print('CORTEX_PORT:5555', flush=True)\n"
    "print('after marker', flush=True)\n"
    "time.sleep(30)\n"
)


@pytest.fixture
def state():
    return AppState()


class TestSidecarManager:
    def test_default_command(self):
        cmd = default_command()
        assert cmd[0] == sys.executable
        assert cmd[1:] == ["-m", "cortex", "serve"]

    def test_build_env(self, state):
        env = SidecarManager(state).build_env(12345, "tok")
        assert env["CORTEX_BRIDGE_URL"] == "http://127.0.0.1:12345"
        assert env["CORTEX_BRIDGE_TOKEN"] == "tok"
        assert env["CORTEX_SERVER_PORT"] == "0"

    async def test_start_reads_port_marker(self, state):
        manager = SidecarManager(state, command=_python(_REPORTS_PORT))
        try:
            port = await manager.start(12345, "tok")
            assert port == 5555
            assert state.server_port == 5555
            assert state.sidecar_pid == manager.process.pid
        finally:
            await manager.stop()
        assert state.server_port is None
        assert manager.process is None

    async def test_start_twice_returns_known_port(self, state):
        manager = SidecarManager(state, command=_python(_REPORTS_PORT))
        try:
            first = await manager.start(1, "tok")
            pid = manager.process.pid
            assert await manager.start(1, "tok") == first
            assert manager.process.pid == pid
        finally:
            await manager.stop()

    async def test_child_sees_bridge_env(self, state):
        code = (
            "import os, time\n"
            "print('CORTEX_PORT:' + os.environ['CORTEX_BRIDGE_URL'].rsplit(':', 1)[1], flush=True)\n"
            "time.sleep(30)\n"
        )
        manager = SidecarManager(state, command=_python(code))
        try:
            assert await manager.start(4242, "tok") == 4242
        finally:
            await manager.stop()

    async def test_exit_without_marker(self, state):
        manager = SidecarManager(state, command=_python("print('no port here')"))
        with pytest.raises(SidecarError, match="without reporting a port"):
            await manager.start(1, "tok")
        assert state.server_port is None
        assert manager.process is None

    async def test_bad_marker(self, state):
        manager = SidecarManager(state, command=_python("print('CORTEX_PORT:abc', flush=True)"))
        with pytest.raises(SidecarError, match="Failed to parse sidecar port"):
            await manager.start(1, "tok")

    async def test_startup_timeout(self, state):
        manager = SidecarManager(
            state, command=_python("import time; time.sleep(30)"), startup_timeout=0.3
        )
        with pytest.raises(SidecarError, match="Timed out"):
            await manager.start(1, "tok")
        assert manager.process is None

    async def test_spawn_failure(self, state):
        manager = SidecarManager(state, command=["/nonexistent/cortex-sidecar"])
        with pytest.raises(SidecarError, match="Failed to spawn"):
            await manager.start(1, "tok")

    async def test_stop_without_start(self, state):
        await SidecarManager(state).stop()
        assert state.server_port is None
