# Sidecar process lifecycle: spawn, read the port marker, stop.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
import logging
import os
import sys

from cortex.errors import SidecarError
from cortex.host.state import AppState
from cortex.server.app import parse_port_marker

logger = logging.getLogger(__name__)


def default_command() -> list[str]:
    return [sys.executable, "-m", "cortex", "serve"]


class SidecarManager:
    """Manages the sidecar server subprocess.

    The child binds port 0 and prints ``CORTEX_PORT:<port>`` on stdout once it
    knows its port. After that, the rest of its stdout is drained to the log.
    """

    def __init__(
        self,
        state: AppState,
        command: list[str] | None = None,
        startup_timeout: float = 30.0,
    ) -> None:
        self.state = state
        self.command = command or default_command()
        self.startup_timeout = startup_timeout
        self.process: asyncio.subprocess.Process | None = None
        self._drain_task: asyncio.Task | None = None

    def build_env(self, bridge_port: int, bridge_token: str) -> dict[str, str]:
        env = dict(os.environ)
        env["CORTEX_BRIDGE_URL"] = f"http://127.0.0.1:{bridge_port}"
        env["CORTEX_BRIDGE_TOKEN"] = bridge_token
        # Port 0 tells the server to pick a random available port
        env["CORTEX_SERVER_PORT"] = "0"
        env["PYTHONUNBUFFERED"] = "1"
        return env

    async def start(self, bridge_port: int, bridge_token: str) -> int:
        """Start the sidecar and return the port it bound to."""
        if self.process is not None and self.process.returncode is None:
            if self.state.server_port is not None:
                return self.state.server_port
            await self.stop()

        logger.info("Starting sidecar: %s", " ".join(self.command))
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                env=self.build_env(bridge_port, bridge_token),
                stdout=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SidecarError(f"Failed to spawn sidecar: {e}") from e

        try:
            port = await self._wait_for_port()
        except Exception:
            await self.stop()
            raise

        self.state.server_port = port
        self.state.sidecar_pid = self.process.pid
        self._drain_task = asyncio.get_running_loop().create_task(
            self._drain_stdout(self.process.stdout)
        )
        logger.info("Sidecar started on port %d (PID %d)", port, self.process.pid)
        return port

    async def _wait_for_port(self) -> int:
        """Read stdout lines until the port marker shows up."""
        if not self.process or not self.process.stdout:
            raise SidecarError("Failed to capture sidecar stdout")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise SidecarError("Timed out waiting for the sidecar to report a port")
            try:
                line_bytes = await asyncio.wait_for(self.process.stdout.readline(), remaining)
            except TimeoutError:
                continue
            if not line_bytes:
                raise SidecarError("Sidecar exited without reporting a port")

            line = line_bytes.decode("utf-8", errors="replace").strip()
            logger.debug("[sidecar] %s", line)
            try:
                port = parse_port_marker(line)
            except ValueError as e:
                raise SidecarError(f"Failed to parse sidecar port: {e}") from e
            if port is not None:
                return port

    async def _drain_stdout(self, stdout: asyncio.StreamReader) -> None:
        # Keep reading so the child never blocks on a full pipe
        while line := await stdout.readline():
            logger.debug("[sidecar] %s", line.decode("utf-8", errors="replace").rstrip())

    async def stop(self) -> None:
        """Terminate the sidecar, killing it if it does not exit in time."""
        if self.process is not None:
            logger.info("Stopping sidecar (PID %d)", self.process.pid)
            try:
                if self.process.returncode is None:
                    self.process.terminate()
                    try:
                        await asyncio.wait_for(self.process.wait(), timeout=5.0)
                    except TimeoutError:
                        self.process.kill()
                        await self.process.wait()
            except ProcessLookupError:
                pass  # Already dead
            finally:
                self.process = None

        if self._drain_task is not None:
            self._drain_task.cancel()
            self._drain_task = None

        self.state.server_port = None
        self.state.sidecar_pid = None
