# Bridge server: bearer-token-protected API key lookups on localhost.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
import contextlib
import hmac
import logging
import socket
from dataclasses import dataclass

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request

from cortex.bridge.store import CredentialStore
from cortex.server.app import bind_socket

logger = logging.getLogger(__name__)


def _token_dependency(expected: str):
    async def _check(request: Request) -> None:
        auth_header = request.headers.get("authorization", "")
        token = (
            auth_header.removeprefix("Bearer ").strip() if auth_header.startswith("Bearer ") else ""
        )
        # Compare bytes: compare_digest rejects non-ASCII str
        if not expected or not token:
            raise HTTPException(status_code=401, detail="Unauthorized")
        if not hmac.compare_digest(token.encode(), expected.encode()):
            raise HTTPException(status_code=401, detail="Unauthorized")

    return _check


def create_bridge_app(token: str, store: CredentialStore) -> FastAPI:
    """Build the bridge app. Every route requires ``Authorization: Bearer <token>``."""
    app = FastAPI(
        title="Cortex Bridge",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        dependencies=[Depends(_token_dependency(token))],
    )

    @app.get("/api-key/{service}")
    async def get_api_key(service: str):
        """Read an API key from the credential store."""
        try:
            key = store.get(service)
        except Exception:
            logger.error("Failed to read API key for %s", service, exc_info=True)
            raise HTTPException(status_code=500, detail="Credential store error")
        if key is None:
            raise HTTPException(status_code=404, detail="API key not found")
        return {"key": key}

    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the host process."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


@dataclass
class BridgeHandle:
    """A running bridge server."""

    port: int
    server: uvicorn.Server
    task: asyncio.Task
    sock: socket.socket

    async def stop(self) -> None:
        self.server.should_exit = True
        try:
            await self.task
        finally:
            self.sock.close()
        logger.info("Bridge stopped")


async def start_bridge(
    token: str,
    store: CredentialStore,
    host: str = "127.0.0.1",
    startup_timeout: float = 10.0,
) -> BridgeHandle:
    """Start the bridge on a random localhost port in the current event loop."""
    sock = bind_socket(host, 0)
    port = sock.getsockname()[1]

    config = uvicorn.Config(
        create_bridge_app(token, store), log_config=None, log_level="warning"
    )
    server = _EmbeddedServer(config)
    task = asyncio.get_running_loop().create_task(server.serve(sockets=[sock]))

    loop = asyncio.get_running_loop()
    deadline = loop.time() + startup_timeout
    while not server.started:
        if task.done():
            sock.close()
            task.result()
            raise RuntimeError("Bridge server exited during startup")
        if loop.time() > deadline:
            server.should_exit = True
            sock.close()
            raise TimeoutError("Timed out starting bridge server")
        await asyncio.sleep(0.01)

    logger.info("Bridge listening on %s:%d", host, port)
    return BridgeHandle(port=port, server=server, task=task, sock=sock)
