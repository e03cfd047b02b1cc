"""Sidecar FastAPI application and server runner.

``create_app()`` builds the app with CORS for the desktop webview and mounts
the routers. ``run_server()`` binds the listening socket itself so the real
port is known before serving starts; with port 0 the OS picks a free one. The
port is then printed to stdout as ``CORTEX_PORT:<port>`` for the host
launcher to read.
"""

from __future__ import annotations

import logging
import socket

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cortex import __version__
from cortex.config import Settings, get_settings
from cortex.server import ai, health
from cortex.server.schemas import RootStatus

logger = logging.getLogger(__name__)

SERVER_NAME = "cortex-sidecar"
PORT_MARKER = "CORTEX_PORT:"

# Desktop webview origins (Tauri on macOS/Linux, Tauri on Windows, Vite dev server)
_BUILTIN_ORIGINS = [
    "tauri://localhost",
    "https://tauri.localhost",
    "http://localhost:1420",
]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the sidecar application."""
    settings = settings or get_settings()

    app = FastAPI(title="Cortex Sidecar", version=__version__)

    # --- CORS -----------------------------------------------------------
    origins = list(dict.fromkeys(_BUILTIN_ORIGINS + settings.cors_allowed_origins))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # --- Routes ---------------------------------------------------------
    app.include_router(health.router)
    app.include_router(ai.router)

    @app.get("/", response_model=RootStatus)
    async def root():
        return RootStatus(server=SERVER_NAME)

    return app


def format_port_marker(port: int) -> str:
    return f"{PORT_MARKER}{port}"


def parse_port_marker(line: str) -> int | None:
    """Extract the port from a ``CORTEX_PORT:<port>`` line.

    Returns None for any other line. Raises ValueError when the marker is
    present but the port is not a valid TCP port.
    """
    line = line.strip()
    if not line.startswith(PORT_MARKER):
        return None
    port = int(line[len(PORT_MARKER) :].strip())
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range: {port}")
    return port


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a listening TCP socket; port 0 picks an ephemeral port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the sidecar until interrupted."""
    import uvicorn

    settings = get_settings()
    host = host or settings.server_host
    port = settings.server_port if port is None else port

    sock = bind_socket(host, port)
    bound_port = sock.getsockname()[1]

    print(f"Cortex sidecar listening on http://{host}:{bound_port}", flush=True)
    # Parsed by the host launcher; keep the format in sync with parse_port_marker
    print(format_port_marker(bound_port), flush=True)

    config = uvicorn.Config(create_app(settings), log_config=None, log_level="warning")
    server = uvicorn.Server(config)
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
        logger.info("Cortex sidecar stopped")
