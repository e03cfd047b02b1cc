"""Cortex entry point.

``cortex serve`` runs the sidecar server (what the host launcher spawns).
``cortex up`` plays the host: starts the bridge and the sidecar, discovers the
sidecar through the readiness-gated client and keeps everything running until
interrupted.
"""

import argparse
import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

from cortex import __version__
from cortex.config import get_settings
from cortex.logging_setup import setup_logging

logger = logging.getLogger(__name__)

COMMANDS = ("serve", "up")


def _package_version() -> str:
    try:
        return get_version("cortex-sidecar")
    except PackageNotFoundError:
        return __version__


async def run_host(discovery_timeout: float | None = None) -> None:
    """Start host services and talk to the sidecar until cancelled."""
    from cortex.bridge.store import MemoryCredentialStore
    from cortex.client.readiness import ReadinessGatedClient
    from cortex.client.services import check_health, get_ai_status
    from cortex.host.events import EventBus
    from cortex.host.infrastructure import start_infrastructure
    from cortex.host.state import AppState, status_query

    state = AppState()
    bus = EventBus()
    client = ReadinessGatedClient(
        status_query(state), bus, discovery_timeout=discovery_timeout
    )
    # Subscribe before startup so the ready event cannot be missed
    client.initialize()

    infra = await start_infrastructure(state, bus, MemoryCredentialStore())
    try:
        async with client:
            health = await check_health(client)
            ai_status = await get_ai_status(client)
            logger.info("Sidecar at %s: health=%s", client.base_url, health.status)
            logger.info("AI available=%s (%s)", ai_status.available, ai_status.message)
            await asyncio.Event().wait()
    finally:
        await infra.stop()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Cortex sidecar integration layer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cortex                      Start the sidecar server (same as 'serve')
  cortex serve --port 0       Start the sidecar on a random free port
  cortex up                   Start bridge + sidecar and discover the sidecar port
""",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=COMMANDS,
        help="'serve' runs the sidecar server; 'up' runs the host services",
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind (serve only)")
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port to bind (serve only; default: CORTEX_SERVER_PORT or 0)",
    )
    parser.add_argument(
        "--discovery-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the sidecar port (up only; default: wait forever)",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    parser.add_argument(
        "--version", "-v", action="version", version=f"%(prog)s {_package_version()}"
    )

    args = parser.parse_args()
    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)

    if args.command == "up":
        try:
            asyncio.run(run_host(discovery_timeout=args.discovery_timeout))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        return

    from cortex.server import run_server

    try:
        run_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
