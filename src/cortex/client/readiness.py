# Readiness-gated HTTP client for the sidecar server.
# Created: 2026-10-19
#
# The sidecar binds an ephemeral port, so the client learns it from one of two
# racing sources: a one-shot status query against the host, and the host's
# "server-ready" event. Both feed a single shared future; the first to settle
# it wins and the other is ignored. request() awaits that future before
# sending anything.

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import httpx

from cortex.errors import ClientClosed, DiscoveryTimeout, RequestFailed
from cortex.host.state import ServerStatus

logger = logging.getLogger(__name__)

SERVER_READY_EVENT = "server-ready"
DEFAULT_HEADERS = {"Content-Type": "application/json"}

StatusSource = Callable[[], Awaitable[ServerStatus]]


class EventSource(Protocol):
    """Notification channel the host emits ``server-ready`` on."""

    def subscribe(
        self, event: str, handler: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]: ...


class ClientState(str, enum.Enum):
    UNDISCOVERED = "undiscovered"
    DISCOVERING = "discovering"
    READY = "ready"


class ReadinessGatedClient:
    """JSON HTTP client that waits for the sidecar port before each call.

    Discovery runs at most once per instance. Concurrent callers that arrive
    while it is in flight all await the same future.

    Without a timeout, a caller waits for as long as discovery takes, which is
    forever if the sidecar never comes up. Pass ``discovery_timeout`` here or
    per call to bound the wait.
    """

    def __init__(
        self,
        status_source: StatusSource,
        event_source: EventSource,
        *,
        host: str = "127.0.0.1",
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        discovery_timeout: float | None = None,
    ) -> None:
        self._status_source = status_source
        self._event_source = event_source
        self._host = host
        self._http = http_client
        self._owns_http = http_client is None
        self._transport = transport
        self._discovery_timeout = discovery_timeout

        self._port: int | None = None
        self._port_future: asyncio.Future[int] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._closed = False

    # -- Discovery ----------------------------------------------------------

    @property
    def state(self) -> ClientState:
        if self._port is not None:
            return ClientState.READY
        if self._port_future is not None:
            return ClientState.DISCOVERING
        return ClientState.UNDISCOVERED

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def base_url(self) -> str | None:
        if self._port is None:
            return None
        return f"http://{self._host}:{self._port}"

    def initialize(self) -> None:
        """Start discovery if it has not started yet. Needs a running loop."""
        self._discovery()

    def _discovery(self) -> asyncio.Future[int]:
        if self._closed:
            raise ClientClosed("Sidecar client is closed")
        if self._port_future is not None:
            return self._port_future

        loop = asyncio.get_running_loop()
        future = self._port_future = loop.create_future()

        # Listen first so an event emitted while the poll is in flight is not lost
        self._unsubscribe = self._event_source.subscribe(SERVER_READY_EVENT, self._on_server_ready)
        self._poll_task = loop.create_task(self._poll_status())
        logger.debug("Sidecar discovery started")
        return future

    async def wait_until_ready(self, timeout: float | None = None) -> int:
        """Return the sidecar port, waiting for discovery if needed.

        Raises ClientClosed once aclose() has been called, including for
        callers that were already waiting.
        """
        future = self._discovery()
        if self._port is not None:
            return self._port

        if timeout is None:
            timeout = self._discovery_timeout
        if timeout is None:
            return await asyncio.shield(future)

        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout)
        except TimeoutError:
            raise DiscoveryTimeout(timeout) from None

    async def _poll_status(self) -> None:
        try:
            status = await self._status_source()
        except Exception:
            logger.warning("Sidecar status check failed; waiting for ready event", exc_info=True)
            return

        if status.running and status.port:
            self._resolve(status.port, "status check")
        else:
            logger.debug("Sidecar not running yet; waiting for ready event")

    def _on_server_ready(self, payload: dict[str, Any]) -> None:
        port = payload.get("port") if isinstance(payload, dict) else None
        if not isinstance(port, int) or isinstance(port, bool) or port <= 0:
            logger.warning("Ignoring malformed %s payload: %r", SERVER_READY_EVENT, payload)
            return
        self._resolve(port, SERVER_READY_EVENT)

    def _resolve(self, port: int, source: str) -> None:
        future = self._port_future
        if future is None or future.done():
            logger.debug("Sidecar port %d from %s ignored; already resolved", port, source)
            return
        self._port = port
        future.set_result(port)
        logger.info("Sidecar ready on port %d (via %s)", port, source)

    # -- Requests -----------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            # No client-wide timeout; requests pass their own
            self._http = httpx.AsyncClient(
                transport=self._transport, follow_redirects=True, trust_env=False, timeout=None
            )
        return self._http

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        discovery_timeout: float | None = None,
    ) -> Any:
        """Send a request to ``base_url + path`` and return the parsed JSON body.

        Default headers are merged with ``headers``; the caller's values win.
        Raises RequestFailed on a 4xx/5xx status. Transport errors propagate
        as httpx.TransportError.
        """
        port = await self.wait_until_ready(discovery_timeout)
        url = f"http://{self._host}:{port}{path}"

        merged = httpx.Headers(DEFAULT_HEADERS)
        if headers:
            merged.update(headers)

        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout

        resp = await self._client().request(
            method,
            url,
            headers=merged,
            json=json,
            params=params,
            follow_redirects=True,
            **extra,
        )
        if resp.is_error:
            raise RequestFailed(resp.status_code, resp.reason_phrase, url)

        if not resp.content:
            return None
        return resp.json()

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request(path, method="GET", **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request(path, method="POST", json=json, **kwargs)

    # -- Teardown -----------------------------------------------------------

    async def aclose(self) -> None:
        """Detach from the event channel and close the owned HTTP client.

        Callers still waiting for discovery get ClientClosed.
        """
        self._closed = True
        future = self._port_future
        if future is not None and not future.done():
            future.set_exception(ClientClosed("Sidecar client closed before discovery finished"))
            # Mark retrieved so an unwaited future does not log on collection
            future.exception()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> ReadinessGatedClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
