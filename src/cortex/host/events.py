# In-process event channel between host services and clients.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Any]


class EventBus:
    """Named-event pub/sub.

    Handlers receive the payload dict. A handler that returns a coroutine is
    scheduled on the running loop. A failing handler is logged and does not
    stop delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *event*. Returns a callable that unsubscribes it."""
        self._handlers[event].append(handler)

        def _unsubscribe() -> None:
            self.unsubscribe(event, handler)

        return _unsubscribe

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver *payload* to every handler of *event*."""
        handlers = list(self._handlers.get(event, ()))
        logger.debug("Emitting %s to %d handler(s)", event, len(handlers))
        for handler in handlers:
            try:
                result = handler(payload)
            except Exception:
                logger.warning("Handler for %s failed", event, exc_info=True)
                continue
            if asyncio.iscoroutine(result):
                task = asyncio.get_running_loop().create_task(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Async handler failed", exc_info=task.exception())
