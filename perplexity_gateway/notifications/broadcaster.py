from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from perplexity_gateway.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUEUE_SIZE = 1000


def format_sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event)}\n\n"


def connected_event() -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": None,
        "result": {"status": "connected", "timestamp": utc_now_iso()},
    }


class EventBroadcaster:
    """
    Fan-out of JSON-RPC events to every open event stream.

    Each subscriber owns a bounded queue, so a listener sees events in the
    order they were published. A listener whose queue fills up is dropped and
    its stream ends. The subscriber set is only touched under the lock;
    ``publish`` works on a snapshot, so listeners may leave mid-broadcast.
    """

    def __init__(self, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE) -> None:
        self._subscribers: set[asyncio.Queue[dict[str, Any] | None]] = set()
        self._lock = threading.Lock()
        self._max_queue_size = max_queue_size

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[dict[str, Any] | None]]:
        queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers.add(queue)
            count = len(self._subscribers)
        logger.info("Event subscriber connected", extra={"subscribers": count})
        try:
            yield queue
        finally:
            with self._lock:
                self._subscribers.discard(queue)
                count = len(self._subscribers)
            logger.info("Event subscriber disconnected", extra={"subscribers": count})

    def publish(self, event: dict[str, Any]) -> int:
        """Queue ``event`` for every listener; returns how many received it."""
        with self._lock:
            targets = list(self._subscribers)
        delivered = 0
        for queue in targets:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._drop(queue)
                continue
            delivered += 1
        return delivered

    def _drop(self, queue: asyncio.Queue[dict[str, Any] | None]) -> None:
        with self._lock:
            self._subscribers.discard(queue)
            count = len(self._subscribers)
        # Make room for the end-of-stream marker.
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(None)
        logger.warning(
            "Dropping slow event subscriber",
            extra={"max_queue_size": self._max_queue_size, "subscribers": count},
        )

    async def stream(self) -> AsyncIterator[str]:
        """SSE frames for one listener: a connected event, then every broadcast."""
        async with self.subscribe() as queue:
            yield format_sse(connected_event())
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield format_sse(event)
