from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

_CLOSE = object()


class Outbox:
    """
    Bounded FIFO of outbound frames for one connection.

    Producers call :meth:`push` and never wait; a single consumer drains the queue
    with :meth:`drain` and performs the actual socket writes. Pushes coming from a
    thread other than the owning loop are marshalled onto it.
    """

    def __init__(self, owner: str, *, queue_size: int = 256) -> None:
        self.owner = owner
        self._queue_size = max(1, int(queue_size))
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._closed = False
        self.dropped = 0
        try:
            self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, kind: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        if self._closed:
            return False
        message: Dict[str, Any] = {"type": kind}
        if payload:
            message.update(payload)
        self._enqueue(message)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._enqueue(_CLOSE)

    def _enqueue(self, item: Any) -> None:
        loop = self._loop
        if loop is not None and not loop.is_closed() and not self._on_loop(loop):
            loop.call_soon_threadsafe(self._put, item)
            return
        self._put(item)

    @staticmethod
    def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    def _put(self, item: Any) -> None:
        while self._queue.full():
            try:
                evicted = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.dropped += 1
            LOGGER.warning(
                "Outbox full for %s; dropped %s frame",
                self.owner,
                evicted.get("type") if isinstance(evicted, dict) else "control",
            )
        self._queue.put_nowait(item)

    async def drain(self, send: Callable[[Dict[str, Any]], Awaitable[None]]) -> None:
        """Deliver queued frames in order until the outbox is closed."""
        self._loop = asyncio.get_running_loop()
        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                return
            await send(item)

    def drain_nowait(self) -> List[Dict[str, Any]]:
        """Pop every pending frame without awaiting."""
        items: List[Dict[str, Any]] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return items
            if item is not _CLOSE:
                items.append(item)


__all__ = ["Outbox"]
