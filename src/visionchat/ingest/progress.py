"""
Progress Channel
================

Async queue carrying ProgressEvents from an in-flight submission to a
concurrently running consumer (typically the presentation layer).

Design Rules:
    - Unbounded: a submission publishes at most max_images events
    - The pipeline publishes, it never waits on the consumer
    - close() ends iteration once queued events are drained
    - Exposes minimal metrics for observability

Example:
    channel = ProgressChannel()

    async def show():
        async for event in channel:
            print(f"{event.completed}/{event.total}")

    consumer = asyncio.create_task(show())
    result = await pipeline.submit(candidates, batch, progress=channel)
    channel.close()
    await consumer
"""

import asyncio
import logging
from typing import AsyncIterator, Optional, Union

from visionchat.models.events import ProgressEvent


logger = logging.getLogger(__name__)


class _Closed:
    """End-of-stream marker."""


_CLOSED = _Closed()


class ProgressChannel:
    """
    Async-safe queue of progress events.

    Attributes:
        total_put: Number of events ever published
        closed: Whether close() has been called
        last_event: Most recent event published, if any
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Union[ProgressEvent, _Closed]]" = asyncio.Queue()
        self._total_put: int = 0
        self._closed: bool = False
        self._last_event: Optional[ProgressEvent] = None

    @property
    def size(self) -> int:
        """Current number of queued events."""
        return self._queue.qsize()

    @property
    def total_put(self) -> int:
        return self._total_put

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_event(self) -> Optional[ProgressEvent]:
        return self._last_event

    def put(self, event: ProgressEvent) -> None:
        """
        Publish an event without waiting.

        Raises:
            RuntimeError: If the channel is closed
        """
        if self._closed:
            raise RuntimeError("Cannot publish to a closed progress channel")
        self._total_put += 1
        self._last_event = event
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Mark the end of the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """
        Get next event.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next event, or None on timeout or once the channel is closed
            and drained.
        """
        try:
            if timeout is not None:
                item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            else:
                item = await self._queue.get()
        except asyncio.TimeoutError:
            return None
        if isinstance(item, _Closed):
            # Keep the marker so later readers also see the end
            self._queue.put_nowait(item)
            return None
        return item

    def get_nowait(self) -> Optional[ProgressEvent]:
        """
        Get next event without waiting.

        Returns:
            Next event if available, None otherwise.
        """
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if isinstance(item, _Closed):
            self._queue.put_nowait(item)
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event

    def metrics(self) -> dict:
        """
        Get channel metrics for observability.

        Returns:
            Dict with size, total_put, closed, last completed/total
        """
        return {
            "size": self.size,
            "total_put": self._total_put,
            "closed": self._closed,
            "completed": self._last_event.completed if self._last_event else 0,
            "total": self._last_event.total if self._last_event else 0,
        }
