"""Exception hierarchy and the shared, lossy error channel.

Every pipeline stage reports failures through one :class:`ErrorSink`.
Reporting never blocks: when the buffer is full the event is dropped and
counted in :attr:`ErrorSink.dropped`.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class AggregatorError(Exception):
    """Base error for the about aggregator."""


class ConfigError(AggregatorError):
    """Raised when required configuration is missing or invalid."""


class ErrorSink:
    """Fixed-capacity error buffer drained by a background logger."""

    def __init__(self, capacity: int = 10) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=capacity)
        self._task: asyncio.Task | None = None
        self.dropped = 0

    def report(self, message: str) -> bool:
        """Enqueue *message* without waiting. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    def pending(self) -> list[str]:
        """Remove and return every buffered event (used when no consumer runs)."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return events

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._consume())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self.dropped:
            logger.warning("%d error event(s) dropped while the buffer was full", self.dropped)

    async def _consume(self) -> None:
        while True:
            message = await self._queue.get()
            logger.error("ERROR: %s", message)
            self._queue.task_done()
