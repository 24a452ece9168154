"""Bounded FIFO of execution requests between dispatch and the worker."""

from __future__ import annotations

import asyncio
import logging

from camerabot.domain.models import ExecuteRequest

logger = logging.getLogger(__name__)

# Size of the execution queue
DEFAULT_QUEUE_SIZE = 4


class ExecutionQueue:
    """Fixed-capacity queue; the bridge's only backpressure mechanism.

    ``push`` waits while the queue is full, which stalls update
    processing until the worker catches up. No priority, no
    deduplication.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        if maxsize <= 0:
            raise ValueError("Execution queue needs a positive capacity")
        self._queue: asyncio.Queue[ExecuteRequest] = asyncio.Queue(maxsize=maxsize)

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    def empty(self) -> bool:
        return self._queue.empty()

    async def push(self, request: ExecuteRequest) -> None:
        if self._queue.full():
            logger.warning("Execution queue full (%d), waiting for a free slot", self.maxsize)
        await self._queue.put(request)
        logger.debug("Queued execute request for chat %s (%d pending)", request.chat_id, self.qsize())

    async def pop(self) -> ExecuteRequest:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every pushed request has been processed."""
        await self._queue.join()
