"""Keyed batch queue: coalesce work per key and run it one key at a time."""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class KeyedBatchQueue(Generic[K]):
    """Run an async job per key, merging repeated requests for the same key.

    Keys enqueued while nothing is pending start a drain on the next turn of
    the event loop. A drain takes every pending key as one batch, runs the job
    for each key sequentially, then takes the next batch if more keys arrived
    meanwhile. A key enqueued several times before its batch starts runs once.
    A failing job is logged and the remaining keys still run.
    """

    def __init__(self, runner: Callable[[K], Awaitable[None]], name: str = "queue"):
        """Initialize the queue.

        Args:
            runner: Coroutine function called once per key
            name: Label used in log messages
        """
        self._runner = runner
        self._name = name
        self._pending: dict[K, None] = {}
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def pending(self) -> tuple[K, ...]:
        """Keys waiting for the next batch, in arrival order."""
        return tuple(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, key: K) -> bool:
        """Request a run for ``key``. Must be called from the event loop thread.

        Returns:
            False if the queue is closed and the key was dropped
        """
        if self._closed:
            logger.debug("%s closed, dropping %r", self._name, key)
            return False
        self._pending[key] = None
        self._idle.clear()
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._drain())
        return True

    async def _drain(self) -> None:
        try:
            while self._pending and not self._closed:
                batch = list(self._pending)
                self._pending.clear()
                logger.debug("%s processing %d key(s)", self._name, len(batch))
                for key in batch:
                    if self._closed:
                        break
                    try:
                        await self._runner(key)
                    except Exception:
                        logger.exception("%s failed to process %r", self._name, key)
        finally:
            self._task = None
            self._idle.set()

    async def join(self) -> None:
        """Wait until every pending key has been processed."""
        await self._idle.wait()

    async def close(self) -> None:
        """Stop accepting keys, drop pending ones and cancel the running batch."""
        self._closed = True
        self._pending.clear()
        task = self._task
        if task is asyncio.current_task():
            # Closed from inside a job: the drain loop stops after it returns
            return
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._idle.set()
