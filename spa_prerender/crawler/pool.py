"""
Bounded worker pool.

A job channel drained by a fixed number of consumer tasks; outcomes are
handed back on a result channel in completion order.
"""

import asyncio
from typing import Awaitable, Callable, Generic, List, Tuple, TypeVar, Union

from ..utils.log import get_logger


T = TypeVar("T")
R = TypeVar("R")


class WorkerPool(Generic[T, R]):
    """
    Runs ``handler`` over submitted items with at most ``concurrency``
    calls in flight.

    Exceptions raised by the handler are returned as the item's outcome
    instead of propagating, so one failing item never stops the pool.
    A handler cancelled outside ``close()`` is reported the same way,
    with the ``CancelledError`` as its outcome.
    """

    def __init__(self, handler: Callable[[T], Awaitable[R]], concurrency: int):
        """
        Initialize the worker pool.

        Args:
            handler: Coroutine function processing one item
            concurrency: Number of consumer tasks
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.handler = handler
        self.concurrency = concurrency
        self.logger = get_logger("pool")

        self._jobs: "asyncio.Queue[T]" = asyncio.Queue()
        self._results: "asyncio.Queue[Tuple[T, Union[R, BaseException]]]" = asyncio.Queue()
        self._workers: List[asyncio.Task] = []
        self._closing = False

    def start(self) -> None:
        if self._workers:
            return
        self._closing = False
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"prerender-worker-{i}")
            for i in range(self.concurrency)
        ]

    def submit(self, item: T) -> None:
        self._jobs.put_nowait(item)

    async def next_result(self) -> Tuple[T, Union[R, BaseException]]:
        """Wait for the next finished item and its outcome."""
        return await self._results.get()

    async def close(self) -> None:
        """Cancel the consumer tasks and wait for them to exit."""
        self._closing = True
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def _worker(self, worker_id: int) -> None:
        while True:
            item = await self._jobs.get()
            self.logger.debug(f"worker={worker_id} accepted {item}")
            try:
                outcome = await self.handler(item)
            except asyncio.CancelledError as e:
                if self._closing:
                    raise
                self.logger.warning(f"worker={worker_id} cancelled while handling {item}")
                outcome = e
            except Exception as e:
                outcome = e
            finally:
                self._jobs.task_done()
            self._results.put_nowait((item, outcome))

    async def __aenter__(self) -> "WorkerPool[T, R]":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
