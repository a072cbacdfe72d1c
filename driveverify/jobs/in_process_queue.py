"""In-process job queue using asyncio.

Runs verification jobs one at a time in a background task. Each job is a
blocking callable (subprocess downloads, file comparison), so it is handed
to a thread executor to keep the event loop free.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

from driveverify.jobs.dispatcher import JobDispatcher

logger = logging.getLogger(__name__)


class InProcessQueue(JobDispatcher):
    """Local async job queue. Processes jobs one at a time, never retrying."""

    def __init__(self):
        self._queue: asyncio.Queue[Tuple[str, Callable[..., Any], tuple]] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def submit(self, job_id: str, fn: Callable[..., Any], *args: Any) -> str:
        await self._queue.put((job_id, fn, args))
        return job_id

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._worker_loop())

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        await self._queue.join()

    async def _worker_loop(self) -> None:
        """Process jobs one at a time from the queue."""
        while self._running:
            try:
                job_id, fn, args = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, fn, *args)
            except Exception:
                logger.exception(f"Job {job_id} raised outside its failure handler")
            finally:
                self._queue.task_done()
