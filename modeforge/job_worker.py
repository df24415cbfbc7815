# modeforge/job_worker.py
"""
In-process job queue + worker pool.

The HTTP handlers only create a job (JobStore) and put a JobMessage on the queue;
they return the job id immediately. A fixed pool of worker coroutines takes messages
off the queue and runs each one in a thread (asyncio.to_thread), so a slow model call
or a long compile never blocks the event loop or the other jobs.

- max_concurrent is a GLOBAL cap across all job kinds.
- No cancellation: an accepted job runs until it completes or fails.
- Observation is by polling the JobStore; the worker pushes nothing.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from modeforge.entities import JobMessage

logger = logging.getLogger("modeforge")


class JobWorker:
    def __init__(self, execute: Callable[[JobMessage], None], max_concurrent: int = 4):
        self.execute = execute
        self.max_concurrent = max(1, int(max_concurrent))
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self._in_flight: set = set()

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        if self._tasks:
            return
        self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._run(i), name=f"job-worker-{i}")
            for i in range(self.max_concurrent)
        ]
        logger.info("JobWorker running (max_concurrent=%d)", self.max_concurrent)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None

    async def submit(self, message: JobMessage) -> None:
        if self._queue is None:
            raise RuntimeError("JobWorker.submit() called before start()")
        await self._queue.put(message)

    async def join(self) -> None:
        """
        Wait until every submitted message has been processed.
        """
        if self._queue is not None:
            await self._queue.join()

    async def _run(self, worker_index: int) -> None:
        while True:
            message = await self._queue.get()
            self._in_flight.add(message.job_id)
            try:
                await asyncio.to_thread(self.execute, message)
            except Exception as e:
                # execute() records failures on the job itself; this only guards the pool
                logger.exception("[JOB %s] worker %d crashed: %s", message.job_id, worker_index, e)
            finally:
                self._in_flight.discard(message.job_id)
                self._queue.task_done()
