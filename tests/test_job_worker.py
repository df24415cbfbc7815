"""
Tests for the asyncio worker pool. Plain asyncio.run(), no plugin needed.
"""

import asyncio
import threading
import time

import pytest

from modeforge.entities import JobMessage
from modeforge.job_worker import JobWorker


def _message(i):
    return JobMessage(job_id=str(i), kind="generate", payload={})


class TestJobWorker:
    def test_runs_every_message(self):
        seen = []

        async def scenario():
            worker = JobWorker(lambda m: seen.append(m.job_id), max_concurrent=2)
            await worker.start()
            for i in range(5):
                await worker.submit(_message(i))
            await worker.join()
            await worker.stop()

        asyncio.run(scenario())
        assert sorted(seen) == ["0", "1", "2", "3", "4"]

    def test_slow_job_does_not_block_others(self):
        release = threading.Event()
        finished = []

        def execute(message):
            if message.job_id == "slow":
                release.wait(timeout=5)
            finished.append(message.job_id)

        async def scenario():
            worker = JobWorker(execute, max_concurrent=2)
            await worker.start()
            await worker.submit(JobMessage(job_id="slow", kind="generate"))
            await worker.submit(JobMessage(job_id="fast", kind="generate"))
            deadline = time.time() + 5
            while "fast" not in finished and time.time() < deadline:
                await asyncio.sleep(0.01)
            fast_first = finished == ["fast"]
            release.set()
            await worker.join()
            await worker.stop()
            return fast_first

        assert asyncio.run(scenario()) is True

    def test_crash_does_not_kill_pool(self):
        seen = []

        def execute(message):
            if message.job_id == "bad":
                raise RuntimeError("boom")
            seen.append(message.job_id)

        async def scenario():
            worker = JobWorker(execute, max_concurrent=1)
            await worker.start()
            await worker.submit(JobMessage(job_id="bad", kind="generate"))
            await worker.submit(JobMessage(job_id="good", kind="generate"))
            await worker.join()
            await worker.stop()

        asyncio.run(scenario())
        assert seen == ["good"]

    def test_submit_before_start(self):
        worker = JobWorker(lambda m: None)
        with pytest.raises(RuntimeError):
            asyncio.run(worker.submit(_message(1)))
