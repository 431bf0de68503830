"""
Outbound Dispatcher
===================

In-process queue for side effects that must not hold up a request:
- Emails (registration, approval, receipts, results, password reset)
- Real-time announcement fan-out

Handlers enqueue jobs only after their database commit. One consumer
task, started and stopped by the application lifespan, runs the jobs.
A job that raises or returns False goes back on the queue after an
exponential backoff delay, while the consumer moves on to the jobs behind
it. It is dropped after OUTBOX_MAX_ATTEMPTS.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple

from app.core.config import settings
from app.core.logging_config import logger


JobHandler = Callable[..., Awaitable[Any]]


@dataclass
class OutboundJob:
    """A queued side effect"""
    name: str
    handler: JobHandler
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    enqueued_at: datetime = field(default_factory=datetime.utcnow)


class OutboundDispatcher:
    """
    Runs queued side effects outside the request that produced them.

    Usage:
        dispatcher.enqueue("email:approval", email_service.send_approval, email, name)
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max_attempts or settings.OUTBOX_MAX_ATTEMPTS
        self.base_delay = settings.OUTBOX_RETRY_BASE_DELAY if base_delay is None else base_delay
        self.max_delay = settings.OUTBOX_RETRY_MAX_DELAY if max_delay is None else max_delay
        self._sleep = sleep
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._retries: Set[asyncio.Task] = set()
        self.delivered = 0
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        """Queued jobs plus jobs waiting out a retry delay"""
        return self._queue.qsize() + len(self._retries)

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based), capped at max_delay"""
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def enqueue(self, name: str, handler: JobHandler, *args, **kwargs) -> OutboundJob:
        job = OutboundJob(name=name, handler=handler, args=args, kwargs=kwargs)
        self._queue.put_nowait(job)
        logger.debug(f"[Outbox] Queued {name} ({self.pending} pending)")
        return job

    async def start(self) -> None:
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._consume(), name="outbound-dispatcher")
        logger.info("[Outbox] Dispatcher started")

    async def stop(self) -> None:
        """Stop the consumer, then run whatever is still queued or waiting to retry"""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        await self.drain()
        logger.info(f"[Outbox] Dispatcher stopped (delivered={self.delivered}, dropped={self.dropped})")

    async def drain(self) -> int:
        """
        Run every queued job inline, waiting for scheduled retries to come
        back round; returns how many attempts were made.
        """
        processed = 0
        while True:
            while not self._queue.empty():
                job = self._queue.get_nowait()
                try:
                    await self._attempt(job)
                finally:
                    self._queue.task_done()
                processed += 1
            if not self._retries:
                return processed
            await asyncio.gather(*self._retries)

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._attempt(job)
            finally:
                self._queue.task_done()

    async def _attempt(self, job: OutboundJob) -> None:
        """Run one attempt; a failure is rescheduled without holding the queue"""
        attempt = job.attempts
        job.attempts += 1
        try:
            result = await job.handler(*job.args, **job.kwargs)
            succeeded = result is not False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[Outbox] {job.name} attempt {job.attempts} raised: {e}")
            succeeded = False

        if succeeded:
            self.delivered += 1
            return

        if job.attempts < self.max_attempts:
            delay = self.retry_delay(attempt)
            logger.info(f"[Outbox] Retrying {job.name} in {delay:.1f}s")
            task = asyncio.create_task(self._requeue_after(job, delay), name=f"outbox-retry:{job.name}")
            self._retries.add(task)
            task.add_done_callback(self._retries.discard)
            return

        self.dropped += 1
        logger.error(f"[Outbox] Dropped {job.name} after {job.attempts} attempts")

    async def _requeue_after(self, job: OutboundJob, delay: float) -> None:
        await self._sleep(delay)
        self._queue.put_nowait(job)
