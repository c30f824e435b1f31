"""
Valkey-backed job queue with at-least-once delivery.

Layout for a queue named N:

    queue:N             pending jobs (LPUSH in, taken from the right)
    queue:N:processing  jobs a worker has reserved but not acknowledged
    queue:N:dead        jobs that failed max_attempts times or could not be parsed

A worker atomically moves a job from pending to processing, runs the
handler, then removes it from processing. If the worker dies mid-job the
job stays in processing until recover_stalled() puts it back, so a job can
be delivered more than once but is never silently lost.
"""

import logging
import threading
from typing import Callable

import redis
from pydantic import ValidationError

from clients.valkey_client import ValkeyClient
from core.models import ConfirmationJob

logger = logging.getLogger(__name__)


class JobQueue:
    """Confirmation job queue."""

    KEY_PREFIX = "queue:"

    def __init__(self, valkey: ValkeyClient, name: str = "confirmations", max_attempts: int = 5):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._valkey = valkey
        self.name = name
        self.max_attempts = max_attempts
        self.pending_key = f"{self.KEY_PREFIX}{name}"
        self.processing_key = f"{self.pending_key}:processing"
        self.dead_key = f"{self.pending_key}:dead"

    def enqueue(self, job: ConfirmationJob) -> None:
        self._valkey.lpush(self.pending_key, job.model_dump_json())
        logger.info(f"Enqueued job {job.job_id} for order {job.order_id} on {self.name}")

    def reserve(self, timeout_seconds: int = 0) -> tuple[str, ConfirmationJob] | None:
        """
        Move the oldest pending job to processing.

        Returns:
            (raw payload, parsed job), or None if nothing arrived within the timeout.
            Unparseable payloads go straight to the dead-letter list.
        """
        raw = self._valkey.move_tail_to_head(
            self.pending_key, self.processing_key, timeout_seconds
        )
        if raw is None:
            return None

        try:
            job = ConfirmationJob.model_validate_json(raw)
        except ValidationError:
            logger.error(f"Unparseable job on {self.name}, dead-lettering: {raw[:200]}")
            self._valkey.lpush(self.dead_key, raw)
            self._valkey.lrem(self.processing_key, raw)
            return None

        return raw, job

    def ack(self, raw: str) -> None:
        """Remove a finished job from processing."""
        self._valkey.lrem(self.processing_key, raw)

    def fail(self, raw: str, job: ConfirmationJob) -> bool:
        """
        Record a failed attempt.

        The new copy is pushed before the reserved one leaves processing, so
        a crash in between yields a duplicate rather than a lost job.

        Returns:
            True if the job was re-queued, False if it was dead-lettered
        """
        retried = job.model_copy(update={"attempts": job.attempts + 1})
        requeue = retried.attempts < self.max_attempts

        self._valkey.lpush(self.pending_key if requeue else self.dead_key, retried.model_dump_json())
        self._valkey.lrem(self.processing_key, raw)

        if requeue:
            logger.warning(
                f"Job {job.job_id} (order {job.order_id}) failed, "
                f"attempt {retried.attempts}/{self.max_attempts}, re-queued"
            )
        else:
            logger.error(
                f"Job {job.job_id} (order {job.order_id}) failed {retried.attempts} times, dead-lettered"
            )
        return requeue

    def recover_stalled(self) -> int:
        """Return jobs left in processing by a crashed worker to pending."""
        recovered = 0
        while self._valkey.move_tail_to_head(self.processing_key, self.pending_key) is not None:
            recovered += 1

        if recovered:
            logger.warning(f"Recovered {recovered} stalled jobs on {self.name}")
        return recovered

    def pending_count(self) -> int:
        return self._valkey.llen(self.pending_key)

    def dead_count(self) -> int:
        return self._valkey.llen(self.dead_key)


class Worker:
    """Consume a JobQueue with a handler. The handler signals failure by raising."""

    def __init__(
        self,
        queue: JobQueue,
        handler: Callable[[ConfirmationJob], None],
        poll_timeout_seconds: int = 5,
    ):
        self.queue = queue
        self.handler = handler
        self.poll_timeout_seconds = poll_timeout_seconds

    def run_once(self, timeout_seconds: int | None = None) -> bool:
        """
        Process at most one job.

        Returns:
            True if a job was taken (whether or not it succeeded)
        """
        timeout = self.poll_timeout_seconds if timeout_seconds is None else timeout_seconds
        reserved = self.queue.reserve(timeout)
        if reserved is None:
            return False

        raw, job = reserved
        try:
            self.handler(job)
        except Exception:
            logger.exception(f"Handler failed for job {job.job_id} (order {job.order_id})")
            self.queue.fail(raw, job)
        else:
            self.queue.ack(raw)
        return True

    def run(self, stop: threading.Event | None = None) -> None:
        """
        Loop until stop is set.

        Valkey errors do not end the loop. The worker backs off for one poll
        interval and tries again; a job caught mid-ack stays in processing
        and is recovered on the next start.
        """
        stop = stop or threading.Event()
        self._recover(stop)
        logger.info(f"Worker started on queue {self.queue.name}")

        while not stop.is_set():
            try:
                self.run_once()
            except redis.RedisError:
                logger.exception(f"Valkey error on queue {self.queue.name}, retrying")
                stop.wait(self.poll_timeout_seconds)

        logger.info(f"Worker stopped on queue {self.queue.name}")

    def _recover(self, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                self.queue.recover_stalled()
                return
            except redis.RedisError:
                logger.exception(f"Valkey unavailable while recovering {self.queue.name}, retrying")
                stop.wait(self.poll_timeout_seconds)
