"""
In-memory job queue with a single worker thread.

Exactly one job executes at a time. Jobs submitted while the worker is busy
wait in FIFO order. Completed order ids are remembered so a resubmitted
order is acknowledged without running again; failed orders are forgotten
and may be resubmitted.

State lives only in process memory and is lost on restart.
"""

import logging
import threading
from collections import deque
from typing import Callable

from wandini.models.job import OrderState, QueueSnapshot, SubmitResult, SubmitStatus
from wandini.models.order import OrderJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[OrderJob], None]


class JobQueue:
    """
    FIFO job queue drained by one dedicated worker thread.

    All mutable state (`_pending`, `_current`, `_done`) is guarded by
    `_cond`. The handler itself runs outside the lock, so `submit` never
    waits on job execution.
    """

    def __init__(self, handler: JobHandler, name: str = "order-worker"):
        self._handler = handler
        self._name = name
        self._cond = threading.Condition()
        self._pending: deque[OrderJob] = deque()
        self._current: OrderJob | None = None
        self._done: set[str] = set()
        self._executing = False
        self._stopping = False
        self._thread: threading.Thread | None = None

    # Lifecycle

    def start(self) -> None:
        """Start the worker thread. No-op if already running."""
        with self._cond:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stopping = False
            self._thread = threading.Thread(
                target=self._run, name=self._name, daemon=True
            )
            self._thread.start()
        logger.info("Job queue worker started")

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the worker after the executing job finishes.

        Jobs still pending are dropped.
        """
        with self._cond:
            self._stopping = True
            dropped = len(self._pending) + (
                1 if self._current is not None and not self._executing else 0
            )
            self._cond.notify_all()
            thread = self._thread

        if thread is not None:
            thread.join(timeout)
        if dropped:
            logger.warning("Job queue stopped with %d unprocessed job(s)", dropped)
        logger.info("Job queue worker stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # Submission

    def submit(self, job: OrderJob) -> SubmitResult:
        """
        Submit a job for execution.

        Returns:
            SubmitResult with DUPLICATE if the order already completed,
            ACCEPTED if the idle worker takes it immediately, or QUEUED
            with the number of jobs ahead of it
        """
        with self._cond:
            if job.order_id in self._done:
                logger.info("Order %s already completed, skipping", job.order_id)
                return SubmitResult(order_id=job.order_id, status=SubmitStatus.DUPLICATE)

            if self._current is None and not self._pending:
                self._current = job
                self._cond.notify_all()
                logger.info("Order %s accepted", job.order_id)
                return SubmitResult(order_id=job.order_id, status=SubmitStatus.ACCEPTED)

            position = len(self._pending) + (1 if self._current is not None else 0)
            self._pending.append(job)
            self._cond.notify_all()

        logger.info("Order %s queued behind %d job(s)", job.order_id, position)
        return SubmitResult(
            order_id=job.order_id, status=SubmitStatus.QUEUED, position=position
        )

    # Inspection

    def state(self, order_id: str) -> OrderState:
        """Return the lifecycle state of an order."""
        with self._cond:
            if order_id in self._done:
                return OrderState.DONE
            if self._current is not None and self._current.order_id == order_id:
                return OrderState.PROCESSING
            if any(job.order_id == order_id for job in self._pending):
                return OrderState.QUEUED
            return OrderState.UNSEEN

    def is_done(self, order_id: str) -> bool:
        with self._cond:
            return order_id in self._done

    def is_active(self, order_id: str) -> bool:
        """Return True if the order is queued or executing."""
        return self.state(order_id) in (OrderState.QUEUED, OrderState.PROCESSING)

    def snapshot(self) -> QueueSnapshot:
        with self._cond:
            return QueueSnapshot(
                running=self.running,
                current=self._current.order_id if self._current else None,
                pending=[job.order_id for job in self._pending],
                done_count=len(self._done),
            )

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """
        Block until no job is executing or pending.

        Returns:
            True if the queue drained, False on timeout
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: self._current is None and not self._pending, timeout
            )

    # Worker loop

    def _next_job(self) -> OrderJob | None:
        """Wait for the next job; None means the worker should exit."""
        with self._cond:
            while self._current is None and not self._pending and not self._stopping:
                self._cond.wait()
            if self._stopping:
                return None
            if self._current is None:
                self._current = self._pending.popleft()
            self._executing = True
            return self._current

    def _run(self) -> None:
        while True:
            job = self._next_job()
            if job is None:
                return
            self._execute(job)

    def _execute(self, job: OrderJob) -> None:
        succeeded = False
        try:
            if self.is_done(job.order_id):
                # An earlier attempt for the same order completed while this one waited
                logger.info("Order %s completed meanwhile, skipping", job.order_id)
            else:
                self._handler(job)
                succeeded = True
        except Exception:
            logger.exception(
                "Order %s failed",
                job.order_id,
                extra={"json_fields": {"order_id": job.order_id}},
            )
        finally:
            with self._cond:
                if succeeded:
                    self._done.add(job.order_id)
                self._current = None
                self._executing = False
                self._cond.notify_all()
