from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class OrderState(StrEnum):
    """Lifecycle of an order as seen by the job queue"""

    UNSEEN = "unseen"  # Never submitted, or last attempt failed
    QUEUED = "queued"  # Waiting behind the running job
    PROCESSING = "processing"  # Currently executing on the worker
    DONE = "done"  # Completed; resubmission is a no-op


class SubmitStatus(StrEnum):
    """Outcome of submitting a job to the queue"""

    ACCEPTED = "accepted"  # Worker was idle, job started immediately
    QUEUED = "queued"  # Appended behind the running job
    DUPLICATE = "duplicate"  # Order already completed


class SubmitResult(BaseModel):
    """Result of `JobQueue.submit`."""

    order_id: str = Field(description="Order the job belongs to")
    status: SubmitStatus = Field(description="What the queue did with the job")
    position: int = Field(
        default=0, description="Number of jobs ahead of this one when queued"
    )


class QueueSnapshot(BaseModel):
    """Point-in-time view of the queue for health reporting."""

    running: bool = Field(description="Whether the worker thread is alive")
    current: Optional[str] = Field(
        default=None, description="Order id of the executing job"
    )
    pending: list[str] = Field(
        default_factory=list, description="Order ids waiting, in FIFO order"
    )
    done_count: int = Field(default=0, description="Orders completed since start")
