"""
HTTP response models for the webhook and system endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field

from wandini.models.job import QueueSnapshot, SubmitStatus


class OrderWebhookResponse(BaseModel):
    """Response for POST /webhooks/orders-paid."""

    ok: bool = Field(default=True, description="Whether the order was accepted")
    status: SubmitStatus = Field(description="accepted, queued or duplicate")
    order_id: str = Field(description="Order identifier")
    download: str = Field(description="Path where the bundle can be fetched")


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = Field(description="Overall service status")
    service: str = Field(description="Service name")
    queue: Optional[QueueSnapshot] = Field(
        default=None, description="Job queue state, if the pipeline is running"
    )
