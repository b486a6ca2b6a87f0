"""
Wandini data models.

Pydantic models for order jobs, queue state and HTTP responses.
"""

# Job models
from wandini.models.job import OrderState, QueueSnapshot, SubmitResult, SubmitStatus

# Order models
from wandini.models.order import CropRatio, OrderJob, OutputSize

# Webhook models
from wandini.models.webhook import HealthResponse, OrderWebhookResponse

__all__ = [
    # Order models
    "CropRatio",
    "OrderJob",
    "OutputSize",
    # Job models
    "OrderState",
    "QueueSnapshot",
    "SubmitResult",
    "SubmitStatus",
    # Webhook models
    "HealthResponse",
    "OrderWebhookResponse",
]
