"""
Error types raised by the order pipeline.

The API layer maps these onto HTTP status codes; the worker logs
`ProcessingError` and moves on to the next job.
"""


class OrderValidationError(ValueError):
    """Raised when an inbound order payload cannot be turned into a job."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ProcessingError(RuntimeError):
    """Raised when a step of a job's execution fails."""

    def __init__(self, order_id: str, step: str, message: str):
        super().__init__(f"[{order_id}] {step}: {message}")
        self.order_id = order_id
        self.step = step
        self.message = message


class ArtifactNotFoundError(LookupError):
    """Raised when no packageable artifact set exists for an order."""

    def __init__(self, order_id: str):
        super().__init__(f"No artifacts for order {order_id}")
        self.order_id = order_id
