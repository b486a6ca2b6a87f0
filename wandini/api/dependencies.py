"""Request-scoped dependencies shared by the API routes."""

from fastapi import HTTPException, Request

from wandini.worker.pipeline import OrderPipeline


def get_pipeline(request: Request) -> OrderPipeline:
    """Return the order pipeline started by the application lifespan."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Order pipeline not running")
    return pipeline
