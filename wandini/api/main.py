"""
Wandini Orchestrator - Main FastAPI Application.

Receives paid-order webhooks, runs the crop pipeline on a background
worker and serves the resulting bundles.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from wandini import __version__, config
from wandini.models.webhook import HealthResponse
from wandini.utils.logging import setup_logging
from wandini.worker.pipeline import OrderPipeline

# Configure logging early
setup_logging(config.SERVICE_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the order pipeline on startup and stop it on shutdown."""
    pipeline = OrderPipeline(config.ARTIFACT_DIR)
    pipeline.start()
    app.state.pipeline = pipeline
    print("🚀 Starting Wandini Orchestrator...")
    print(f"   Artifacts: {config.ARTIFACT_DIR}")
    print(
        "   Webhook HMAC: "
        + ("enabled" if config.SHOPIFY_WEBHOOK_SECRET else "disabled")
    )

    yield

    pipeline.stop()
    app.state.pipeline = None
    print("👋 Shutting down Wandini Orchestrator...")


OPENAPI_TAGS = [
    {
        "name": "webhooks",
        "description": "Shopify webhook receivers",
    },
    {
        "name": "download",
        "description": "Packaged order artifacts",
    },
    {
        "name": "system",
        "description": "System health and information endpoints",
    },
]

app = FastAPI(
    title="Wandini Orchestrator",
    description=(
        "Turns paid orders into downloadable artifact bundles.\n\n"
        "Each order's master image is fetched, cropped to the customer's "
        "configuration and packaged with an XML order document."
    ),
    version=__version__,
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)


@app.get("/", tags=["system"], operation_id="getServiceInfo")
async def root():
    """Liveness check."""
    return {
        "service": "Wandini Orchestrator",
        "version": __version__,
        "status": "wandini orchestrator alive",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    operation_id="healthCheck",
)
async def health_check() -> HealthResponse:
    """Report service health and job queue state."""
    pipeline = getattr(app.state, "pipeline", None)
    return HealthResponse(
        status="healthy",
        service=config.SERVICE_NAME,
        queue=pipeline.queue.snapshot() if pipeline is not None else None,
    )


# Import and include routers
from wandini.api.routes import download, webhooks

app.include_router(webhooks.router, tags=["webhooks"])
app.include_router(download.router, tags=["download"])


def run():
    """Run the API with uvicorn on the configured port."""
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
