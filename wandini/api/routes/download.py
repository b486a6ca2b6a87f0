"""
Artifact bundle download.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from wandini import config
from wandini.api.dependencies import get_pipeline
from wandini.errors import ArtifactNotFoundError
from wandini.worker.pipeline import OrderPipeline

router = APIRouter()
logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def _iter_file(f):
    try:
        while chunk := f.read(_CHUNK_SIZE):
            yield chunk
    finally:
        f.close()


@router.get(
    "/download/{order_id}",
    response_class=StreamingResponse,
    operation_id="downloadOrderBundle",
    responses={404: {"description": "No artifacts for this order"}},
)
def download_bundle(
    order_id: str,
    pipeline: OrderPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """
    Stream the zip bundle (metadata document + cropped image) for an order.

    Orders that are still queued or processing, and orders without a
    complete artifact directory, return 404.
    """
    if not pipeline.is_packageable(order_id):
        raise HTTPException(status_code=404, detail="Order not found")

    try:
        bundle = pipeline.package(order_id)
    except ArtifactNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")

    filename = f"{config.DOWNLOAD_PREFIX}-{order_id}.zip"
    logger.info("Serving bundle %s", filename)
    return StreamingResponse(
        _iter_file(bundle),
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
