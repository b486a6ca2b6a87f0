"""
Shopify webhook receiver.

Paid orders are normalized into jobs and handed to the order pipeline.
The response is returned as soon as the job is queued; processing
happens on the worker thread.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from wandini.api.auth import verify_shopify_hmac
from wandini.api.dependencies import get_pipeline
from wandini.errors import OrderValidationError
from wandini.models.webhook import OrderWebhookResponse
from wandini.utils.normalize import normalize_order_payload
from wandini.worker.pipeline import OrderPipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/webhooks/orders-paid",
    response_model=OrderWebhookResponse,
    dependencies=[Depends(verify_shopify_hmac)],
    operation_id="handleOrdersPaid",
)
async def orders_paid(
    request: Request,
    pipeline: OrderPipeline = Depends(get_pipeline),
) -> OrderWebhookResponse:
    """
    Handle the orders/paid webhook.

    Flow:
        1. Decode the JSON body
        2. Normalize it into an OrderJob (400 on missing fields)
        3. Submit the job to the queue
        4. Return the submission status and the download path
    """
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}")

    try:
        job = normalize_order_payload(payload)
    except OrderValidationError as e:
        logger.info("Rejected order webhook: %s", e.message)
        raise HTTPException(status_code=400, detail=e.message)

    try:
        result = pipeline.submit(job)
    except Exception as e:
        logger.exception("Failed to submit order %s", job.order_id)
        raise HTTPException(status_code=500, detail=f"Failed to submit order: {e}")

    return OrderWebhookResponse(
        ok=True,
        status=result.status,
        order_id=job.order_id,
        download=f"/download/{job.order_id}",
    )
