"""
Normalization of paid-order payloads into `OrderJob`s.

The storefront's product configurator attaches its state to a line item
as a property named `configurator_payload`, holding a JSON document with
the master asset reference and the crop box chosen by the customer.
"""

import json
from typing import Any

from pydantic import ValidationError

from wandini.errors import OrderValidationError
from wandini.models.order import CropRatio, OrderJob, OutputSize
from wandini.storage.artifacts import is_safe_order_id

CONFIGURATOR_PROPERTY = "configurator_payload"

# OrderJob fields whose payload key differs
_JOB_FIELD_TO_PAYLOAD = {"order_id": "id"}


def _find_configurator(payload: dict[str, Any]) -> dict[str, Any] | None:
    """
    Return the parsed configurator document from the order's line items.

    When several line items carry the property, the last one wins.

    Raises:
        OrderValidationError: If a configurator value is not a JSON object
    """
    config = None
    line_items = payload.get("line_items")
    if not isinstance(line_items, list):
        return None
    for item in line_items:
        if not isinstance(item, dict):
            continue
        properties = item.get("properties")
        if not isinstance(properties, list):
            continue
        for prop in properties:
            if not isinstance(prop, dict) or prop.get("name") != CONFIGURATOR_PROPERTY:
                continue

            value = prop.get("value")
            if isinstance(value, str):
                try:
                    value = json.loads(value)
                except json.JSONDecodeError as e:
                    raise OrderValidationError(
                        CONFIGURATOR_PROPERTY,
                        f"{CONFIGURATOR_PROPERTY} is not valid JSON: {e}",
                    )
            if not isinstance(value, dict):
                raise OrderValidationError(
                    CONFIGURATOR_PROPERTY,
                    f"{CONFIGURATOR_PROPERTY} must be a JSON object",
                )
            config = value
    return config


def _parse_crop_ratio(value: Any) -> CropRatio:
    if isinstance(value, (list, tuple)):
        if len(value) != 4:
            raise OrderValidationError(
                "crop_ratio", "crop_ratio list must have exactly 4 values [x, y, w, h]"
            )
        value = dict(zip(("x", "y", "w", "h"), value))
    if not isinstance(value, dict):
        raise OrderValidationError("crop_ratio", "crop_ratio must be an object")
    try:
        return CropRatio.model_validate(value)
    except ValidationError as e:
        raise OrderValidationError("crop_ratio", f"crop_ratio is invalid: {e}")


def _parse_output_size(value: Any) -> OutputSize | None:
    if value is None:
        return None
    try:
        return OutputSize.model_validate(value)
    except ValidationError as e:
        raise OrderValidationError("output_size", f"output_size is invalid: {e}")


def normalize_order_payload(payload: Any) -> OrderJob:
    """
    Build an `OrderJob` from a raw order document.

    Args:
        payload: Decoded webhook body

    Returns:
        OrderJob ready for submission to the queue

    Raises:
        OrderValidationError: If the order id, the configurator payload or
            one of its required fields is missing or malformed
    """
    if not isinstance(payload, dict):
        raise OrderValidationError("body", "Order payload must be a JSON object")

    order_id = payload.get("id")
    if order_id is None or str(order_id).strip() == "":
        raise OrderValidationError("id", "order id missing")
    if not is_safe_order_id(str(order_id)):
        raise OrderValidationError("id", "order id is not a valid path segment")

    config = _find_configurator(payload) or {}

    master_asset_id = config.get("master_asset_id")
    if master_asset_id is None or str(master_asset_id).strip() == "":
        raise OrderValidationError("master_asset_id", "master_asset_id missing")

    crop_value = config.get("crop_ratio")
    if crop_value is None:
        raise OrderValidationError("crop_ratio", "crop_ratio missing")

    try:
        return OrderJob(
            order_id=str(order_id),
            master_asset_id=str(master_asset_id),
            crop_ratio=_parse_crop_ratio(crop_value),
            output_size=_parse_output_size(config.get("output_size")),
            email=payload.get("email"),
            currency=payload.get("currency"),
            total_price=payload.get("total_price"),
            raw_payload=payload,
        )
    except ValidationError as e:
        loc = e.errors()[0]["loc"]
        field = _JOB_FIELD_TO_PAYLOAD.get(loc[0], str(loc[0])) if loc else "body"
        raise OrderValidationError(field, f"{field} is invalid: {e}") from e
