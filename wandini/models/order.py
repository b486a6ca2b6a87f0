"""
Order job models.

An `OrderJob` is the validated unit of work derived from a paid-order
webhook. It carries everything the worker needs to fetch the master
asset, crop it and write the metadata document.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wandini.config import MASTER_URL_TEMPLATE


class CropRatio(BaseModel):
    """
    Fractional crop box, independent of the master's pixel resolution.

    `x`/`y` locate the top-left corner and `w`/`h` the size, all as
    fractions of the master's width and height.
    """

    x: float = Field(ge=0.0, le=1.0, description="Left edge as a fraction of width")
    y: float = Field(ge=0.0, le=1.0, description="Top edge as a fraction of height")
    w: float = Field(gt=0.0, le=1.0, description="Width as a fraction of width")
    h: float = Field(gt=0.0, le=1.0, description="Height as a fraction of height")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_inside_unit_square(self) -> "CropRatio":
        # Small tolerance for values like 0.1 + 0.9 that are not exact in binary
        if self.x + self.w > 1.0 + 1e-9:
            raise ValueError("x + w must not exceed 1")
        if self.y + self.h > 1.0 + 1e-9:
            raise ValueError("y + h must not exceed 1")
        return self


class OutputSize(BaseModel):
    """Requested pixel dimensions of the cropped image."""

    width: int = Field(gt=0, description="Output width in pixels")
    height: int = Field(gt=0, description="Output height in pixels")

    model_config = ConfigDict(frozen=True)


class OrderJob(BaseModel):
    """Normalized unit of work for one paid order."""

    order_id: str = Field(min_length=1, description="Source order identifier")
    master_asset_id: str = Field(
        min_length=1, description="Identifier of the remote master image"
    )
    crop_ratio: CropRatio = Field(description="Fractional crop box")
    output_size: Optional[OutputSize] = Field(
        default=None, description="Resample the crop to these dimensions if set"
    )

    # Order context written to the metadata document
    email: Optional[str] = Field(default=None, description="Customer email")
    currency: Optional[str] = Field(default=None, description="Order currency")
    total_price: Optional[str] = Field(default=None, description="Order total")

    raw_payload: dict[str, Any] = Field(
        default_factory=dict, description="Original order document, verbatim"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "order_id": "5512345678901",
                "master_asset_id": "ma_7f3c2e",
                "crop_ratio": {"x": 0.25, "y": 0.1, "w": 0.5, "h": 0.5},
                "output_size": {"width": 1200, "height": 900},
                "email": "buyer@example.com",
                "currency": "EUR",
                "total_price": "49.00",
            }
        }
    )

    @field_validator("order_id", "master_asset_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        # Shopify sends numeric ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("total_price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def master_url(self) -> str:
        """URL of the master image for this job's asset."""
        return MASTER_URL_TEMPLATE.format(master_asset_id=self.master_asset_id)
