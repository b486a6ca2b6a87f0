"""Crop rectangle computation. Pure functions, no image I/O."""

import math
from typing import NamedTuple

from wandini.models.order import CropRatio


class CropRect(NamedTuple):
    """Absolute pixel rectangle: (left, top, width, height)."""

    left: int
    top: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)


def _round_half_up(value: float) -> int:
    # Inputs are non-negative, so half-up equals half-away-from-zero
    return int(math.floor(value + 0.5))


def compute_crop_rect(width: int, height: int, ratio: CropRatio) -> CropRect:
    """
    Map a fractional crop box onto an image of the given size.

    Each coordinate is rounded half-up independently. Rounding can push the
    far edge one pixel past the image, so width/height are clamped to fit.

    Args:
        width: Source image width in pixels
        height: Source image height in pixels
        ratio: Fractional crop box

    Returns:
        CropRect inside the image bounds

    Raises:
        ValueError: If the image size is not positive or the rectangle
            collapses to zero pixels
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")

    left = min(_round_half_up(width * ratio.x), width)
    top = min(_round_half_up(height * ratio.y), height)
    crop_width = min(_round_half_up(width * ratio.w), width - left)
    crop_height = min(_round_half_up(height * ratio.h), height - top)

    if crop_width <= 0 or crop_height <= 0:
        raise ValueError(
            f"Crop {ratio.model_dump()} is empty on a {width}x{height} image"
        )

    return CropRect(left, top, crop_width, crop_height)


def validate_crop_bounds(img_width: int, img_height: int, rect: CropRect) -> bool:
    """Return True if the rectangle lies within the image."""
    if rect.left < 0 or rect.top < 0:
        return False
    if rect.width <= 0 or rect.height <= 0:
        return False
    if rect.left + rect.width > img_width:
        return False
    return rect.top + rect.height <= img_height
