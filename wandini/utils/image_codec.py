"""
Image codec backed by Pillow.

Reads master dimensions and writes cropped regions as PNG, which is
lossless, so the crop carries no recompression artifacts.
"""

import logging
from pathlib import Path

from PIL import Image

from wandini import config
from wandini.models.order import OutputSize
from wandini.utils.geometry import CropRect, validate_crop_bounds

logger = logging.getLogger(__name__)

# Pillow's decompression-bomb guard follows the configured ceiling
Image.MAX_IMAGE_PIXELS = config.MAX_IMAGE_PIXELS


class ImageCodecError(IOError):
    """Raised when an image cannot be read, cropped or written."""


class ImageCodec:
    """Pillow implementation of the dimension-read and crop-extract operations."""

    def __init__(self, max_pixels: int | None = None):
        self.max_pixels = max_pixels or config.MAX_IMAGE_PIXELS

    def _check_area(self, path: Path, img: Image.Image) -> None:
        if img.width * img.height > self.max_pixels:
            raise ImageCodecError(
                f"Image {path} is {img.width}x{img.height}, "
                f"above the {self.max_pixels} pixel limit"
            )

    def read_dimensions(self, path: Path) -> tuple[int, int]:
        """
        Read image width and height without decoding pixel data.

        Raises:
            ImageCodecError: If the file is not a readable image or exceeds
                the pixel limit
        """
        try:
            with Image.open(path) as img:
                self._check_area(path, img)
                return img.size
        except ImageCodecError:
            raise
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageCodecError(f"Cannot read image {path}: {e}") from e

    def extract(
        self,
        source: Path,
        rect: CropRect,
        dest: Path,
        output_size: OutputSize | None = None,
    ) -> Path:
        """
        Crop `rect` out of `source` and save it losslessly to `dest`.

        Args:
            source: Master image path
            rect: Pixel rectangle inside the master
            dest: Output path (written as PNG)
            output_size: Optional size to resample the crop to

        Returns:
            The destination path

        Raises:
            ImageCodecError: If the rectangle is out of bounds, the image is
                above the pixel limit, or it cannot be processed
        """
        try:
            with Image.open(source) as img:
                self._check_area(source, img)
                if not validate_crop_bounds(img.width, img.height, rect):
                    raise ImageCodecError(
                        f"Crop {tuple(rect)} outside {img.width}x{img.height} image"
                    )
                cropped = img.crop(rect.box)
                if output_size is not None:
                    cropped = cropped.resize(
                        (output_size.width, output_size.height),
                        Image.Resampling.LANCZOS,
                    )
                cropped.save(dest, format="PNG")
        except ImageCodecError:
            raise
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageCodecError(f"Cannot crop {source}: {e}") from e

        logger.debug("Cropped %s %s -> %s", source, tuple(rect), dest)
        return dest
