"""Raster image ingestion and output."""
import logging
import math
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image
from PIL import ImageOps
from skimage.util import img_as_ubyte

from lowpoly.types import PixelBuffer, InvalidInputError

logger = logging.getLogger(__name__)


def fit_to_pixel_limit(width: int, height: int, pixel_limit: int) -> Tuple[int, int]:
    """
    Dimensions scaled down so that width * height stays within pixel_limit.

    Uses a uniform scale of sqrt(pixel_limit / pixels) and truncates the
    resulting sizes. Images already within the limit are returned unchanged.
    """
    pixels = width * height
    if pixels <= pixel_limit:
        return width, height

    scale = math.sqrt(pixel_limit / pixels)
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))
    return new_width, new_height


def ingest(path: Union[str, Path], pixel_limit: Optional[int] = None) -> PixelBuffer:
    """
    Ingest a raster image file as an RGBA pixel buffer.

    Args:
        path: Path to image file
        pixel_limit: Downscale images with more pixels than this

    Returns:
        PixelBuffer of the (possibly resized) image

    Raises:
        FileNotFoundError: If file doesn't exist
        InvalidInputError: If file cannot be loaded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise InvalidInputError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)

            if img.mode != 'RGBA':
                img = img.convert('RGBA')

            if pixel_limit is not None:
                width, height = img.size
                new_size = fit_to_pixel_limit(width, height, pixel_limit)
                if new_size != (width, height):
                    logger.info(
                        f"Source resizing {width}px x {height}px -> "
                        f"{new_size[0]}px x {new_size[1]}px"
                    )
                    img = img.resize(new_size, Image.Resampling.LANCZOS)

            return PixelBuffer(np.array(img, dtype=np.uint8))

    except (IOError, OSError) as e:
        raise InvalidInputError(f"Failed to load image {path}: {e}") from e


def ingest_from_array(image: np.ndarray, pixel_limit: Optional[int] = None) -> PixelBuffer:
    """
    Create a PixelBuffer from a numpy array.

    Args:
        image: (H, W), (H, W, 3) or (H, W, 4) array, uint8 or float in [0, 1]
        pixel_limit: Downscale images with more pixels than this

    Returns:
        PixelBuffer with an opaque alpha channel unless one was supplied
    """
    if not isinstance(image, np.ndarray):
        raise InvalidInputError("Input must be a numpy array")

    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)

    if image.ndim != 3:
        raise InvalidInputError(f"Expected 2D or 3D array, got {image.ndim}D")

    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidInputError(
            f"Image must have positive area, got {image.shape[1]}x{image.shape[0]}"
        )

    if image.shape[2] not in (3, 4):
        raise InvalidInputError(f"Expected 3 or 4 channels, got {image.shape[2]}")

    if image.dtype != np.uint8:
        try:
            image = img_as_ubyte(image)
        except ValueError as e:
            raise InvalidInputError(f"Cannot convert {image.dtype} image to uint8: {e}") from e

    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)

    buffer = PixelBuffer(np.ascontiguousarray(image))

    if pixel_limit is not None:
        new_size = fit_to_pixel_limit(buffer.width, buffer.height, pixel_limit)
        if new_size != (buffer.width, buffer.height):
            logger.info(
                f"Source resizing {buffer.width}px x {buffer.height}px -> "
                f"{new_size[0]}px x {new_size[1]}px"
            )
            img = Image.fromarray(buffer.data).resize(new_size, Image.Resampling.LANCZOS)
            buffer = PixelBuffer(np.array(img, dtype=np.uint8))

    return buffer


def to_image(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(buffer.data)


def save_png(buffer: PixelBuffer, output_path: Union[str, Path]) -> Path:
    """Write a buffer to disk as PNG."""
    output_path = Path(output_path)
    to_image(buffer).save(output_path, format='PNG')
    return output_path
