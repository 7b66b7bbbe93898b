"""Grayscale and convolution filters over a pixel buffer's first channel."""
import logging
from typing import Callable, Optional, Sequence, Union

import numpy as np
from scipy import ndimage

from lowpoly.types import PixelBuffer, InvalidInputError

logger = logging.getLogger(__name__)


def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """
    Reduce each pixel to a cheap luminance estimate stored in channel 0.

    Channel 0 becomes (max(r, g, b) + min(r, g, b)) >> 2. The other
    channels are left untouched since later filters only read channel 0.

    Args:
        buffer: RGBA buffer, modified in place

    Returns:
        The same buffer
    """
    rgb = buffer.data[..., :3].astype(np.uint16)
    value = (rgb.max(axis=2) + rgb.min(axis=2)) >> 2
    buffer.data[..., 0] = value.astype(np.uint8)
    return buffer


def _as_square_kernel(matrix: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    kernel = np.asarray(matrix, dtype=np.float64)
    if kernel.ndim == 1:
        side = int(round(np.sqrt(kernel.size)))
        if side * side != kernel.size:
            raise InvalidInputError(f"Kernel of {kernel.size} cells is not square")
        kernel = kernel.reshape(side, side)
    if kernel.ndim != 2 or kernel.shape[0] != kernel.shape[1]:
        raise InvalidInputError(f"Kernel must be square, got shape {kernel.shape}")
    if kernel.shape[0] % 2 == 0:
        raise InvalidInputError(f"Kernel side must be odd, got {kernel.shape[0]}")
    return kernel


def convolve(
    matrix: Union[Sequence[float], np.ndarray],
    buffer: PixelBuffer,
    divisor: float = 1
) -> PixelBuffer:
    """
    Apply a square kernel to channel 0 of a buffer.

    The kernel is laid over the window without flipping, so
    matrix[(row + k) * side + (col + k)] weights the sample at
    (x + col, y + row). Samples come from a snapshot of channel 0 taken
    before the pass. Cells falling outside the buffer contribute nothing,
    and the divisor stays fixed regardless of how many cells were in bounds.

    Args:
        matrix: Flat row-major list of side*side weights, or a 2D array
        buffer: RGBA buffer, channel 0 modified in place
        divisor: Kernel is pre-scaled by 1/divisor (0 is treated as 1)

    Returns:
        The same buffer
    """
    kernel = _as_square_kernel(matrix)
    divisor = divisor or 1
    if divisor != 1:
        kernel = kernel * (1.0 / divisor)

    snapshot = buffer.luminance.astype(np.float64)
    result = ndimage.correlate(snapshot, kernel, mode='constant', cval=0.0)

    np.clip(result, 0, 255, out=result)
    buffer.data[..., 0] = result.astype(np.uint8)
    return buffer


def blur_kernel(size: int) -> np.ndarray:
    """Uniform box kernel of side 2*size + 1."""
    side = size * 2 + 1
    return np.ones(side * side, dtype=np.float64)


def edge_kernel(size: int) -> np.ndarray:
    """High-pass kernel of side 2*size + 1: all ones, center 1 - side^2."""
    side = size * 2 + 1
    length = side * side
    matrix = np.ones(length, dtype=np.float64)
    matrix[length // 2] = 1 - length
    return matrix


def apply_filters(
    buffer: PixelBuffer,
    blur_size: int,
    edge_size: int,
    on_stage: Optional[Callable[[str, PixelBuffer], None]] = None
) -> PixelBuffer:
    """
    Grayscale, box blur, then edge enhancement, all on channel 0.

    Args:
        buffer: RGBA buffer, channel 0 modified in place
        blur_size: Box blur half-width
        edge_size: Edge kernel half-width
        on_stage: Called with a stage name and the buffer after each pass

    Returns:
        The same buffer
    """
    grayscale(buffer)
    if on_stage is not None:
        on_stage("grayscale", buffer)

    blur = blur_kernel(blur_size)
    convolve(blur, buffer, blur.size)
    if on_stage is not None:
        on_stage("blur", buffer)

    convolve(edge_kernel(edge_size), buffer)
    if on_stage is not None:
        on_stage("edges", buffer)

    logger.debug(
        f"Filtered {buffer.width}x{buffer.height} buffer "
        f"(blur={blur_size}, edge={edge_size})"
    )
    return buffer
