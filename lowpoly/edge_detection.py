"""Edge point extraction from a filtered buffer."""
import logging

import numpy as np
from scipy import ndimage

from lowpoly.types import PixelBuffer

logger = logging.getLogger(__name__)

_NEIGHBORHOOD = np.ones((3, 3), dtype=np.float64)


def local_mean(values: np.ndarray) -> np.ndarray:
    """
    Mean over each pixel's 3x3 neighborhood, counting in-bounds cells only.

    Border pixels are averaged over 4 or 6 cells rather than padded to 9,
    so this is a true local average and not a fixed-divisor convolution.
    """
    values = values.astype(np.float64)
    sums = ndimage.correlate(values, _NEIGHBORHOOD, mode='constant', cval=0.0)
    counts = ndimage.correlate(
        np.ones_like(values), _NEIGHBORHOOD, mode='constant', cval=0.0
    )
    return sums / counts


def extract_edge_points(buffer: PixelBuffer, threshold: float) -> np.ndarray:
    """
    Find pixels whose local mean brightness exceeds a threshold.

    Args:
        buffer: Filtered buffer; only channel 0 is read
        threshold: Brightness level (0-255) the mean must strictly exceed

    Returns:
        (N, 2) int array of (x, y) pixel coordinates in row-major scan order
    """
    mask = local_mean(buffer.luminance) > threshold

    # np.nonzero walks rows first, which is the scan order we want
    ys, xs = np.nonzero(mask)
    points = np.column_stack([xs, ys]).astype(np.int64)

    logger.info(f"Detected {len(points)} edge points above threshold {threshold}")
    return points
