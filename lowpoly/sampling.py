"""Random thinning of edge points."""
import logging
import math
from typing import List, Optional, Sequence, Union

import numpy as np

from lowpoly.types import Point, InvalidInputError

logger = logging.getLogger(__name__)


def target_count(n_points: int, rate: float, max_count: int) -> int:
    """Number of points to keep: round(n * rate), capped at max_count."""
    # Round half up rather than Python's banker's rounding
    count = int(math.floor(n_points * rate + 0.5))
    return max(0, min(count, max_count))


def sample_points(
    points: Union[np.ndarray, Sequence[Sequence[float]]],
    rate: float,
    max_count: int,
    rng: Optional[np.random.Generator] = None
) -> List[Point]:
    """
    Pick a uniformly random subset of points without replacement.

    Runs a partial Fisher-Yates shuffle over an index array: each step
    draws from the remaining pool and swaps the drawn index out of it.

    Args:
        points: (N, 2) array or sequence of (x, y) pairs
        rate: Fraction of points to keep (0-1)
        max_count: Upper bound on the number of points returned
        rng: Random source (a fresh unseeded generator if None)

    Returns:
        List of Points in draw order
    """
    coords = np.asarray(points, dtype=np.float64)
    if coords.size == 0:
        return []
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise InvalidInputError(f"Expected (N, 2) points, got shape {coords.shape}")

    if rng is None:
        rng = np.random.default_rng()

    n = len(coords)
    limit = target_count(n, rate, max_count)

    pool = np.arange(n)
    remaining = n
    sampled = []
    while len(sampled) < limit and remaining > 0:
        j = int(rng.integers(remaining))
        picked = pool[j]
        remaining -= 1
        pool[j] = pool[remaining]
        sampled.append(Point(float(coords[picked, 0]), float(coords[picked, 1]), id=int(picked)))

    logger.info(f"Sampled {len(sampled)} of {n} points (rate={rate}, max={max_count})")
    return sampled
