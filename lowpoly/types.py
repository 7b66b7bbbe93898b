"""Core types for the low-poly pipeline."""
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional, List, Tuple
import numpy as np

if TYPE_CHECKING:
    from lowpoly.delaunay import Triangle


# Coordinate tolerance for treating two vertices as coincident
POINT_EPSILON = 1e-4


class LowPolyError(Exception):
    """Base exception for low-poly generation errors."""
    pass


class InvalidInputError(LowPolyError):
    """Raised for zero-area images, malformed arrays and bad configuration."""
    pass


class DegenerateGeometryError(LowPolyError):
    """Raised when a triangle is too close to collinear to have a circumcircle."""
    pass


class GenerationCancelled(LowPolyError):
    """Raised inside a generation run that a newer request has superseded."""
    pass


@dataclass
class PixelBuffer:
    """RGBA image samples stored as an (H, W, 4) uint8 array."""
    data: np.ndarray

    def __post_init__(self):
        if not isinstance(self.data, np.ndarray):
            raise InvalidInputError("Pixel data must be a numpy array")
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise InvalidInputError(
                f"Expected (H, W, 4) pixel data, got shape {self.data.shape}"
            )
        if self.data.dtype != np.uint8:
            raise InvalidInputError(f"Expected uint8 pixel data, got {self.data.dtype}")
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(
                f"Image must have positive area, got {self.width}x{self.height}"
            )

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def luminance(self) -> np.ndarray:
        """View of channel 0, the only channel the filters read and write."""
        return self.data[..., 0]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def rgb_at(self, x: int, y: int) -> Tuple[int, int, int]:
        """RGB of the pixel at (x, y), with coordinates clamped to the buffer."""
        x = min(max(int(x), 0), self.width - 1)
        y = min(max(int(y), 0), self.height - 1)
        r, g, b = self.data[y, x, :3]
        return int(r), int(g), int(b)


@dataclass(frozen=True, eq=False)
class Point:
    """2D point with float coordinates and approximate equality."""
    x: float
    y: float
    id: Optional[int] = None

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return (
            abs(self.x - other.x) < POINT_EPSILON
            and abs(self.y - other.y) < POINT_EPSILON
        )

    __hash__ = None

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass(frozen=True)
class LowPolyConfig:
    """Configuration for a single low-poly generation run."""
    # Edge detection: 3x3 mean brightness a pixel must exceed (0-255)
    edge_threshold: int = 80

    # Fraction of edge points kept, capped by max_points
    point_rate: float = 0.075
    max_points: int = 4500

    # Kernel half-widths
    blur_size: int = 2
    edge_size: int = 6

    # Sources above this pixel count are downscaled on ingest
    pixel_limit: int = 8_000_000

    # Random seed for point sampling (None = nondeterministic)
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0 <= self.edge_threshold <= 255:
            raise InvalidInputError(
                f"edge_threshold must be in [0, 255], got {self.edge_threshold}"
            )
        if not 0.0 <= self.point_rate <= 1.0:
            raise InvalidInputError(
                f"point_rate must be in [0, 1], got {self.point_rate}"
            )
        if self.max_points < 0:
            raise InvalidInputError(f"max_points must be >= 0, got {self.max_points}")
        if self.blur_size < 0 or self.edge_size < 0:
            raise InvalidInputError(
                f"Kernel sizes must be >= 0, got blur_size={self.blur_size}, "
                f"edge_size={self.edge_size}"
            )
        if self.pixel_limit <= 0:
            raise InvalidInputError(f"pixel_limit must be > 0, got {self.pixel_limit}")

    def replace(self, **changes) -> "LowPolyConfig":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)


@dataclass
class GenerationStats:
    """Diagnostic counters for one generation run."""
    edge_points: int = 0
    sampled_points: int = 0
    skipped_points: int = 0
    triangles: int = 0
    elapsed_seconds: float = 0.0

    @property
    def sample_ratio(self) -> float:
        """Sampled points as a fraction of detected edge points."""
        if self.edge_points == 0:
            return 0.0
        return self.sampled_points / self.edge_points

    def summary(self) -> str:
        return (
            f"{self.elapsed_seconds * 1000:.0f}ms, "
            f"{self.sampled_points} points (out of {self.edge_points} points, "
            f"{self.sample_ratio * 100:.2f} %), "
            f"{self.triangles} triangles"
        )


@dataclass
class LowPolyResult:
    """Output of a generation run."""
    image: PixelBuffer
    triangles: List["Triangle"] = field(default_factory=list)
    colors: List[Tuple[int, int, int]] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)
