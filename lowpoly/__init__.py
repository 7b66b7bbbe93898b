"""Low-poly image renderer."""
from lowpoly.types import (
    PixelBuffer,
    Point,
    LowPolyConfig,
    LowPolyResult,
    GenerationStats,
    LowPolyError,
    InvalidInputError,
    DegenerateGeometryError,
    GenerationCancelled,
)
from lowpoly.delaunay import Triangle, Triangulation
from lowpoly.pipeline import LowPolyPipeline, generate, process_image

__version__ = "0.1.0"

__all__ = [
    "PixelBuffer",
    "Point",
    "LowPolyConfig",
    "LowPolyResult",
    "GenerationStats",
    "LowPolyError",
    "InvalidInputError",
    "DegenerateGeometryError",
    "GenerationCancelled",
    "Triangle",
    "Triangulation",
    "LowPolyPipeline",
    "generate",
    "process_image",
]
