"""Flat-shaded triangle rendering."""
import logging
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from lowpoly.types import PixelBuffer
from lowpoly.delaunay import Triangle

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


def sample_color(source: PixelBuffer, triangle: Triangle) -> Color:
    """RGB of the source pixel under the triangle's centroid (truncated, clamped)."""
    cx, cy = triangle.centroid
    return source.rgb_at(int(cx), int(cy))


def triangle_colors(source: PixelBuffer, triangles: Sequence[Triangle]) -> List[Color]:
    return [sample_color(source, t) for t in triangles]


def render_triangles(
    source: PixelBuffer,
    triangles: Sequence[Triangle]
) -> Tuple[PixelBuffer, List[Color]]:
    """
    Fill each triangle with the source color at its centroid.

    Triangles are drawn with matching fill and outline so neighbours share
    their edge pixels and no seam shows between them.

    Args:
        source: Unfiltered source image to sample colors from
        triangles: Triangles covering the source rectangle

    Returns:
        Tuple of (rendered RGBA buffer of the source's size, per-triangle colors)
    """
    colors = triangle_colors(source, triangles)

    img = Image.new('RGBA', (source.width, source.height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    for triangle, color in zip(triangles, colors):
        polygon = [(p.x, p.y) for p in triangle.nodes]
        fill = color + (255,)
        draw.polygon(polygon, fill=fill, outline=fill)

    logger.info(f"Rendered {len(triangles)} triangles")
    return PixelBuffer(np.array(img, dtype=np.uint8)), colors
