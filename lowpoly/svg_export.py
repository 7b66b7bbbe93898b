"""SVG export for low-poly triangle meshes."""
from pathlib import Path
from typing import Sequence, Tuple, Union

from lowpoly.delaunay import Triangle


def format_color(rgb: Sequence[int]) -> str:
    """
    Format an RGB color (0-255 channels) as a hex string.

    Uses #RGB shorthand when possible.
    """
    r, g, b = [int(min(255, max(0, c))) for c in rgb[:3]]

    if (r % 17 == 0) and (g % 17 == 0) and (b % 17 == 0):
        return f"#{r//17:x}{g//17:x}{b//17:x}"
    else:
        return f"#{r:02x}{g:02x}{b:02x}"


def format_number(x: float, precision: int) -> str:
    """Format a number with the given precision, dropping trailing zeros."""
    formatted = f"{x:.{precision}f}"
    if '.' in formatted:
        formatted = formatted.rstrip('0').rstrip('.')
    if formatted == '-0':
        formatted = '0'
    return formatted


def triangle_to_polygon(
    triangle: Triangle,
    fill_color: Sequence[int],
    precision: int = 2
) -> str:
    """
    Convert a triangle to an SVG polygon element.

    The stroke repeats the fill so antialiased renderers don't leave
    hairline gaps between neighbouring triangles.
    """
    fmt = lambda x: format_number(x, precision)
    points = ' '.join(f"{fmt(p.x)},{fmt(p.y)}" for p in triangle.nodes)
    color = format_color(fill_color)
    return f'<polygon points="{points}" fill="{color}" stroke="{color}" stroke-width="0.5"/>'


def triangles_to_svg(
    triangles: Sequence[Triangle],
    colors: Sequence[Tuple[int, int, int]],
    width: int,
    height: int,
    precision: int = 2
) -> str:
    """
    Generate an SVG document with one flat-filled polygon per triangle.

    Args:
        triangles: Triangles to draw, in paint order
        colors: RGB fill for each triangle
        width: Image width
        height: Image height
        precision: Decimal places for coordinates

    Returns:
        Complete SVG string
    """
    if len(triangles) != len(colors):
        raise ValueError(
            f"Got {len(triangles)} triangles but {len(colors)} colors"
        )

    elements = [
        triangle_to_polygon(triangle, color, precision)
        for triangle, color in zip(triangles, colors)
    ]
    svg_content = '\n  '.join(elements)

    svg = f'''<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" width="{width}" height="{height}">
  {svg_content}
</svg>'''

    return svg


def save_svg(svg_string: str, output_path: Union[str, Path]) -> None:
    """Save SVG string to file."""
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(svg_string)
