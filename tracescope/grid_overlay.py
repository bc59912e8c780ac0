"""
Reference grid drawn over the trace.

Lines are evenly spaced: V vertical lines split the width into V+1 equal
columns and Hc horizontal lines split the height into Hc+1 equal rows. The
canvas edges themselves are never drawn.
"""

from typing import NamedTuple, Tuple

from .config import COLOR_GRID, GRID_WIDTH


class GridLine(NamedTuple):
    start: Tuple[float, float]
    end: Tuple[float, float]
    color: Tuple[int, int, int]
    width: float


def vertical_positions(width, count):
    """X coordinates of `count` evenly spaced vertical lines."""
    spacing = width / (count + 1)
    return [spacing * (i + 1) for i in range(count)]


def horizontal_positions(height, count):
    """Y coordinates of `count` evenly spaced horizontal lines."""
    spacing = height / (count + 1)
    return [spacing * (i + 1) for i in range(count)]


def grid_lines(width, height, vertical_lines=0, horizontal_lines=0,
               color=COLOR_GRID, stroke_width=GRID_WIDTH):
    """
    Build the grid overlay for a canvas.

    Vertical lines span the full height, horizontal lines the full width.
    A collapsed canvas (zero or negative size) yields no lines.

    Args:
        width: Canvas width
        height: Canvas height
        vertical_lines: Number of vertical lines (>= 0)
        horizontal_lines: Number of horizontal lines (>= 0)
        color: RGB line colour
        stroke_width: Line width

    Returns:
        list: GridLine segments, vertical lines first
    """
    if width <= 0 or height <= 0:
        return []

    color = tuple(color)
    lines = [GridLine((x, 0.0), (x, float(height)), color, stroke_width)
             for x in vertical_positions(width, vertical_lines)]
    lines.extend(GridLine((0.0, y), (float(width), y), color, stroke_width)
                 for y in horizontal_positions(height, horizontal_lines))
    return lines
