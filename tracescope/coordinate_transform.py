"""
Coordinate system transformation utilities.

Handles conversion from sample space to canvas coordinates and builds the
trace polyline from a frame of samples.

Sample coordinate system:
    - Index i increases with time (0 is the oldest sample in the frame)
    - Value d nominally in [-1, 1], 0 is the signal baseline

Canvas coordinate system:
    - Origin (0,0) at top-left corner
    - X increases right (0 to width)
    - Y increases down (0 to height)
    - Baseline (d = 0) sits on the horizontal centre line
"""

from typing import NamedTuple, Tuple

MOVE = 'move'
LINE = 'line'


class PathVertex(NamedTuple):
    command: str   # MOVE for the first vertex, LINE for the rest
    x: float
    y: float


class TracePath:
    """
    Connected open polyline, one vertex per sample.

    Vertices are held in a tuple, so two paths built from the same inputs
    compare (and hash) equal.
    """

    __slots__ = ('vertices',)

    def __init__(self, vertices: Tuple[PathVertex, ...] = ()):
        self.vertices = tuple(vertices)

    def __eq__(self, other):
        if not isinstance(other, TracePath):
            return NotImplemented
        return self.vertices == other.vertices

    def __hash__(self):
        return hash(self.vertices)

    def __repr__(self):
        return f"TracePath({len(self.vertices)} vertices)"

    def __len__(self):
        return len(self.vertices)

    def __iter__(self):
        return iter(self.vertices)

    def __getitem__(self, index):
        return self.vertices[index]

    @property
    def is_empty(self):
        return not self.vertices

    @property
    def is_degenerate(self):
        """True when the path has no visible stroke (fewer than 2 vertices)."""
        return len(self.vertices) < 2

    def points(self):
        """Vertex coordinates as a list of (x, y) tuples."""
        return [(v.x, v.y) for v in self.vertices]


class CoordinateTransform:
    """
    Transforms samples into canvas coordinates.

    Example usage:
        x, y = CoordinateTransform.sample_to_canvas(
            0, 0.0, width=900, height=500, y_scale=1.0, horizontal_shift=0.01)
        # Result: (0.0, 250.0) - first sample on the baseline
    """

    @staticmethod
    def sample_to_canvas(index, value, width, height, y_scale, horizontal_shift):
        """
        Convert one sample to canvas coordinates.

        Args:
            index: Position of the sample in its frame
            value: Sample value (not clamped)
            width: Canvas width in display units
            height: Canvas height in display units
            y_scale: Vertical amplitude multiplier
            horizontal_shift: Fraction of the width advanced per sample

        Returns:
            tuple: (x, y) in canvas units
        """
        x = index * horizontal_shift * width
        y = height / 2 - (height * value / 2) * y_scale
        return x, y

    @staticmethod
    def canvas_to_value(y, height, y_scale):
        """
        Convert a canvas Y coordinate back to a sample value.

        Returns 0.0 for a collapsed canvas or zero scale, where every value
        maps to the same row.
        """
        if height <= 0 or y_scale == 0:
            return 0.0
        return (height / 2 - y) * 2 / (height * y_scale)

    @staticmethod
    def is_on_canvas(x, y, width, height):
        """Check if canvas coordinates fall inside the visible area."""
        return 0 <= x <= width and 0 <= y <= height


def generate_path(frame, width, height, y_scale, horizontal_shift):
    """
    Build the trace polyline for a frame.

    The first vertex starts the path, every later vertex extends it with a
    straight segment. Values outside [-1, 1] land outside the canvas and are
    left for the renderer to clip.

    Args:
        frame: Ordered sequence of samples
        width: Canvas width (negative is treated as 0)
        height: Canvas height (negative is treated as 0)
        y_scale: Vertical amplitude multiplier
        horizontal_shift: Fraction of the width advanced per sample

    Returns:
        TracePath: Empty for an empty frame
    """
    width = max(width, 0)
    height = max(height, 0)

    vertices = []
    for index, value in enumerate(frame):
        x, y = CoordinateTransform.sample_to_canvas(
            index, value, width, height, y_scale, horizontal_shift)
        vertices.append(PathVertex(MOVE if index == 0 else LINE, x, y))

    return TracePath(tuple(vertices))
