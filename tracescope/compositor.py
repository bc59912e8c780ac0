"""
Core compositor for trace frames.

Layers one display, back to front:
- Background fill (solid background colour)
- Trace stroke (polyline from generate_path)
- Scroll mask (background-coloured rectangle anchored to the right edge)
- Grid lines (drawn last, so they stay visible across the masked region)

The result is a RenderedFrame display list. Hosts draw it with whatever
toolkit they run (see viewer.draw_rendered_frame for pygame).
"""

import logging
import time
from typing import List, NamedTuple, Tuple

from .config import (
    SLOW_FRAME_THRESHOLD, STATS_LOG_INTERVAL, LOG_FRAME_TIMES
)
from .coordinate_transform import TracePath, generate_path
from .frame_slot import FrameSlot
from .grid_overlay import GridLine, grid_lines
from .scroll_controller import ScrollWindowController

logger = logging.getLogger(__name__)


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float
    color: Tuple[int, int, int]


class Stroke(NamedTuple):
    path: TracePath
    color: Tuple[int, int, int]
    width: float


class RenderedFrame(NamedTuple):
    background: Rect
    trace: Stroke
    mask: Rect
    grid: List[GridLine]

    @property
    def width(self):
        return self.background.width

    @property
    def height(self):
        return self.background.height

    def layers(self):
        """Drawing operations in back-to-front order."""
        return [self.background, self.trace, self.mask] + list(self.grid)


def mask_rect(width, height, overlay_width, color):
    """
    Scroll mask anchored to the right edge of the canvas.

    The overlay width is capped to the canvas so a stale, wider value never
    produces a rectangle starting left of the origin.
    """
    width = max(width, 0)
    height = max(height, 0)
    overlay = min(max(overlay_width, 0), width)
    return Rect(width - overlay, 0.0, overlay, height, color)


def compose_frame(settings, path, width, height, overlay_width):
    """
    Layer a pre-built trace path, scroll mask and grid into one frame.

    Pure: the same inputs always produce an equal RenderedFrame.

    Args:
        settings: TraceSettings for colours, stroke widths and grid counts
        path: TracePath for the current frame and geometry
        width: Canvas width
        height: Canvas height
        overlay_width: Current mask width from the scroll controller

    Returns:
        RenderedFrame
    """
    canvas_w = max(width, 0)
    canvas_h = max(height, 0)

    return RenderedFrame(
        background=Rect(0.0, 0.0, canvas_w, canvas_h, settings.background_color),
        trace=Stroke(path, settings.trace_color, settings.trace_width),
        mask=mask_rect(canvas_w, canvas_h, overlay_width, settings.background_color),
        grid=grid_lines(
            canvas_w, canvas_h,
            vertical_lines=settings.vertical_grid_lines,
            horizontal_lines=settings.horizontal_grid_lines,
            color=settings.grid_color,
            stroke_width=settings.grid_width,
        ),
    )


def render_trace(settings, frame, width, height, overlay_width):
    """Generate the path for `frame` and compose it in one call."""
    path = generate_path(frame, width, height,
                         settings.vertical_scale, settings.horizontal_shift)
    return compose_frame(settings, path, width, height, overlay_width)


class TraceCompositor:
    """
    Renders the newest frame from a FrameSlot on every host tick.

    This is the hot path - called once per host frame (typically 60/s).
    It performs no I/O; the only allocation is the vertex list, and that is
    rebuilt only when the frame or the canvas size changes.

    Usage:
        compositor = TraceCompositor(settings, slot)
        rendered = compositor.render(width, height)   # each host tick
        host.draw(rendered)
    """

    def __init__(self, settings, slot=None, controller=None, clock=time.monotonic):
        """
        Args:
            settings: TraceSettings for this display
            slot: FrameSlot to read frames from (a new one if omitted)
            controller: ScrollWindowController (built from settings if omitted)
            clock: Frame clock used when render() is called without `now`
        """
        self.settings = settings
        self.slot = slot if slot is not None else FrameSlot()
        self.controller = controller or ScrollWindowController(
            settings.horizontal_scale, clock=clock)
        self.clock = clock

        # Version of the last frame fed to the scroll controller
        self.observed_version = None

        # Path cache, keyed by (frame version, width, height)
        self._path_key = None
        self._path = TracePath()

        # Statistics tracking
        self.frame_count = 0
        self.total_render_time = 0.0
        self.slow_frame_count = 0
        self.path_builds = 0

    def _path_for(self, version, frame, width, height):
        key = (version, width, height)
        if key != self._path_key:
            self._path = generate_path(
                frame, width, height,
                self.settings.vertical_scale, self.settings.horizontal_shift)
            self._path_key = key
            self.path_builds += 1
        return self._path

    def render(self, width, height, now=None):
        """
        Render the newest frame for the current canvas size.

        Args:
            width: Canvas width at this tick
            height: Canvas height at this tick
            now: Frame clock time in seconds

        Returns:
            RenderedFrame
        """
        render_start = time.perf_counter()
        now = self.clock() if now is None else now

        version, frame = self.slot.latest()
        fresh = version != self.observed_version
        self.controller.observe(frame, now=now, fresh=fresh)
        self.observed_version = version

        path = self._path_for(version, frame, width, height)
        overlay = self.controller.overlay_width(width, now=now)
        rendered = compose_frame(self.settings, path, width, height, overlay)

        total_time = time.perf_counter() - render_start
        self.total_render_time += total_time
        self.frame_count += 1

        # Track slow frames
        if total_time > SLOW_FRAME_THRESHOLD:
            self.slow_frame_count += 1
            if LOG_FRAME_TIMES:
                logger.warning("Slow frame %d: %.2fms",
                               self.frame_count, total_time * 1000)

        # Periodic logging
        if LOG_FRAME_TIMES and self.frame_count % STATS_LOG_INTERVAL == 0:
            self._log_statistics()

        return rendered

    def _log_statistics(self):
        stats = self.get_statistics()
        if not stats:
            return
        logger.info("Rendering statistics (frame %d): avg %.3fms, "
                    "%d path builds, %d slow frames (%.1f%%)",
                    stats['frame_count'], stats['avg_frame_time_ms'],
                    stats['path_builds'], stats['slow_frame_count'],
                    stats['slow_frame_count'] / stats['frame_count'] * 100)

    def get_statistics(self):
        """
        Get rendering statistics.

        Returns:
            dict: Statistics including frame count and frame times, empty
                before the first render
        """
        if self.frame_count == 0:
            return {}

        return {
            'frame_count': self.frame_count,
            'avg_frame_time_ms': self.total_render_time / self.frame_count * 1000,
            'total_render_time': self.total_render_time,
            'slow_frame_count': self.slow_frame_count,
            'path_builds': self.path_builds,
            'scroll_state': self.controller.state.value,
        }
