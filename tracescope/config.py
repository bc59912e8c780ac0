"""
Configuration constants for TraceScope.

All tunable parameters are centralized here for easy adjustment.
The caller-supplied trace configuration lives in TraceSettings at the
bottom of this module.
"""

import math
import os

# ============================================================================
# Socket Communication
# ============================================================================

# Unix socket path for IPC between signal producers and the viewer
SOCKET_PATH = "/tmp/tracescope.sock"

# Socket timeout for producer connection (seconds)
SOCKET_TIMEOUT = 10.0

# Socket receive timeout while streaming (seconds)
SOCKET_RECV_TIMEOUT = 1.0

# ============================================================================
# Message Protocol Constants
# ============================================================================

# Wire format: [4 bytes: message_type][4 bytes: payload_length][N bytes: JSON]
HEADER_FORMAT = 'II'
HEADER_SIZE = 8

MSG_FRAME_DATA = 0x01      # Producer -> Viewer: {"samples": [...]}
MSG_INIT_COMPLETE = 0x03   # Viewer -> Producer: ready for frames
MSG_SHUTDOWN = 0x04        # Bidirectional: end of session

# ============================================================================
# Signal Cadence
# ============================================================================

# Seconds between frames pulled from a signal source (once per second)
FRAME_INTERVAL = 1.0

# ============================================================================
# Trace Defaults
# ============================================================================

# Seconds of signal represented by the full canvas width
DEFAULT_HORIZONTAL_SCALE = 1

DEFAULT_VERTICAL_SCALE = 1.0

# Colours are RGB tuples
COLOR_BACKGROUND = (0, 0, 0)
COLOR_TRACE = (0, 255, 0)         # Phosphor green
COLOR_GRID = (255, 255, 255)
COLOR_HUD = (100, 255, 100)

TRACE_WIDTH = 1.0
GRID_WIDTH = 1.0

DEFAULT_HORIZONTAL_GRID_LINES = 0
DEFAULT_VERTICAL_GRID_LINES = 0

# ============================================================================
# Viewer
# ============================================================================

SCREEN_WIDTH = 900
SCREEN_HEIGHT = 500

# Frame clock cap for the viewer loop
TARGET_FPS = 60

# ============================================================================
# Performance Tuning
# ============================================================================

# Log statistics every N rendered frames
STATS_LOG_INTERVAL = 300

# Warning threshold for slow renders (seconds)
SLOW_FRAME_THRESHOLD = 0.016  # one 60 FPS frame

# ============================================================================
# Debug Settings
# ============================================================================

# Enable verbose logging
DEBUG_MODE = os.getenv('TRACESCOPE_DEBUG', '0') == '1'

# Enable frame time logging
LOG_FRAME_TIMES = os.getenv('TRACESCOPE_LOG_FRAMES', '0') == '1'

# Enable socket communication logging
LOG_SOCKET = os.getenv('TRACESCOPE_LOG_SOCKET', '0') == '1'


def get_log_directory():
    """Get the directory viewer log files are written to."""
    return os.path.expanduser(
        os.getenv('TRACESCOPE_LOG_DIR', '~/.tracescope/logs'))


class TraceConfigError(ValueError):
    """Raised when a trace is configured with out-of-range parameters."""


class TraceSettings:
    """
    Caller-supplied configuration for one trace display.

    Nothing here is persisted; a host builds one of these and hands it to
    the compositor.

    Example usage:
        settings = TraceSettings(sample_rate=100.0, vertical_grid_lines=9)
        settings.horizontal_shift  # 0.01 of the canvas width per sample
    """

    def __init__(self, sample_rate,
                 vertical_scale=DEFAULT_VERTICAL_SCALE,
                 horizontal_scale=DEFAULT_HORIZONTAL_SCALE,
                 background_color=COLOR_BACKGROUND,
                 grid_color=COLOR_GRID,
                 grid_width=GRID_WIDTH,
                 horizontal_grid_lines=DEFAULT_HORIZONTAL_GRID_LINES,
                 vertical_grid_lines=DEFAULT_VERTICAL_GRID_LINES,
                 trace_color=COLOR_TRACE,
                 trace_width=TRACE_WIDTH):
        """
        Args:
            sample_rate: Samples per second (> 0)
            vertical_scale: Amplitude multiplier, intended in (0, 1]
            horizontal_scale: Seconds represented by the full canvas width (> 0)
            background_color: RGB fill behind the trace and for the scroll mask
            grid_color: RGB colour of grid lines
            grid_width: Stroke width of grid lines (> 0)
            horizontal_grid_lines: Number of horizontal grid lines (>= 0)
            vertical_grid_lines: Number of vertical grid lines (>= 0)
            trace_color: RGB colour of the trace stroke
            trace_width: Stroke width of the trace (> 0)

        Raises:
            TraceConfigError: If any parameter is out of range
        """
        if not _is_positive(sample_rate):
            raise TraceConfigError(
                f"sample_rate must be a positive number, got {sample_rate!r}")
        if not _is_positive(horizontal_scale):
            raise TraceConfigError(
                f"horizontal_scale must be a positive number of seconds, "
                f"got {horizontal_scale!r}")
        if not _is_finite(vertical_scale):
            raise TraceConfigError(
                f"vertical_scale must be finite, got {vertical_scale!r}")
        if not _is_positive(grid_width):
            raise TraceConfigError(
                f"grid_width must be positive, got {grid_width!r}")
        if not _is_positive(trace_width):
            raise TraceConfigError(
                f"trace_width must be positive, got {trace_width!r}")
        for name, count in (('horizontal_grid_lines', horizontal_grid_lines),
                            ('vertical_grid_lines', vertical_grid_lines)):
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise TraceConfigError(
                    f"{name} must be a non-negative integer, got {count!r}")

        self.sample_rate = float(sample_rate)
        self.vertical_scale = float(vertical_scale)
        self.horizontal_scale = horizontal_scale
        self.background_color = tuple(background_color)
        self.grid_color = tuple(grid_color)
        self.grid_width = float(grid_width)
        self.horizontal_grid_lines = horizontal_grid_lines
        self.vertical_grid_lines = vertical_grid_lines
        self.trace_color = tuple(trace_color)
        self.trace_width = float(trace_width)

    @property
    def horizontal_shift(self):
        """Fraction of the canvas width each successive sample advances."""
        return 1 / (self.horizontal_scale * self.sample_rate)

    @property
    def samples_per_window(self):
        """Number of samples that exactly fill the canvas width."""
        return self.horizontal_scale * self.sample_rate

    def __repr__(self):
        return (f"TraceSettings(sample_rate={self.sample_rate}, "
                f"vertical_scale={self.vertical_scale}, "
                f"horizontal_scale={self.horizontal_scale}, "
                f"grid={self.vertical_grid_lines}x{self.horizontal_grid_lines})")


def _is_finite(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False  # int too large for a float


def _is_positive(value):
    return _is_finite(value) and value > 0
