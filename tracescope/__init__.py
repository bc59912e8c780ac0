"""
TraceScope - scrolling oscilloscope-style trace rendering.

Turns a stream of sample frames into a display list: the trace polyline,
a right-anchored scroll mask that reveals the trace over one time window,
and an optional reference grid. The pygame viewer is one host for it.
"""

from .config import TraceSettings, TraceConfigError
from .coordinate_transform import CoordinateTransform, TracePath, generate_path
from .compositor import RenderedFrame, TraceCompositor, compose_frame, render_trace
from .frame_pump import FramePump
from .frame_slot import FrameSlot
from .grid_overlay import GridLine, grid_lines
from .scroll_controller import ScrollState, ScrollWindowController
from .signal_bridge import SignalBridge, SignalClient

__all__ = [
    'TraceSettings', 'TraceConfigError',
    'CoordinateTransform', 'TracePath', 'generate_path',
    'RenderedFrame', 'TraceCompositor', 'compose_frame', 'render_trace',
    'FramePump', 'FrameSlot',
    'GridLine', 'grid_lines',
    'ScrollState', 'ScrollWindowController',
    'SignalBridge', 'SignalClient',
]
