"""
Standalone pygame viewer for TraceScope.

Opens a resizable window and draws the scrolling trace. Frames come from
either an external producer connected over the signal bridge socket, or a
signal source callable polled by a FramePump.

Usage:
    tracescope-viewer --sample-rate 100 --vertical-grid-lines 9 \\
        --horizontal-grid-lines 4 --socket

Then connect a producer to /tmp/tracescope.sock (see SignalClient).
"""

import argparse
import logging
import os
import sys
import threading
import time
from datetime import datetime

import pygame

from . import config
from .compositor import TraceCompositor
from .config import TraceSettings, TraceConfigError
from .frame_pump import FramePump, load_source
from .frame_slot import FrameSlot
from .signal_bridge import SignalBridge

logger = logging.getLogger(__name__)


def setup_logging(log_dir=None):
    """
    Setup file + console logging.

    Returns:
        str: Path of the log file
    """
    log_dir = log_dir or config.get_log_directory()
    os.makedirs(log_dir, exist_ok=True)

    # Create timestamped log file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"tracescope_{timestamp}.log")

    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG_MODE else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)  # Also log to console
        ]
    )
    logger.info("Log file: %s", log_file)
    return log_file


def _stroke_px(width):
    """pygame line widths are whole pixels, at least one."""
    return max(1, int(round(width)))


def draw_rendered_frame(surface, rendered):
    """
    Draw a RenderedFrame onto a pygame surface, back to front.

    Args:
        surface: Target pygame.Surface
        rendered: RenderedFrame from the compositor
    """
    background = rendered.background
    surface.fill(background.color)

    # Trace (a single vertex has no visible stroke)
    trace = rendered.trace
    if not trace.path.is_degenerate:
        pygame.draw.lines(surface, trace.color, False,
                          trace.path.points(), _stroke_px(trace.width))

    # Scroll mask, always reaching the right edge
    mask = rendered.mask
    if mask.width > 0 and mask.height > 0:
        left = int(mask.x)
        pygame.draw.rect(surface, mask.color,
                         pygame.Rect(left, int(mask.y),
                                     surface.get_width() - left,
                                     int(round(mask.height))))

    # Grid on top of everything, mask included
    for line in rendered.grid:
        pygame.draw.line(surface, line.color, line.start, line.end,
                         _stroke_px(line.width))


class TraceViewer:
    """
    Resizable pygame window hosting one trace display.

    The window size is read on every tick, so resizing mid-animation keeps
    the scroll mask proportional to the new width.
    """

    def __init__(self, settings, slot=None, bridge=None, pump=None):
        """
        Args:
            settings: TraceSettings for the display
            slot: FrameSlot shared with the frame producers
            bridge: Optional SignalBridge to accept a producer on
            pump: Optional FramePump to run for the viewer's lifetime
        """
        self.settings = settings
        self.slot = slot if slot is not None else FrameSlot()
        self.compositor = TraceCompositor(settings, self.slot)
        self.bridge = bridge
        self.pump = pump
        self.running = False

        # Frame statistics
        self.frame_count = 0
        self.start_time = None
        self.last_fps_time = None
        self.fps = 0.0

        # pygame state
        self.screen = None
        self.clock = None
        self.font = None

    def init_pygame(self):
        """Initialize pygame display."""
        pygame.init()

        self.screen = pygame.display.set_mode(
            (config.SCREEN_WIDTH, config.SCREEN_HEIGHT), pygame.RESIZABLE)
        pygame.display.set_caption("TraceScope")

        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)

        logger.info("pygame initialized (%dx%d)",
                    config.SCREEN_WIDTH, config.SCREEN_HEIGHT)

    def _start_bridge(self):
        # accept() blocks until a producer shows up; keep the window responsive
        def accept():
            try:
                self.bridge.start()
            except OSError as e:
                logger.error("Signal bridge unavailable: %s", e)

        threading.Thread(target=accept, name="bridge-accept", daemon=True).start()

    def handle_input(self):
        """Handle pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
                return

            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self.running = False
                return

            elif event.type == pygame.VIDEORESIZE:
                logger.debug("Window resized to %dx%d", event.w, event.h)

    def render_frame(self):
        """Render the newest frame to the pygame display."""
        width, height = self.screen.get_size()
        rendered = self.compositor.render(width, height)
        draw_rendered_frame(self.screen, rendered)

        if self.slot.peek_version() == 0:
            text = self.font.render("Waiting for signal...", True, config.COLOR_HUD)
            self.screen.blit(text, text.get_rect(center=(width // 2, height // 2)))

        fps_text = self.font.render(
            f"FPS: {self.fps:.1f} | Frame: {self.frame_count}", True, config.COLOR_HUD)
        self.screen.blit(fps_text, (width - fps_text.get_width() - 10, 10))

        pygame.display.flip()

        # Update statistics
        self.frame_count += 1
        current_time = time.monotonic()

        if self.last_fps_time:
            if current_time - self.last_fps_time >= 1.0:  # Update FPS every second
                self.fps = self.frame_count / (current_time - self.start_time)
                self.last_fps_time = current_time
        else:
            self.last_fps_time = current_time
            self.start_time = current_time

    def run(self):
        """Main loop."""
        logger.info("Starting TraceScope viewer: %r", self.settings)

        try:
            self.init_pygame()

            if self.bridge:
                self._start_bridge()
            if self.pump:
                self.pump.start()

            self.running = True
            while self.running:
                self.handle_input()
                self.render_frame()
                self.clock.tick(config.TARGET_FPS)

        except KeyboardInterrupt:
            logger.info("Interrupted by user")

        finally:
            self.cleanup()

    def cleanup(self):
        """Cleanup resources."""
        self.running = False

        if self.pump:
            self.pump.stop()
            logger.info("Frame pump stopped: %s", self.pump.get_stats())

        if self.bridge:
            self.bridge.stop()
            logger.info("Signal bridge stopped: %s", self.bridge.get_stats())

        pygame.quit()

        stats = self.compositor.get_statistics()
        if stats:
            logger.info("Frames rendered: %d, average render time %.3fms",
                        stats['frame_count'], stats['avg_frame_time_ms'])
            if self.start_time:
                elapsed = time.monotonic() - self.start_time
                if elapsed > 0:
                    logger.info("Average FPS: %.1f", self.frame_count / elapsed)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tracescope-viewer",
        description="Scrolling oscilloscope-style trace viewer")
    parser.add_argument("--sample-rate", type=float, required=True,
                        help="samples per second of the incoming signal")
    parser.add_argument("--vertical-scale", type=float,
                        default=config.DEFAULT_VERTICAL_SCALE,
                        help="amplitude multiplier (default: %(default)s)")
    parser.add_argument("--horizontal-scale", type=int,
                        default=config.DEFAULT_HORIZONTAL_SCALE,
                        help="seconds shown across the window (default: %(default)s)")
    parser.add_argument("--grid-width", type=float, default=config.GRID_WIDTH)
    parser.add_argument("--horizontal-grid-lines", type=int,
                        default=config.DEFAULT_HORIZONTAL_GRID_LINES)
    parser.add_argument("--vertical-grid-lines", type=int,
                        default=config.DEFAULT_VERTICAL_GRID_LINES)

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--socket", nargs="?", const=config.SOCKET_PATH,
                        metavar="PATH",
                        help="accept a producer on a Unix socket "
                             f"(default path: {config.SOCKET_PATH})")
    source.add_argument("--source", metavar="MODULE:FUNCTION",
                        help="poll a signal source callable")
    parser.add_argument("--interval", type=float, default=config.FRAME_INTERVAL,
                        help="seconds between polls with --source (default: %(default)s)")
    return parser


def main(argv=None):
    """Entry point."""
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        settings = TraceSettings(
            sample_rate=args.sample_rate,
            vertical_scale=args.vertical_scale,
            horizontal_scale=args.horizontal_scale,
            grid_width=args.grid_width,
            horizontal_grid_lines=args.horizontal_grid_lines,
            vertical_grid_lines=args.vertical_grid_lines,
        )
    except TraceConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    slot = FrameSlot()
    bridge = pump = None
    if args.socket:
        bridge = SignalBridge(slot, socket_path=args.socket)
    else:
        try:
            pump = FramePump(load_source(args.source), slot, interval=args.interval)
        except (ImportError, ValueError) as e:
            logger.error("Cannot load signal source %r: %s", args.source, e)
            return 2

    TraceViewer(settings, slot, bridge=bridge, pump=pump).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
