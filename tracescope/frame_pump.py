"""
Periodic frame pump.

Pulls a frame from a signal source callable on a fixed cadence and publishes
it into a FrameSlot. The pump owns its worker thread: start() launches it,
stop() cancels it and waits for it to exit, and using the pump as a context
manager ties both to a `with` block.

A source that raises does not stop the pump. The failure is logged and
counted and the display keeps showing the last good frame.
"""

import importlib
import logging
import threading
import time

from .config import FRAME_INTERVAL

logger = logging.getLogger(__name__)


def load_source(spec):
    """
    Resolve a signal source callable from a "module:function" path.

    Args:
        spec: Import path such as "mypackage.waves:sine_frame"

    Returns:
        callable: Zero-argument function returning a frame

    Raises:
        ValueError: If spec is malformed or does not name a callable
        ImportError: If the module cannot be imported
    """
    module_name, sep, attr = spec.partition(':')
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:function', got {spec!r}")

    module = importlib.import_module(module_name)
    source = module
    for part in attr.split('.'):
        try:
            source = getattr(source, part)
        except AttributeError as e:
            raise ValueError(f"{module_name} has no attribute {attr!r}") from e

    if not callable(source):
        raise ValueError(f"{spec!r} is not callable")
    return source


class FramePump:
    """
    Polls a signal source and publishes each frame.

    Usage:
        with FramePump(source, slot, interval=1.0):
            ...  # render loop reads slot.latest()
    """

    def __init__(self, source, slot, interval=FRAME_INTERVAL, name="frame-pump"):
        """
        Args:
            source: Zero-argument callable returning a sequence of samples
            slot: FrameSlot that frames are published to
            interval: Seconds between polls (> 0)
            name: Worker thread name
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")

        self.source = source
        self.slot = slot
        self.interval = interval
        self.name = name

        self._stop_event = threading.Event()
        self.thread = None

        # Statistics
        self.frames_published = 0
        self.source_errors = 0

    def start(self):
        """Launch the worker thread. Calling start() twice is an error."""
        if self.thread is not None and self.thread.is_alive():
            raise RuntimeError(f"{self.name} is already running")

        self._stop_event.clear()
        self.thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self.thread.start()
        logger.info("%s started (every %.3fs)", self.name, self.interval)

    def _run(self):
        next_tick = time.monotonic() + self.interval

        # Event.wait doubles as the cancellation point
        while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
            next_tick += self.interval
            self.pump_once()

            # Fell behind (slow source); skip missed ticks instead of bursting
            now = time.monotonic()
            if next_tick < now:
                next_tick = now + self.interval

        logger.debug("%s exiting", self.name)

    def pump_once(self):
        """
        Pull one frame from the source and publish it.

        Returns:
            bool: True if a frame was published
        """
        try:
            frame = self.source()
            self.slot.publish(frame)
        except Exception:
            self.source_errors += 1
            logger.exception("Signal source failed; keeping previous frame")
            return False

        self.frames_published += 1
        return True

    def stop(self, timeout=2.0):
        """
        Cancel the worker thread and wait for it to exit.

        Safe to call multiple times.
        """
        self._stop_event.set()
        if (self.thread and self.thread.is_alive()
                and self.thread is not threading.current_thread()):
            self.thread.join(timeout=timeout)
        self.thread = None

    def is_running(self):
        return self.thread is not None and self.thread.is_alive()

    def get_stats(self):
        return {
            'frames_published': self.frames_published,
            'source_errors': self.source_errors,
            'is_running': self.is_running(),
        }

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
