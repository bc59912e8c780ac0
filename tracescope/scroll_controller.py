"""
Scroll/window controller for the trace reveal animation.

A freshly drawn trace is hidden behind an opaque mask anchored to the right
edge of the canvas. Once a frame with more than one sample arrives, the mask
shrinks from the full canvas width to zero over horizontal_scale seconds,
which reads as the trace scrolling in from the left.

    MASKED ──(fresh frame, >1 sample)──> REVEALING ──(elapsed >= duration)──> REVEALED
       ^                                     │                                   │
       └────────(frame with <= 1 sample)─────┴───────────────────────────────────┘

The controller never owns a timer. Every call takes `now` from the host's
frame clock (seconds, monotonic) and the current canvas width, so a resize
mid-animation is picked up on the next query.
"""

import logging
import time
from enum import Enum

logger = logging.getLogger(__name__)


class ScrollState(Enum):
    MASKED = 'masked'
    REVEALING = 'revealing'
    REVEALED = 'revealed'


def interpolate_overlay_width(elapsed, duration, width):
    """
    Overlay width after `elapsed` seconds of a `duration` second reveal.

    Linear easing from `width` down to exactly 0.0 at completion. Negative
    elapsed time (clock skew) holds the mask at full width.

    Args:
        elapsed: Seconds since the reveal was triggered
        duration: Length of the reveal in seconds
        width: Current canvas width (negative is treated as 0)

    Returns:
        float: Mask width in canvas units
    """
    width = max(width, 0)
    if duration <= 0 or elapsed >= duration:
        return 0.0
    if elapsed <= 0:
        return float(width)
    return width * (1.0 - elapsed / duration)


class ScrollWindowController:
    """
    Drives the reveal animation for one trace display.

    Usage:
        controller = ScrollWindowController(horizontal_scale=1)
        controller.observe(frame, now=clock())     # on every new frame
        width = controller.overlay_width(canvas_width, now=clock())
    """

    def __init__(self, horizontal_scale, clock=time.monotonic):
        """
        Args:
            horizontal_scale: Reveal duration in seconds (the trace time window)
            clock: Fallback time source when a call omits `now`
        """
        self.duration = float(horizontal_scale)
        self.clock = clock

        self.state = ScrollState.MASKED
        self.triggered_at = None
        self.trigger_count = 0

    def _now(self, now):
        return self.clock() if now is None else now

    def observe(self, frame, now=None, fresh=True):
        """
        Feed the frame about to be drawn into the state machine.

        Args:
            frame: Sequence of samples being displayed
            now: Frame clock time in seconds
            fresh: False when re-rendering a frame that was already observed;
                a stale frame never restarts the animation

        Returns:
            ScrollState: State after the update
        """
        now = self._now(now)
        self._advance(now)

        if len(frame) <= 1:
            if self.state is not ScrollState.MASKED:
                logger.debug("Reveal reset: frame has %d sample(s)", len(frame))
            self.state = ScrollState.MASKED
            self.triggered_at = None
        elif self.state is ScrollState.MASKED or (
                fresh and self.state is ScrollState.REVEALED):
            self.state = ScrollState.REVEALING
            self.triggered_at = now
            self.trigger_count += 1
            logger.debug("Reveal triggered at %.3f (trigger #%d)",
                         now, self.trigger_count)

        return self.state

    def _advance(self, now):
        if (self.state is ScrollState.REVEALING
                and now - self.triggered_at >= self.duration):
            self.state = ScrollState.REVEALED

    def tick(self, now=None):
        """
        Advance the animation to `now`.

        Returns:
            ScrollState: State after the update
        """
        self._advance(self._now(now))
        return self.state

    def elapsed(self, now=None):
        """Seconds since the current reveal started, or None when masked."""
        if self.triggered_at is None:
            return None
        return self._now(now) - self.triggered_at

    def progress(self, now=None):
        """
        Fraction of the reveal completed, from 0.0 (masked) to 1.0 (revealed).
        """
        now = self._now(now)
        self.tick(now)
        if self.state is ScrollState.MASKED:
            return 0.0
        if self.state is ScrollState.REVEALED:
            return 1.0
        if self.duration <= 0:
            return 1.0
        return min(1.0, max(0.0, self.elapsed(now) / self.duration))

    def overlay_width(self, canvas_width, now=None):
        """
        Width of the mask rectangle at `now` for the current canvas width.

        Args:
            canvas_width: Width of the canvas at query time
            now: Frame clock time in seconds

        Returns:
            float: Full width while masked, 0.0 once revealed
        """
        now = self._now(now)
        self._advance(now)

        if self.state is ScrollState.MASKED:
            return float(max(canvas_width, 0))
        if self.state is ScrollState.REVEALED:
            return 0.0
        return interpolate_overlay_width(
            now - self.triggered_at, self.duration, canvas_width)

    def reset(self):
        """Return to MASKED, ready for the next trigger."""
        self.state = ScrollState.MASKED
        self.triggered_at = None
