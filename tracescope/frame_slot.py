"""
Single-slot, newest-wins frame channel.

Producers (a signal bridge thread, a frame pump, or a direct caller) publish
whole frames; the render loop reads whichever frame is newest. There is no
queue: publishing overwrites the slot, so a slow consumer simply skips frames
and a fast producer never blocks.

Every publish bumps a version counter. The render loop compares versions to
tell a fresh frame from a re-render of the one it already has.
"""

import math
import numbers
import threading

EMPTY_FRAME = ()


def to_samples(frame):
    """
    Copy a frame into a tuple of finite floats.

    Raises:
        ValueError: If any value is not a finite real number
    """
    samples = []
    for value in frame:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ValueError(f"Non-numeric sample: {value!r}")
        try:
            sample = float(value)
        except OverflowError as e:
            raise ValueError(f"Sample out of range: {value!r}") from e
        if not math.isfinite(sample):
            raise ValueError(f"Non-finite sample: {value!r}")
        samples.append(sample)
    return tuple(samples)


class FrameSlot:
    """
    Holds the most recent frame.

    Usage:
        slot = FrameSlot()
        slot.publish([0.0, 0.5, 1.0])     # from any thread
        version, frame = slot.latest()   # from the render loop
    """

    def __init__(self):
        self.frame_lock = threading.Lock()
        self.updated = threading.Condition(self.frame_lock)
        self.current_frame = EMPTY_FRAME
        self.version = 0

        # Statistics
        self.frames_published = 0
        self.frames_dropped = 0
        self.last_read_version = 0

    def publish(self, frame):
        """
        Replace the current frame.

        Args:
            frame: Ordered sequence of samples; copied into a tuple of floats

        Returns:
            int: Version number assigned to this frame

        Raises:
            ValueError: If a sample is not a finite number; the slot keeps
                its previous frame
        """
        samples = to_samples(frame)

        with self.frame_lock:
            # The previous frame was never read
            if self.version > self.last_read_version:
                self.frames_dropped += 1
            self.current_frame = samples
            self.version += 1
            self.frames_published += 1
            self.updated.notify_all()
            return self.version

    def latest(self):
        """
        Read the newest frame.

        Returns:
            tuple: (version, frame). Version 0 means nothing published yet.
        """
        with self.frame_lock:
            self.last_read_version = self.version
            return self.version, self.current_frame

    def peek_version(self):
        """Current version without marking the frame as read."""
        with self.frame_lock:
            return self.version

    def wait_for_update(self, after_version, timeout=None):
        """
        Block until a frame newer than `after_version` is published.

        Meant for consumers that have nothing else to do; the render loop
        polls latest() instead.

        Returns:
            bool: True if a newer frame is available, False on timeout
        """
        with self.updated:
            return self.updated.wait_for(
                lambda: self.version > after_version, timeout=timeout)

    def clear(self):
        """Publish an empty frame, which masks the trace."""
        return self.publish(EMPTY_FRAME)

    def get_stats(self):
        with self.frame_lock:
            return {
                'version': self.version,
                'frames_published': self.frames_published,
                'frames_dropped': self.frames_dropped,
            }
