import threading

import pytest

from tracescope.frame_slot import EMPTY_FRAME, FrameSlot, to_samples


def test_starts_empty_at_version_zero():
    slot = FrameSlot()

    assert slot.latest() == (0, EMPTY_FRAME)


def test_newest_frame_wins():
    slot = FrameSlot()
    slot.publish([1, 2, 3])
    slot.publish([4.0, 5.0])

    version, frame = slot.latest()

    assert version == 2
    assert frame == (4.0, 5.0)
    assert slot.get_stats()['frames_dropped'] == 1


def test_published_frame_is_copied():
    slot = FrameSlot()
    samples = [0.1, 0.2]
    slot.publish(samples)
    samples.append(0.3)

    assert slot.latest()[1] == (0.1, 0.2)


def test_reading_does_not_change_version():
    slot = FrameSlot()
    slot.publish([0.0, 1.0])

    assert slot.latest() == slot.latest()
    assert slot.peek_version() == 1


def test_read_frames_are_not_counted_as_dropped():
    slot = FrameSlot()
    slot.publish([0.0])
    slot.latest()
    slot.publish([1.0])

    assert slot.get_stats()['frames_dropped'] == 0


def test_clear_publishes_empty_frame():
    slot = FrameSlot()
    slot.publish([0.5, 0.5])

    assert slot.clear() == 2
    assert slot.latest()[1] == EMPTY_FRAME


def test_wait_for_update_sees_publish_from_other_thread():
    slot = FrameSlot()
    threading.Timer(0.05, slot.publish, args=([0.25, 0.75],)).start()

    assert slot.wait_for_update(0, timeout=2.0)
    assert slot.latest()[1] == (0.25, 0.75)


def test_wait_for_update_times_out():
    slot = FrameSlot()

    assert not slot.wait_for_update(0, timeout=0.01)


@pytest.mark.parametrize("frame", [
    [float('nan')],
    [0.0, float('-inf')],
    [10 ** 400],
    ["0.5"],
    [False],
])
def test_invalid_samples_are_rejected_and_slot_unchanged(frame):
    slot = FrameSlot()
    slot.publish([1.0])

    with pytest.raises(ValueError):
        slot.publish(frame)

    assert slot.latest() == (1, (1.0,))
    assert slot.get_stats()['frames_published'] == 1


def test_to_samples_accepts_ints_and_floats():
    assert to_samples([1, -0.5, 2 ** 60]) == (1.0, -0.5, float(2 ** 60))
