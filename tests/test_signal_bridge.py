"""
Socket bridge between signal producers and the frame slot.

Uses a real Unix socket under the pytest tmp dir.
"""

import json
import struct

import pytest

from tracescope.config import MSG_FRAME_DATA, MSG_INIT_COMPLETE, MSG_SHUTDOWN
from tracescope.frame_slot import FrameSlot
from tracescope.signal_bridge import (
    FramePayloadError, SignalBridge, SignalClient, decode_frame, encode_message
)


@pytest.fixture
def socket_path(tmp_path):
    return str(tmp_path / "scope.sock")


@pytest.fixture
def connected(socket_path):
    slot = FrameSlot()
    bridge = SignalBridge(slot, socket_path=socket_path)
    bridge.setup_socket()

    client = SignalClient(socket_path=socket_path)
    client.connect(timeout=5.0)
    bridge.accept_connection()

    yield slot, bridge, client

    client.close()
    bridge.stop()


def test_encode_message_layout():
    message = encode_message(MSG_FRAME_DATA, {'samples': [1.0]})
    msg_type, length = struct.unpack('II', message[:8])

    assert msg_type == MSG_FRAME_DATA
    assert json.loads(message[8:8 + length]) == {'samples': [1.0]}


def test_decode_frame():
    assert decode_frame(b'{"samples": [0, 0.5, -1]}') == (0.0, 0.5, -1.0)
    assert decode_frame(b'{"samples": []}') == ()


@pytest.mark.parametrize("payload", [
    b'not json',
    b'[1, 2, 3]',
    b'{"values": [1]}',
    b'{"samples": [1, "two"]}',
    b'{"samples": [true]}',
    b'{"samples": [NaN]}',
    b'{"samples": [Infinity]}',
    b'{"samples": [' + b'9' * 400 + b']}',
    b'\xff\xfe',
])
def test_decode_frame_rejects_bad_payloads(payload):
    with pytest.raises(FramePayloadError):
        decode_frame(payload)


def test_producer_receives_init_complete(connected):
    _, _, client = connected

    assert client.wait_for_init()


def test_frames_land_in_slot(connected):
    slot, bridge, client = connected
    client.send_frame([0.0, 0.5, 1.0])

    assert slot.wait_for_update(0, timeout=5.0)
    assert slot.latest() == (1, (0.0, 0.5, 1.0))
    assert bridge.is_running()


def test_bad_frame_is_dropped_and_stream_continues(connected):
    slot, bridge, client = connected
    client.socket.sendall(encode_message(MSG_FRAME_DATA, {'samples': 'nope'}))
    client.send_frame([0.25, -0.25])

    assert slot.wait_for_update(0, timeout=5.0)
    assert slot.latest()[1] == (0.25, -0.25)
    assert bridge.get_stats()['receive_errors'] == 1
    assert bridge.get_stats()['frames_received'] == 1


def test_producer_shutdown_stops_bridge(connected, socket_path):
    _, bridge, client = connected
    assert client.wait_for_init()

    client.send_shutdown()
    bridge.thread.join(timeout=5.0)

    assert not bridge.is_running()
    assert client.receive_message()[0] in (MSG_SHUTDOWN, None)


def test_stop_notifies_producer(connected):
    _, bridge, client = connected
    assert client.wait_for_init()

    bridge.stop()

    assert client.receive_message()[0] in (MSG_SHUTDOWN, None)
    assert not bridge.is_running()


def test_stop_before_connect_is_safe(socket_path):
    bridge = SignalBridge(FrameSlot(), socket_path=socket_path)
    bridge.stop()
    bridge.setup_socket()
    bridge.stop()
    bridge.stop()

    assert bridge.get_stats()['is_running'] is False


def test_init_message_type(connected):
    _, _, client = connected

    assert client.receive_message()[0] == MSG_INIT_COMPLETE


def test_out_of_range_frame_is_dropped_and_stream_continues(connected):
    slot, bridge, client = connected
    client.send_frame([10 ** 400])
    client.send_frame([0.5, 1.0])

    assert slot.wait_for_update(0, timeout=5.0)
    assert slot.latest()[1] == (0.5, 1.0)
    assert bridge.is_running()
    assert bridge.thread.is_alive()
    assert bridge.get_stats()['receive_errors'] == 1


def test_receive_thread_failure_stops_bridge(connected, monkeypatch):
    slot, bridge, client = connected

    def explode(frame):
        raise RuntimeError("slot gone")

    monkeypatch.setattr(slot, 'publish', explode)
    monkeypatch.setattr('threading.excepthook', lambda args: None)
    client.send_frame([0.0])
    bridge.thread.join(timeout=5.0)

    assert not bridge.thread.is_alive()
    assert not bridge.is_running()
