"""
Communication bridge between external signal producers and the trace viewer.

Uses a Unix domain socket so the signal source can live in any process:
- Protocol: Binary header + JSON payload
- Background receive thread, never blocks the render loop
- Every frame lands in a FrameSlot (newest wins, nothing queues up)

Protocol Format:
    [4 bytes: message_type][4 bytes: payload_length][N bytes: JSON payload]

Message Types:
    0x01: FRAME_DATA    - Producer → Viewer ({"samples": [float, ...]})
    0x03: INIT_COMPLETE - Viewer → Producer (ready signal)
    0x04: SHUTDOWN      - Bidirectional (cleanup)
"""

import json
import logging
import os
import socket
import struct
import threading
import time

from .config import (
    SOCKET_PATH, SOCKET_TIMEOUT, SOCKET_RECV_TIMEOUT,
    HEADER_FORMAT, HEADER_SIZE,
    MSG_FRAME_DATA, MSG_INIT_COMPLETE, MSG_SHUTDOWN,
    LOG_SOCKET
)
from .frame_slot import to_samples

logger = logging.getLogger(__name__)


class FramePayloadError(ValueError):
    """Raised when a FRAME_DATA payload does not carry a valid frame."""


def encode_message(msg_type, data):
    """Pack a message as header + JSON payload."""
    payload = json.dumps(data).encode('utf-8')
    header = struct.pack(HEADER_FORMAT, msg_type, len(payload))
    return header + payload


def decode_frame(payload):
    """
    Parse a FRAME_DATA payload into a tuple of samples.

    Args:
        payload: Raw JSON bytes

    Returns:
        tuple: Samples as floats

    Raises:
        FramePayloadError: If the payload is not JSON, has no sample list,
            or contains non-numeric or non-finite values
    """
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FramePayloadError(f"Invalid JSON payload: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('samples'), list):
        raise FramePayloadError("Payload has no 'samples' list")

    try:
        return to_samples(data['samples'])
    except ValueError as e:
        raise FramePayloadError(str(e)) from e


class SignalBridge:
    """
    Socket server for receiving frames from a signal producer.

    Runs in background thread to avoid blocking the render loop.

    Usage:
        bridge = SignalBridge(slot)
        bridge.start()  # Blocks until a producer connects
        # ... bridge publishes every received frame into slot ...
        bridge.stop()
    """

    def __init__(self, slot, socket_path=SOCKET_PATH):
        """
        Initialize bridge.

        Args:
            slot: FrameSlot that received frames are published to
            socket_path: Filesystem path of the Unix socket
        """
        self.slot = slot
        self.socket_path = socket_path
        self.socket = None
        self.connection = None
        self.running = False
        self.thread = None

        # Statistics
        self.frames_received = 0
        self.total_receive_time = 0.0
        self.receive_errors = 0

    def setup_socket(self):
        """
        Create the listening socket.

        Producers may connect as soon as this returns; the connection waits
        in the backlog until accept_connection().

        Raises:
            OSError: If socket creation or binding fails
        """
        # Remove old socket file if exists
        try:
            os.unlink(self.socket_path)
            logger.debug("Removed existing socket: %s", self.socket_path)
        except FileNotFoundError:
            pass

        try:
            self.socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            self.socket.bind(self.socket_path)
            self.socket.listen(1)
            self.socket.settimeout(SOCKET_TIMEOUT)
        except OSError:
            logger.exception("Failed to create socket %s", self.socket_path)
            self._close_socket()
            raise

        logger.info("Socket created: %s (timeout %.1fs)",
                    self.socket_path, SOCKET_TIMEOUT)

    def accept_connection(self):
        """
        Wait for a producer, then start the receive loop.

        Raises:
            socket.timeout: If no producer connects within SOCKET_TIMEOUT
        """
        if self.socket is None:
            self.setup_socket()

        logger.info("Waiting for signal producer to connect...")
        try:
            self.connection, _ = self.socket.accept()
        except socket.timeout:
            logger.error("No producer connected within %.1fs", SOCKET_TIMEOUT)
            self.stop()
            raise
        logger.info("Signal producer connected")

        self.connection.settimeout(SOCKET_RECV_TIMEOUT)

        try:
            self._send_message(MSG_INIT_COMPLETE, {})
        except OSError:
            logger.exception("Failed to send INIT_COMPLETE")
            self.stop()
            raise

        # Start receive loop in background thread
        self.running = True
        self.thread = threading.Thread(
            target=self._receive_loop, name="signal-bridge", daemon=True)
        self.thread.start()
        logger.debug("Receive loop started in background thread")

    def start(self):
        """
        Create the socket and wait for a producer to connect.

        This method blocks until a producer connects (or timeout).
        """
        self.setup_socket()
        self.accept_connection()

    def _receive_loop(self):
        """
        Receive and process messages from the producer.

        Runs in background thread. Publishes each valid FRAME_DATA payload
        into the slot; bad payloads are counted and dropped. However the
        loop ends, the bridge is stopped so is_running() reports it.
        """
        try:
            self._receive_messages()
        finally:
            logger.debug("Receive loop thread exiting")
            self.stop()

    def _receive_messages(self):
        while self.running:
            try:
                header = self._recv_exactly(HEADER_SIZE)
                if not header:
                    logger.info("Connection closed by producer (header)")
                    break

                msg_type, payload_len = struct.unpack(HEADER_FORMAT, header)

                if LOG_SOCKET:
                    logger.debug("Received message: type=%#04x, len=%d",
                                 msg_type, payload_len)

                payload = self._recv_exactly(payload_len) if payload_len else b''
                if payload is None:
                    logger.info("Connection closed by producer (payload)")
                    break

                if msg_type == MSG_FRAME_DATA:
                    receive_start = time.perf_counter()
                    try:
                        frame = decode_frame(payload)
                    except FramePayloadError as e:
                        logger.warning("Dropping frame: %s", e)
                        self.receive_errors += 1
                        continue
                    self.frames_received += 1
                    self.slot.publish(frame)
                    self.total_receive_time += time.perf_counter() - receive_start

                elif msg_type == MSG_SHUTDOWN:
                    logger.info("Producer requested shutdown")
                    break

                else:
                    logger.warning("Unknown message type: %#04x", msg_type)

            except socket.timeout:
                # No data for SOCKET_RECV_TIMEOUT seconds, continue waiting
                continue

            except OSError as e:
                if self.running:
                    logger.error("Exception in receive loop: %s", e)
                    self.receive_errors += 1
                break

    def _recv_exactly(self, n):
        """
        Receive exactly n bytes from socket.

        Args:
            n: Number of bytes to receive

        Returns:
            bytes: Received data, or None if connection closed

        Raises:
            socket.timeout: If nothing arrived before the receive timeout

        A timeout after a partial read keeps waiting, so the stream never
        loses its place between header and payload.
        """
        connection = self.connection
        if connection is None:
            return None

        data = b''
        while len(data) < n:
            try:
                chunk = connection.recv(n - len(data))
            except socket.timeout:
                if not data:
                    raise
                if not self.running:
                    return None
                continue
            if not chunk:
                return None  # Connection closed
            data += chunk
        return data

    def _send_message(self, msg_type, data):
        """
        Send message to the producer.

        Raises:
            OSError: If send fails
        """
        self.connection.sendall(encode_message(msg_type, data))
        if LOG_SOCKET:
            logger.debug("Sent message: type=%#04x", msg_type)

    def _close_socket(self):
        if self.socket:
            try:
                self.socket.close()
            except OSError as e:
                logger.debug("Error closing socket: %s", e)
            self.socket = None

    def stop(self):
        """
        Shutdown socket and cleanup resources.

        Safe to call multiple times, and from the receive thread itself.
        """
        if not self.running and not self.connection and not self.socket:
            return  # Already stopped

        self.running = False

        connection, self.connection = self.connection, None
        if connection:
            # Send shutdown message (if connection still alive)
            try:
                connection.sendall(encode_message(MSG_SHUTDOWN, {}))
            except OSError as e:
                logger.debug("Could not send SHUTDOWN: %s", e)
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Peer already gone
            try:
                connection.close()
            except OSError as e:
                logger.debug("Error closing connection: %s", e)

        self._close_socket()

        # Remove socket file
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass

        # Wait for thread to finish (with timeout)
        if (self.thread and self.thread.is_alive()
                and self.thread is not threading.current_thread()):
            self.thread.join(timeout=2.0)

        logger.debug("Bridge stopped: %d frames received, %d errors",
                     self.frames_received, self.receive_errors)

    def is_running(self):
        """
        Check if bridge is actively running.

        Returns:
            bool: True if receiving frames
        """
        return self.running and self.connection is not None

    def get_stats(self):
        """
        Get statistics about bridge performance.

        Returns:
            dict: Statistics including frames received, errors, etc.
        """
        return {
            'frames_received': self.frames_received,
            'total_receive_time': self.total_receive_time,
            'receive_errors': self.receive_errors,
            'is_running': self.is_running(),
        }


class SignalClient:
    """
    Producer side of the bridge.

    Usage:
        client = SignalClient()
        client.connect()
        client.wait_for_init()
        client.send_frame([0.0, 0.5, 1.0])
        client.close()
    """

    def __init__(self, socket_path=SOCKET_PATH):
        self.socket_path = socket_path
        self.socket = None

    def connect(self, timeout=SOCKET_TIMEOUT):
        """Connect to a listening bridge."""
        self.socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.socket.settimeout(timeout)
        self.socket.connect(self.socket_path)

    def _recv_exactly(self, n):
        data = b''
        while len(data) < n:
            chunk = self.socket.recv(n - len(data))
            if not chunk:
                return None
            data += chunk
        return data

    def receive_message(self):
        """
        Read one message from the bridge.

        Returns:
            tuple: (msg_type, data), or (None, None) if the connection closed
        """
        header = self._recv_exactly(HEADER_SIZE)
        if not header:
            return None, None
        msg_type, payload_len = struct.unpack(HEADER_FORMAT, header)
        payload = self._recv_exactly(payload_len) if payload_len else b'{}'
        if payload is None:
            return None, None
        return msg_type, json.loads(payload.decode('utf-8'))

    def wait_for_init(self):
        """
        Block until the bridge sends INIT_COMPLETE.

        Returns:
            bool: True once the bridge is ready, False if it hung up first
        """
        while True:
            msg_type, _ = self.receive_message()
            if msg_type is None or msg_type == MSG_SHUTDOWN:
                return False
            if msg_type == MSG_INIT_COMPLETE:
                return True

    def send_frame(self, samples):
        """
        Send one frame.

        Returns:
            float: perf_counter() timestamp taken just before sending
        """
        message = encode_message(MSG_FRAME_DATA, {'samples': list(samples)})
        send_time = time.perf_counter()
        self.socket.sendall(message)
        return send_time

    def send_shutdown(self):
        self.socket.sendall(encode_message(MSG_SHUTDOWN, {}))

    def close(self):
        """Close connection."""
        if self.socket:
            self.socket.close()
            self.socket = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
