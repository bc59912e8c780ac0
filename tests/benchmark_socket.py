#!/usr/bin/env python3
"""
Signal Bridge Latency Benchmark

This benchmark measures the overhead of sending sample frames from a
simulated signal producer to the viewer's FrameSlot via the Unix domain
socket bridge.

Expected result: Bridge overhead < 5ms per frame.

This validates that the socket hop won't be a bottleneck for a 60 FPS
render loop.

Usage:
    python tests/benchmark_socket.py
"""

import math
import os
import sys
import tempfile
import time

from tracescope.frame_slot import FrameSlot
from tracescope.signal_bridge import SignalBridge, SignalClient


def generate_sine_frame(frame_num, sample_rate=1000, frequency=5.0):
    """One second of a sine wave, phase-shifted per frame."""
    phase = frame_num * 0.1
    return [math.sin(2 * math.pi * frequency * i / sample_rate + phase)
            for i in range(sample_rate)]


def run_benchmark(num_frames=100, sample_rate=1000):
    """
    Run bridge communication benchmark.
    """
    socket_path = os.path.join(tempfile.mkdtemp(), "tracescope_benchmark.sock")

    print("=" * 70)
    print("Signal Bridge Latency Benchmark")
    print("=" * 70)
    print(f"\nConfiguration:")
    print(f"  Test frames: {num_frames}")
    print(f"  Samples per frame: {sample_rate}")
    print(f"  Socket path: {socket_path}\n")

    slot = FrameSlot()
    bridge = SignalBridge(slot, socket_path=socket_path)
    bridge.setup_socket()

    client = SignalClient(socket_path=socket_path)
    client.connect()
    bridge.accept_connection()
    client.wait_for_init()
    print("✓ Connected\n")

    latencies = []
    for frame in range(num_frames):
        send_time = client.send_frame(generate_sine_frame(frame, sample_rate))
        # Wait for this frame so latencies pair up one-to-one
        if not slot.wait_for_update(frame, timeout=5.0):
            print(f"WARNING: Timeout waiting for frame {frame + 1}")
            break
        latencies.append(time.perf_counter() - send_time)

        if (frame + 1) % 10 == 0:
            print(f"  Sent frame {frame + 1}/{num_frames}")

    client.close()
    bridge.stop()

    stats = bridge.get_stats()
    print(f"✓ Received {stats['frames_received']}/{num_frames} frames "
          f"({stats['receive_errors']} errors)")

    if not latencies:
        print("\nERROR: No latency data collected")
        return None

    latencies.sort()
    avg_latency = sum(latencies) / len(latencies)
    p95_latency = latencies[int(len(latencies) * 0.95)]

    print("\n" + "=" * 70)
    print("BENCHMARK RESULTS")
    print("=" * 70)
    print(f"\nLatency statistics (send → slot):")
    print(f"  Minimum:  {latencies[0]*1000:7.3f}ms")
    print(f"  Average:  {avg_latency*1000:7.3f}ms")
    print(f"  Maximum:  {latencies[-1]*1000:7.3f}ms")
    print(f"  95th percentile: {p95_latency*1000:7.3f}ms")

    if avg_latency < 0.005:
        assessment = "EXCELLENT"
    elif avg_latency < 0.010:
        assessment = "ACCEPTABLE"
    else:
        assessment = "CONCERNING"
    print(f"\nAssessment: {assessment}")
    print("=" * 70)

    return {
        'avg_latency_ms': avg_latency * 1000,
        'max_latency_ms': latencies[-1] * 1000,
        'assessment': assessment,
    }


if __name__ == '__main__':
    result = run_benchmark(num_frames=100)
    sys.exit(0 if result and result['avg_latency_ms'] < 10.0 else 1)
