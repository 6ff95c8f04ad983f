"""Tests for the sample buffer."""

from __future__ import annotations

import threading
import time

import numpy as np

from aquavoice.buffer import SampleBuffer


def _chunk(value: float, size: int = 160) -> np.ndarray:
    return np.full(size, value, dtype=np.float32)


class TestSampleBuffer:
    def test_starts_idle_and_empty(self) -> None:
        buffer = SampleBuffer()
        assert buffer.is_recording is False
        assert len(buffer) == 0

    def test_drops_chunks_while_not_recording(self) -> None:
        buffer = SampleBuffer()
        assert buffer.append(_chunk(0.1)) is False
        assert len(buffer) == 0

    def test_keeps_chunks_in_capture_order(self) -> None:
        buffer = SampleBuffer()
        buffer.start()
        for value in (0.1, 0.2, 0.3):
            assert buffer.append(_chunk(value, size=4)) is True

        samples = buffer.stop()
        assert samples.dtype == np.float32
        np.testing.assert_allclose(
            samples, [0.1] * 4 + [0.2] * 4 + [0.3] * 4, rtol=1e-6
        )

    def test_stop_disarms(self) -> None:
        buffer = SampleBuffer()
        buffer.start()
        buffer.stop()
        assert buffer.is_recording is False
        assert buffer.append(_chunk(0.5)) is False

    def test_start_clears_previous_session(self) -> None:
        buffer = SampleBuffer()
        buffer.start()
        buffer.append(_chunk(0.9, size=100))
        buffer.stop()

        buffer.start()
        buffer.append(_chunk(0.1, size=10))
        samples = buffer.stop()

        assert len(samples) == 10
        assert np.all(samples == np.float32(0.1))

    def test_stop_without_samples_returns_empty(self) -> None:
        buffer = SampleBuffer()
        buffer.start()
        samples = buffer.stop()
        assert samples.size == 0
        assert samples.dtype == np.float32

    def test_snapshot_is_independent_copy(self) -> None:
        buffer = SampleBuffer()
        buffer.start()
        chunk = _chunk(0.25, size=8)
        buffer.append(chunk)
        samples = buffer.stop()

        samples[:] = 0.0
        buffer.start()
        buffer.append(chunk)
        assert np.all(buffer.stop() == np.float32(0.25))

    def test_concurrent_writer_and_reader(self) -> None:
        """Only samples appended between start and stop are returned."""
        buffer = SampleBuffer()
        stop_writer = threading.Event()

        def writer() -> None:
            while not stop_writer.is_set():
                buffer.append(_chunk(0.5, size=32))

        buffer.start()
        thread = threading.Thread(target=writer)
        thread.start()
        try:
            while len(buffer) < 32 * 10:
                pass
            samples = buffer.stop()
            time.sleep(0.01)
        finally:
            stop_writer.set()
            thread.join()

        assert len(samples) % 32 == 0
        assert len(samples) >= 32 * 10
        # nothing is kept after stop
        assert len(buffer) == len(samples)
