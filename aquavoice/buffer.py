"""Lock-guarded store for captured audio samples."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


class SampleBuffer:
    """
    Float32 samples captured during the current recording session.

    The capture callback is the only writer and the pipeline controller the
    only reader; both go through one lock and hold it briefly.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chunks: list["NDArray[np.float32]"] = []
        self._size = 0
        self._recording = False

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    def __len__(self) -> int:
        with self._lock:
            return self._size

    def start(self) -> None:
        """Clear previous samples and start accepting chunks."""
        with self._lock:
            self._chunks = []
            self._size = 0
            self._recording = True

    def append(self, chunk: "NDArray[np.float32]") -> bool:
        """Append a chunk if recording. Returns whether it was kept."""
        with self._lock:
            if not self._recording:
                return False
            self._chunks.append(chunk)
            self._size += len(chunk)
            return True

    def stop(self) -> "NDArray[np.float32]":
        """Stop accepting chunks and return a copy of everything captured."""
        with self._lock:
            self._recording = False
            chunks = list(self._chunks)

        if not chunks:
            return np.zeros((0,), dtype=np.float32)
        return np.concatenate(chunks).astype(np.float32, copy=False)
