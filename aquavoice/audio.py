from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from aquavoice.buffer import SampleBuffer
    from aquavoice.config import AudioConfig

logger = logging.getLogger(__name__)

FIRST_CHANNEL_INDEX = 0


class AudioDeviceError(RuntimeError):
    """The input device could not be opened or started."""


@dataclass
class AudioDevice:
    index: int
    name: str
    is_default: bool = False

    def __str__(self) -> str:
        marker = " (DEFAULT)" if self.is_default else ""
        return f"[{self.index}] {self.name}{marker}"


def list_input_devices() -> list[AudioDevice]:
    import sounddevice as sd

    devices = sd.query_devices()
    default_input = sd.default.device[FIRST_CHANNEL_INDEX]

    input_devices = []
    for i, dev in enumerate(devices):
        if dev["max_input_channels"] > 0:  # type: ignore[index]
            input_devices.append(
                AudioDevice(
                    index=i,
                    name=dev["name"],  # type: ignore[index]
                    is_default=(i == default_input),
                )
            )
    return input_devices


def get_device_name(device_id: int | None) -> str:
    import sounddevice as sd

    if device_id is not None:
        info = sd.query_devices(device_id)
    else:
        info = sd.query_devices(kind="input")
    return info["name"]  # type: ignore[index,return-value]


class AudioCapture:
    """
    Continuous microphone stream feeding a :class:`SampleBuffer`.

    The stream is opened once and runs for the lifetime of the process; the
    buffer decides whether a block is kept.
    """

    def __init__(self, buffer: "SampleBuffer", audio_config: "AudioConfig") -> None:
        self._buffer = buffer
        self._audio_config = audio_config
        self._stream: Any = None
        self._sample_rate: int | None = None

    @property
    def sample_rate(self) -> int:
        if self._sample_rate is None:
            raise RuntimeError("Audio stream not open. Call open() first.")
        return self._sample_rate

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self) -> None:
        """Open and start the input stream. Failures are fatal to the caller."""
        if self._stream is not None:
            return

        try:
            import sounddevice as sd

            sample_rate = self._resolve_sample_rate(sd)
            stream = sd.InputStream(
                samplerate=sample_rate,
                channels=self._audio_config.channels,
                dtype="float32",
                blocksize=self._audio_config.block_size_for(sample_rate),
                device=self._audio_config.device_id,
                callback=self._audio_callback,
            )
            stream.start()
        except Exception as e:
            raise AudioDeviceError(f"Failed to open input stream: {e}") from e

        self._stream = stream
        self._sample_rate = sample_rate
        logger.info("Input stream started at %d Hz", sample_rate)

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.warning("Error stopping audio stream: %s", e)
        finally:
            self._stream = None

    def _resolve_sample_rate(self, sd: Any) -> int:
        if self._audio_config.sample_rate is not None:
            return self._audio_config.sample_rate
        info = sd.query_devices(self._audio_config.device_id, kind="input")
        return int(info["default_samplerate"])

    def _audio_callback(
        self,
        indata: "NDArray[np.float32]",
        frames: int,
        time_info: Any,
        status: Any,
    ) -> None:
        if status:
            logger.warning("Audio callback status: %s", status)

        try:
            audio = indata[:, FIRST_CHANNEL_INDEX].astype(np.float32, copy=True)
            self._buffer.append(audio)
        except Exception:
            logger.exception("Error handling audio block")
