"""Command channel and the recording/transcription state machine."""

from __future__ import annotations

import logging
import queue
import threading
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable

from aquavoice.config import PipelineConfig
from aquavoice.encode import EncodingError, encode_wav
from aquavoice.status import PipelineState, StatusEvent
from aquavoice.transcribe import TranscriptionError

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from aquavoice.buffer import SampleBuffer
    from aquavoice.config import RuntimeSettings
    from aquavoice.output import ClipboardOutput, PasteInjector
    from aquavoice.status import StatusListener
    from aquavoice.transcribe import GeminiTranscriber

logger = logging.getLogger(__name__)

NO_AUDIO_MESSAGE = "No audio recorded"


class Command(str, Enum):
    START = "start"
    STOP = "stop"


class CommandChannel:
    """Bounded FIFO between the hotkey handler and the controller."""

    def __init__(self, maxsize: int = 10) -> None:
        self._queue: queue.Queue[Command | None] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, command: Command) -> None:
        """Enqueue a command, blocking while the channel is full."""
        if self._closed.is_set():
            logger.debug("Dropping %s: channel closed", command.value)
            return
        self._queue.put(command)

    def receive(self) -> Command | None:
        """Block until a command arrives. Returns None once closed."""
        return self._queue.get()

    def close(self, timeout: float = 2.0) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            logger.warning("Command channel full, controller may not see shutdown")


class PipelineController:
    """
    Push-to-talk state machine.

    Handles one command at a time, running each Stop to completion
    (encode, transcribe, clipboard, paste, cooldown) before the next
    command is taken from the channel.
    """

    def __init__(
        self,
        buffer: "SampleBuffer",
        channel: CommandChannel,
        settings: "RuntimeSettings",
        transcriber: "GeminiTranscriber",
        clipboard: "ClipboardOutput",
        paster: "PasteInjector",
        status: "StatusListener",
        sample_rate: int,
        config: PipelineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._buffer = buffer
        self._channel = channel
        self._settings = settings
        self._transcriber = transcriber
        self._clipboard = clipboard
        self._paster = paster
        self._status = status
        self._sample_rate = sample_rate
        self._config = config or PipelineConfig()
        self._sleep = sleep

        self._state = PipelineState.IDLE
        self._worker: threading.Thread | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    def start(self) -> None:
        """Run the command loop on a background thread."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self.run, name="pipeline", daemon=True)
        self._worker.start()

    def join(self, timeout: float | None = None) -> None:
        if self._worker is not None:
            self._worker.join(timeout=timeout)

    def run(self) -> None:
        """Consume commands until the channel is closed."""
        while True:
            command = self._channel.receive()
            if command is None:
                break
            try:
                self.handle(command)
            except Exception as e:
                logger.exception("Unexpected error while handling %s", command.value)
                self._buffer.stop()
                self._fail(str(e) or type(e).__name__)
        logger.info("Pipeline stopped")

    def handle(self, command: Command) -> None:
        if command is Command.START:
            self._start_recording()
        elif command is Command.STOP:
            self._stop_recording()

    def _start_recording(self) -> None:
        if self._state is not PipelineState.IDLE:
            logger.debug("Ignoring start while %s", self._state.value)
            return
        logger.info("Starting recording")
        self._buffer.start()
        self._transition(PipelineState.RECORDING)

    def _stop_recording(self) -> None:
        if self._state is not PipelineState.RECORDING:
            logger.debug("Ignoring stop while %s", self._state.value)
            return
        logger.info("Stopping recording")
        samples = self._buffer.stop()
        self._transition(PipelineState.PROCESSING)
        self._process(samples)

    def _process(self, samples: "NDArray[np.float32]") -> None:
        if samples.size == 0:
            logger.warning(NO_AUDIO_MESSAGE)
            self._fail(NO_AUDIO_MESSAGE)
            return

        logger.info(
            "Recorded %d samples (%.2fs)",
            samples.size,
            samples.size / self._sample_rate,
        )

        try:
            wav_data = encode_wav(samples, self._sample_rate)
        except EncodingError as e:
            logger.error("%s", e)
            self._fail(str(e))
            return

        api_key, model = self._settings.snapshot()
        missing = "API key" if not api_key else "model" if not model else None
        if missing:
            logger.error("No %s set, skipping transcription", missing)
            if self._config.surface_config_errors:
                self._fail(f"No {missing} set")
            else:
                self._transition(PipelineState.IDLE)
            return

        self._transition(PipelineState.TRANSCRIBING)
        try:
            text = self._transcriber.transcribe(api_key, model, wav_data)
        except TranscriptionError as e:
            logger.error("Transcription error: %s", e)
            self._fail(str(e))
            return

        if not text:
            logger.info("Empty transcription, nothing to paste")
            self._transition(PipelineState.IDLE)
            return

        self._deliver(text)

    def _deliver(self, text: str) -> None:
        logger.info("Transcription result: %s", text)
        try:
            self._clipboard.write_text(text)
        except Exception as e:
            logger.error("Clipboard error: %s", e)
            self._transition(PipelineState.IDLE)
            return

        self._sleep(self._config.paste_delay_s)
        self._paster.inject_paste()

        self._transition(PipelineState.SUCCESS)
        self._sleep(self._config.cooldown_s)
        self._transition(PipelineState.IDLE)

    def _fail(self, message: str) -> None:
        self._transition(PipelineState.ERROR, message)
        self._sleep(self._config.cooldown_s)
        self._transition(PipelineState.IDLE)

    def _transition(self, state: PipelineState, detail: str | None = None) -> None:
        self._state = state
        self._status.notify(StatusEvent(state, detail))
