"""Status notifications: the controller's outbound projection."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"
    TRANSCRIBING = "transcribing"
    SUCCESS = "success"
    ERROR = "error"


ANIMATED_STATES = frozenset(
    {PipelineState.RECORDING, PipelineState.PROCESSING, PipelineState.TRANSCRIBING}
)

TOOLTIPS = {
    PipelineState.IDLE: "AquaVoice - Ready",
    PipelineState.RECORDING: "AquaVoice - Recording...",
    PipelineState.PROCESSING: "AquaVoice - Processing...",
    PipelineState.TRANSCRIBING: "AquaVoice - Transcribing...",
    PipelineState.SUCCESS: "AquaVoice - Done",
    PipelineState.ERROR: "AquaVoice - Error",
}


@dataclass(frozen=True)
class StatusEvent:
    state: PipelineState
    detail: str | None = None

    @property
    def wire(self) -> str:
        """``error:<detail>`` for errors with a detail, else the state name."""
        if self.state is PipelineState.ERROR and self.detail:
            return f"error:{self.detail}"
        return self.state.value

    def __str__(self) -> str:
        return self.wire


class StatusListener(Protocol):
    def notify(self, event: StatusEvent) -> None: ...


class TrayIcon(Protocol):
    """Visual collaborator owned by the desktop shell."""

    def render_frame(self, animation: str, frame: int) -> None: ...

    def reset_icon(self) -> None: ...

    def set_tooltip(self, text: str) -> None: ...


class StatusFanout:
    """Delivers each event to every listener; a failing listener is logged and skipped."""

    def __init__(self, *listeners: StatusListener) -> None:
        self._listeners = list(listeners)

    def add(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def notify(self, event: StatusEvent) -> None:
        for listener in self._listeners:
            try:
                listener.notify(event)
            except Exception as e:
                logger.error("Status listener %s failed: %s", type(listener).__name__, e)


class ConsoleStatus:
    """Prints one line per status change."""

    _LINES = {
        PipelineState.IDLE: "🟢 Ready",
        PipelineState.RECORDING: "🎙️ Recording...",
        PipelineState.PROCESSING: "⏳ Processing...",
        PipelineState.TRANSCRIBING: "🔄 Transcribing...",
        PipelineState.SUCCESS: "✅ Done",
        PipelineState.ERROR: "❌ Error",
    }

    def notify(self, event: StatusEvent) -> None:
        line = self._LINES[event.state]
        if event.detail:
            line = f"{line}: {event.detail}"
        print(line)


class IconAnimator:
    """
    Runs at most one frame loop at a time.

    Each loop owns a stop event and a generation number. Starting or stopping
    signals the current loop and joins it before returning, so the previous
    loop has finished rendering before a new one begins.
    """

    def __init__(
        self,
        render: Callable[[str, int], None],
        frame_count: int = 8,
        interval_s: float = 0.125,
        grace_s: float = 1.0,
    ) -> None:
        self._render = render
        self._frame_count = frame_count
        self._interval_s = interval_s
        self._grace_s = grace_s
        self._lock = threading.Lock()
        self._generation = 0
        self._animation: str | None = None
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def animation(self) -> str | None:
        return self._animation

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self, animation: str) -> None:
        with self._lock:
            self._stop_current()
            self._generation += 1
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._loop,
                args=(animation, self._generation, stop_event),
                name=f"icon-animation-{self._generation}",
                daemon=True,
            )
            self._animation = animation
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

    def stop(self) -> None:
        with self._lock:
            self._stop_current()

    def _stop_current(self) -> None:
        thread, stop_event = self._thread, self._stop_event
        self._thread = None
        self._stop_event = None
        self._animation = None
        if thread is None or stop_event is None:
            return
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self._grace_s)
            if thread.is_alive():
                logger.warning("Animation loop %s did not stop in time", thread.name)

    def _loop(self, animation: str, generation: int, stop_event: threading.Event) -> None:
        frame = 0
        logger.debug("Animation %s started (generation %d)", animation, generation)
        while not stop_event.is_set():
            try:
                self._render(animation, frame)
            except Exception:
                logger.exception("Failed to render %s frame %d", animation, frame)
                return
            frame = (frame + 1) % self._frame_count
            stop_event.wait(self._interval_s)


class TrayStatus:
    """Projects status events onto a tray icon: animation plus tooltip."""

    def __init__(self, tray: TrayIcon, animator: IconAnimator | None = None) -> None:
        self._tray = tray
        self._animator = animator or IconAnimator(tray.render_frame)

    def notify(self, event: StatusEvent) -> None:
        if event.state in ANIMATED_STATES:
            self._animator.start(event.state.value)
        else:
            self._animator.stop()
            self._tray.reset_icon()
        self._tray.set_tooltip(TOOLTIPS[event.state])
