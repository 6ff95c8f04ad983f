"""Tests for status events, fan-out, console output and the tray animator."""

from __future__ import annotations

import threading
import time
from typing import Callable
from unittest.mock import MagicMock

import pytest

from aquavoice.status import (
    TOOLTIPS,
    ConsoleStatus,
    IconAnimator,
    PipelineState,
    StatusEvent,
    StatusFanout,
    TrayStatus,
)


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeTray:
    """Tray collaborator that records every call and flags overlapping renders."""

    def __init__(self) -> None:
        self.frames: list[tuple[str, int]] = []
        self.tooltips: list[str] = []
        self.resets = 0
        self.overlaps = 0
        self._active = 0
        self._lock = threading.Lock()

    def render_frame(self, animation: str, frame: int) -> None:
        with self._lock:
            self._active += 1
            if self._active > 1:
                self.overlaps += 1
        time.sleep(0.001)
        with self._lock:
            self.frames.append((animation, frame))
            self._active -= 1

    def reset_icon(self) -> None:
        self.resets += 1

    def set_tooltip(self, text: str) -> None:
        self.tooltips.append(text)


class TestStatusEvent:
    def test_wire_form(self) -> None:
        assert StatusEvent(PipelineState.RECORDING).wire == "recording"
        assert StatusEvent(PipelineState.ERROR, "No audio recorded").wire == "error:No audio recorded"
        assert StatusEvent(PipelineState.ERROR).wire == "error"
        assert str(StatusEvent(PipelineState.IDLE)) == "idle"

    def test_detail_only_decorates_errors(self) -> None:
        assert StatusEvent(PipelineState.SUCCESS, "hello").wire == "success"


class TestStatusFanout:
    def test_delivers_to_every_listener(self) -> None:
        first, second = MagicMock(), MagicMock()
        fanout = StatusFanout(first)
        fanout.add(second)
        event = StatusEvent(PipelineState.PROCESSING)

        fanout.notify(event)

        first.notify.assert_called_once_with(event)
        second.notify.assert_called_once_with(event)

    def test_failing_listener_does_not_block_others(self) -> None:
        broken, healthy = MagicMock(), MagicMock()
        broken.notify.side_effect = RuntimeError("tray gone")
        fanout = StatusFanout(broken, healthy)

        fanout.notify(StatusEvent(PipelineState.SUCCESS))

        healthy.notify.assert_called_once()


class TestConsoleStatus:
    def test_prints_status_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = ConsoleStatus()
        console.notify(StatusEvent(PipelineState.RECORDING))
        console.notify(StatusEvent(PipelineState.ERROR, "API error: quota"))

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "🎙️ Recording..."
        assert lines[1] == "❌ Error: API error: quota"


class TestIconAnimator:
    def test_advances_and_wraps_frames(self) -> None:
        tray = FakeTray()
        animator = IconAnimator(tray.render_frame, frame_count=3, interval_s=0.001)

        animator.start("recording")
        assert _wait_for(lambda: len(tray.frames) >= 7)
        animator.stop()

        frames = [frame for _, frame in tray.frames]
        assert frames[:7] == [0, 1, 2, 0, 1, 2, 0]
        assert {name for name, _ in tray.frames} == {"recording"}

    def test_stop_joins_loop(self) -> None:
        tray = FakeTray()
        animator = IconAnimator(tray.render_frame, interval_s=0.01)

        animator.start("processing")
        assert _wait_for(lambda: len(tray.frames) >= 2)
        animator.stop()

        assert animator.is_running is False
        assert animator.animation is None
        rendered = len(tray.frames)
        time.sleep(0.05)
        assert len(tray.frames) == rendered

    def test_restart_replaces_previous_loop(self) -> None:
        tray = FakeTray()
        animator = IconAnimator(tray.render_frame, interval_s=0.001)

        animator.start("recording")
        assert _wait_for(lambda: len(tray.frames) >= 3)
        animator.start("processing")
        switched_at = len(tray.frames)
        assert _wait_for(lambda: len(tray.frames) >= switched_at + 3)
        animator.stop()

        assert animator.generation == 2
        names_after_switch = {name for name, _ in tray.frames[switched_at:]}
        assert names_after_switch == {"processing"}
        assert tray.overlaps == 0

    def test_rapid_status_changes_never_overlap(self) -> None:
        tray = FakeTray()
        animator = IconAnimator(tray.render_frame, interval_s=0.001)

        for i in range(20):
            animator.start(("recording", "processing", "transcribing")[i % 3])
            time.sleep(0.002)
        animator.stop()

        assert tray.overlaps == 0
        assert animator.generation == 20
        assert threading.active_count() < 20

    def test_render_failure_ends_loop(self) -> None:
        render = MagicMock(side_effect=RuntimeError("icon"))
        animator = IconAnimator(render, interval_s=0.001)

        animator.start("recording")
        assert _wait_for(lambda: not animator.is_running)
        render.assert_called_once_with("recording", 0)
        animator.stop()

    def test_stop_without_start_is_noop(self) -> None:
        animator = IconAnimator(MagicMock())
        animator.stop()
        assert animator.generation == 0


class TestTrayStatus:
    def test_animated_states_start_animation(self) -> None:
        tray = FakeTray()
        animator = MagicMock()
        status = TrayStatus(tray, animator)

        status.notify(StatusEvent(PipelineState.TRANSCRIBING))

        animator.start.assert_called_once_with("transcribing")
        assert tray.tooltips == ["AquaVoice - Transcribing..."]
        assert tray.resets == 0

    @pytest.mark.parametrize(
        "state", [PipelineState.SUCCESS, PipelineState.ERROR, PipelineState.IDLE]
    )
    def test_terminal_states_stop_animation(self, state: PipelineState) -> None:
        tray = FakeTray()
        animator = MagicMock()
        status = TrayStatus(tray, animator)

        status.notify(StatusEvent(state, "detail"))

        animator.stop.assert_called_once()
        animator.start.assert_not_called()
        assert tray.resets == 1
        assert tray.tooltips == [TOOLTIPS[state]]

    def test_full_session_with_real_animator(self) -> None:
        tray = FakeTray()
        status = TrayStatus(tray, IconAnimator(tray.render_frame, interval_s=0.001))

        for state in (
            PipelineState.RECORDING,
            PipelineState.PROCESSING,
            PipelineState.TRANSCRIBING,
        ):
            status.notify(StatusEvent(state))
            assert _wait_for(lambda: any(name == state.value for name, _ in tray.frames))
        status.notify(StatusEvent(PipelineState.SUCCESS))
        rendered = len(tray.frames)
        status.notify(StatusEvent(PipelineState.IDLE))
        time.sleep(0.02)

        assert len(tray.frames) == rendered
        assert tray.overlaps == 0
        assert tray.tooltips == [
            "AquaVoice - Recording...",
            "AquaVoice - Processing...",
            "AquaVoice - Transcribing...",
            "AquaVoice - Done",
            "AquaVoice - Ready",
        ]
