"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable, Generator

import httpx
import numpy as np
import pytest

from aquavoice.status import StatusEvent

if TYPE_CHECKING:
    from numpy.typing import NDArray


@pytest.fixture
def sample_audio_16k() -> NDArray[np.float32]:
    """Generate 1 second of a 440Hz sine wave at 16kHz."""
    sample_rate = 16000
    duration = 1.0
    t = np.linspace(0, duration, int(sample_rate * duration), dtype=np.float32)
    return (np.sin(2 * np.pi * 440 * t) * 0.5).astype(np.float32)


class RecordingListener:
    """Status listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[StatusEvent] = []

    def notify(self, event: StatusEvent) -> None:
        self.events.append(event)

    @property
    def wires(self) -> list[str]:
        return [event.wire for event in self.events]


@pytest.fixture
def status_listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def gemini_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Build an httpx client whose requests are answered by a handler."""

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Fixture to clean environment variables before/after tests."""
    env_vars = [
        "AQUAVOICE_API_KEY",
        "GEMINI_API_KEY",
        "AQUAVOICE_MODEL",
        "AQUAVOICE_AUDIO_DEVICE",
        "AQUAVOICE_SAMPLE_RATE",
        "AQUAVOICE_COOLDOWN",
        "AQUAVOICE_REQUEST_TIMEOUT",
        "AQUAVOICE_SURFACE_CONFIG_ERRORS",
        "AQUAVOICE_CONTROL_PORT",
        "AQUAVOICE_VERBOSE",
    ]
    original_values = {var: os.environ.get(var) for var in env_vars}

    for var in env_vars:
        os.environ.pop(var, None)

    yield

    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)
