"""Configuration for the AquaVoice application."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-pro-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_INSTRUCTION = (
    "This is voice input recorded while working at a computer. "
    "Transcribe the spoken audio. "
    "Output only the transcription, with no additional explanation or commentary."
)

_TRUTHY = ("1", "true", "yes")


@dataclass
class AudioConfig:
    sample_rate: int | None = None  # None: use the device's default input rate
    channels: int = 1
    block_ms: int = 30
    device_id: int | None = None

    def block_size_for(self, sample_rate: int) -> int:
        return sample_rate * self.block_ms // 1000


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    instruction: str = DEFAULT_INSTRUCTION
    mime_type: str = "audio/wav"
    timeout_s: float | None = None


@dataclass
class PipelineConfig:
    cooldown_s: float = 2.0
    paste_delay_s: float = 0.1
    queue_size: int = 10
    surface_config_errors: bool = False


@dataclass
class AnimationConfig:
    frame_count: int = 8
    frame_interval_s: float = 0.125


@dataclass
class KeybindConfig:
    # pynput key names, matched against str(key)
    ptt_key: str = "Key.alt_l"
    quit_key: str = "Key.esc"
    quit_modifier: str = "Key.cmd"


@dataclass
class ControlConfig:
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class Config:
    audio: AudioConfig = field(default_factory=AudioConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    keybinds: KeybindConfig = field(default_factory=KeybindConfig)
    control: ControlConfig = field(default_factory=ControlConfig)
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if api_key := os.environ.get("AQUAVOICE_API_KEY") or os.environ.get("GEMINI_API_KEY"):
            config.gemini.api_key = api_key.strip()

        if model := os.environ.get("AQUAVOICE_MODEL"):
            config.gemini.model = model.strip()

        if device := os.environ.get("AQUAVOICE_AUDIO_DEVICE"):
            config.audio.device_id = _parse_number(int, "AQUAVOICE_AUDIO_DEVICE", device)

        if rate := os.environ.get("AQUAVOICE_SAMPLE_RATE"):
            config.audio.sample_rate = _parse_number(int, "AQUAVOICE_SAMPLE_RATE", rate)

        if cooldown := os.environ.get("AQUAVOICE_COOLDOWN"):
            value = _parse_number(float, "AQUAVOICE_COOLDOWN", cooldown, minimum=0)
            if value is not None:
                config.pipeline.cooldown_s = value

        if timeout := os.environ.get("AQUAVOICE_REQUEST_TIMEOUT"):
            config.gemini.timeout_s = _parse_number(float, "AQUAVOICE_REQUEST_TIMEOUT", timeout)

        if surface := os.environ.get("AQUAVOICE_SURFACE_CONFIG_ERRORS"):
            config.pipeline.surface_config_errors = surface.lower() in _TRUTHY

        if port := os.environ.get("AQUAVOICE_CONTROL_PORT"):
            value = _parse_number(int, "AQUAVOICE_CONTROL_PORT", port)
            if value is not None:
                config.control.enabled = True
                config.control.port = value

        if verbose := os.environ.get("AQUAVOICE_VERBOSE"):
            config.verbose = verbose.lower() in _TRUTHY

        return config


def _parse_number(kind: type, name: str, raw: str, minimum: float | None = None):
    try:
        value = kind(raw.strip())
    except ValueError:
        value = None
    if value is None or (minimum is not None and not value >= minimum):
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return None
    return value


class RuntimeSettings:
    """API key and model shared between the controller and the control surface.

    Both values can change while the app runs; the controller reads them once
    per session through :meth:`snapshot`.
    """

    def __init__(self, api_key: str = "", model: str = DEFAULT_MODEL) -> None:
        self._lock = threading.Lock()
        self._api_key = api_key
        self._model = model

    @classmethod
    def from_config(cls, config: GeminiConfig) -> "RuntimeSettings":
        return cls(api_key=config.api_key, model=config.model)

    @property
    def api_key(self) -> str:
        with self._lock:
            return self._api_key

    @property
    def model(self) -> str:
        with self._lock:
            return self._model

    def snapshot(self) -> tuple[str, str]:
        with self._lock:
            return self._api_key, self._model

    def update(self, api_key: str | None = None, model: str | None = None) -> None:
        with self._lock:
            if api_key is not None:
                self._api_key = api_key.strip()
                logger.info("API key updated")
            if model is not None:
                self._model = model.strip()
                logger.info("Model updated: %s", self._model)
