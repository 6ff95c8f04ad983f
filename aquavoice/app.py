"""Main AquaVoice application."""

from __future__ import annotations

import logging
import signal
import threading
from typing import TYPE_CHECKING

from aquavoice.audio import AudioCapture, get_device_name, list_input_devices
from aquavoice.buffer import SampleBuffer
from aquavoice.config import Config, RuntimeSettings
from aquavoice.output import ClipboardOutput, PasteInjector
from aquavoice.pipeline import Command, CommandChannel, PipelineController
from aquavoice.server import StatusHub
from aquavoice.status import ConsoleStatus, IconAnimator, StatusFanout, TrayStatus
from aquavoice.transcribe import GeminiTranscriber

if TYPE_CHECKING:
    from aquavoice.config import KeybindConfig
    from aquavoice.server import ControlServer
    from aquavoice.status import TrayIcon

logger = logging.getLogger(__name__)


class PushToTalkKeys:
    """
    Turns raw key events into Start/Stop commands.

    Keys are matched by their pynput name (``str(key)``). Auto-repeat presses
    of a held key produce a single Start.
    """

    def __init__(self, keybinds: "KeybindConfig", channel: CommandChannel) -> None:
        self._keybinds = keybinds
        self._channel = channel
        self._lock = threading.Lock()
        self._ptt_down = False
        self._modifier_down = False

    def on_press(self, key: object) -> None:
        name = str(key)
        if name == self._keybinds.quit_modifier:
            self._modifier_down = True
            return
        if name != self._keybinds.ptt_key:
            return
        with self._lock:
            if self._ptt_down:
                return
            self._ptt_down = True
        self._channel.send(Command.START)

    def on_release(self, key: object) -> bool:
        """Returns True when the quit chord was released."""
        name = str(key)
        if name == self._keybinds.quit_modifier:
            self._modifier_down = False
            return False
        if name == self._keybinds.quit_key and self._modifier_down:
            return True
        if name != self._keybinds.ptt_key:
            return False
        with self._lock:
            if not self._ptt_down:
                return False
            self._ptt_down = False
        self._channel.send(Command.STOP)
        return False


class DictationApp:
    """
    Push-to-Talk Dictation Application.

    Captures audio while a key is held, sends it to Gemini for transcription,
    and pastes the result into the focused window.
    """

    def __init__(self, config: Config | None = None) -> None:
        self._config = config or Config()
        self._settings = RuntimeSettings.from_config(self._config.gemini)

        self._buffer = SampleBuffer()
        self._commands = CommandChannel(maxsize=self._config.pipeline.queue_size)
        self._hub = StatusHub()
        self._status = StatusFanout(ConsoleStatus(), self._hub)
        self._transcriber = GeminiTranscriber(self._config.gemini)
        self._keys = PushToTalkKeys(self._config.keybinds, self._commands)

        # Components (initialized in setup)
        self._audio: AudioCapture | None = None
        self._controller: PipelineController | None = None
        self._control: ControlServer | None = None
        self._animators: list[IconAnimator] = []
        self._shut_down = False

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def commands(self) -> CommandChannel:
        return self._commands

    def attach_tray(self, tray: "TrayIcon") -> TrayStatus:
        """Mirror status changes onto a tray icon owned by the desktop shell."""
        animation = self._config.animation
        animator = IconAnimator(
            tray.render_frame,
            frame_count=animation.frame_count,
            interval_s=animation.frame_interval_s,
        )
        tray_status = TrayStatus(tray, animator)
        self._animators.append(animator)
        self._status.add(tray_status)
        return tray_status

    def setup(self) -> None:
        """Open the microphone and start the pipeline worker."""
        self._print_banner()
        self._print_devices()

        self._audio = AudioCapture(self._buffer, self._config.audio)
        self._audio.open()
        print(f"\n🎚️ Sample rate: {self._audio.sample_rate} Hz")

        self._controller = PipelineController(
            buffer=self._buffer,
            channel=self._commands,
            settings=self._settings,
            transcriber=self._transcriber,
            clipboard=ClipboardOutput(),
            paster=PasteInjector(),
            status=self._status,
            sample_rate=self._audio.sample_rate,
            config=self._config.pipeline,
        )
        self._controller.start()

        if self._config.control.enabled:
            self._start_control_server()

        self._print_instructions()

    def _start_control_server(self) -> None:
        from aquavoice.server import ControlServer, create_app

        app = create_app(self._settings, self._commands, self._hub)
        self._control = ControlServer(app, self._config.control)
        self._control.start()
        print(f"\n🌐 Control API at {self._control.address}")

    def _print_banner(self) -> None:
        print("=" * 60)
        print("🎙️ AQUAVOICE - Push-to-Talk Voice Dictation")
        print("=" * 60)

    def _print_devices(self) -> None:
        print("\n🎤 Available audio input devices:")
        print("-" * 50)
        for device in list_input_devices():
            print(f"  {device}")
        print("-" * 50)

        device_name = get_device_name(self._config.audio.device_id)
        if self._config.audio.device_id is not None:
            print(f"\n✅ Using input device [{self._config.audio.device_id}]: {device_name}")
        else:
            print(f"\n✅ Using DEFAULT input device: {device_name}")

        print(f"🧠 Model: {self._settings.model}")
        if not self._settings.api_key:
            print("⚠️  No API key set (AQUAVOICE_API_KEY); recordings will not be transcribed")

    def _print_instructions(self) -> None:
        keybinds = self._config.keybinds
        print("\n" + "=" * 60)
        print("📌 INSTRUCTIONS:")
        print(f"   • Hold {keybinds.ptt_key} to talk. Release to transcribe.")
        print(f"   • Press {keybinds.quit_modifier}+{keybinds.quit_key} to quit. Ctrl+C also works.")
        print("   • The transcription is copied to the clipboard and pasted.")
        print("=" * 60)
        print("\n🟢 Ready!\n")

    def shutdown(self) -> None:
        """Shutdown the application gracefully."""
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("Shutting down...")

        self._commands.close()
        if self._controller is not None:
            self._controller.join(timeout=2.0)

        if self._control is not None:
            self._control.stop()

        if self._audio is not None:
            self._audio.close()

        for animator in self._animators:
            animator.stop()

        self._transcriber.close()

    def run(self) -> None:
        """Run the application with keyboard listener."""
        from pynput import keyboard

        self.setup()

        def on_press(key: keyboard.Key | keyboard.KeyCode | None) -> None:
            self._keys.on_press(key)

        def on_release(key: keyboard.Key | keyboard.KeyCode | None) -> bool | None:
            if self._keys.on_release(key):
                print("\n👋 Quitting...")
                return False  # Stop listener
            return None

        # Handle Ctrl+C
        def handle_sigint(sig: int, frame: object) -> None:
            self.shutdown()
            raise SystemExit(0)

        signal.signal(signal.SIGINT, handle_sigint)

        with keyboard.Listener(
            on_press=on_press,
            on_release=on_release,
        ) as listener:
            listener.join()

        self.shutdown()
