"""Clipboard and paste collaborators for transcribed text."""

from __future__ import annotations

import logging
import sys
from typing import Any

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardOutput:
    """Writes text to the system clipboard."""

    def write_text(self, text: str) -> None:
        """Copy text to the clipboard. Raises if the clipboard is unavailable."""
        pyperclip.copy(text)


class PasteInjector:
    """Sends the platform paste shortcut to the focused window."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform
        self._controller: Any = None

    def inject_paste(self) -> None:
        """Press Cmd+V (macOS) or Ctrl+V. Failures are logged, never raised."""
        try:
            from pynput.keyboard import Controller, Key

            if self._controller is None:
                self._controller = Controller()
            modifier = Key.cmd if self._platform == "darwin" else Key.ctrl
            with self._controller.pressed(modifier):
                self._controller.press("v")
                self._controller.release("v")
            logger.info("Paste keystroke sent")
        except Exception as e:
            logger.error("Failed to inject paste: %s", e)
