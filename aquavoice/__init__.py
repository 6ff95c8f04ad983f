"""
AquaVoice - Push-to-Talk Voice Dictation

Hold a key to record, release to transcribe with Gemini and paste the
result into the focused window.
"""

__version__ = "1.0.0"

from aquavoice.app import DictationApp
from aquavoice.config import Config

__all__ = ["DictationApp", "Config", "__version__"]
