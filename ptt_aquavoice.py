#!/usr/bin/env python3
"""
AquaVoice - Push-to-Talk Voice Dictation

Hold a key, speak, release: the recording is transcribed by a Gemini model and
pasted into the focused window.

Usage:
    python ptt_aquavoice.py

Environment Variables:
    AQUAVOICE_API_KEY               Gemini API key (GEMINI_API_KEY also works)
    AQUAVOICE_MODEL                 Model id (default: gemini-3-pro-preview)
    AQUAVOICE_AUDIO_DEVICE          Audio input device index
    AQUAVOICE_SAMPLE_RATE           Capture rate in Hz (default: device rate)
    AQUAVOICE_COOLDOWN              Seconds a result stays visible (default: 2)
    AQUAVOICE_REQUEST_TIMEOUT       Transcription request timeout in seconds
    AQUAVOICE_SURFACE_CONFIG_ERRORS Show missing key/model as an error: '1' or 'true'
    AQUAVOICE_CONTROL_PORT          Serve the local control API on this port
    AQUAVOICE_VERBOSE               Enable verbose logging: '1' or 'true'
"""

from aquavoice.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main())
