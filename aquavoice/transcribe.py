"""Speech-to-text through the Gemini generateContent endpoint."""

from __future__ import annotations

import base64
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from aquavoice.config import GeminiConfig
    from aquavoice.types import GenerateContentRequest

logger = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
    """The transcription request failed or returned something unusable."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def extract_text(payload: Any) -> str:
    """
    Pull the transcription out of a generateContent response.

    Follows candidates[0].content.parts[0].text. A missing or malformed level
    anywhere along that path means no text was produced, not an error.
    """
    if not isinstance(payload, dict):
        return ""
    candidate = _first(payload.get("candidates"))
    if not isinstance(candidate, dict):
        return ""
    content = candidate.get("content")
    if not isinstance(content, dict):
        return ""
    part = _first(content.get("parts"))
    if not isinstance(part, dict):
        return ""
    text = part.get("text")
    return text.strip() if isinstance(text, str) else ""


class GeminiTranscriber:
    """Sends a WAV recording to a Gemini model and returns the transcription."""

    def __init__(
        self,
        config: "GeminiConfig",
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_s)

    def endpoint(self, model: str) -> str:
        base_url = self._config.base_url.rstrip("/")
        return f"{base_url}/models/{model}:generateContent"

    def build_request(self, audio: bytes) -> "GenerateContentRequest":
        """Audio part first, instruction second."""
        return {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": self._config.mime_type,
                                "data": base64.b64encode(audio).decode("ascii"),
                            }
                        },
                        {"text": self._config.instruction},
                    ]
                }
            ]
        }

    def transcribe(self, api_key: str, model: str, audio: bytes) -> str:
        """
        Transcribe an encoded recording.

        Args:
            api_key: Credential sent as the ``key`` query parameter.
            model: Model identifier used in the endpoint path.
            audio: WAV container bytes.

        Returns:
            Trimmed transcription, or an empty string if none was produced.

        Raises:
            TranscriptionError: On transport failure, a non-success status,
                or a body that is not valid JSON.
        """
        logger.info("Sending %d bytes of audio to %s", len(audio), model)
        t0 = time.time()
        try:
            response = self._client.post(
                self.endpoint(model),
                params={"key": api_key},
                json=self.build_request(audio),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TranscriptionError(f"HTTP request failed: {e}") from e

        if not response.is_success:
            body = response.text
            raise TranscriptionError(
                f"API error: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionError(f"JSON parse error: {e}") from e
        if not isinstance(payload, dict):
            raise TranscriptionError("JSON parse error: expected an object")

        text = extract_text(payload)
        logger.info("Transcription done in %.2fs", time.time() - t0)
        return text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
