"""Type definitions for the AquaVoice application."""

from __future__ import annotations

from typing import Literal, TypedDict

StatusName = Literal["idle", "recording", "processing", "transcribing", "success", "error"]


class InlineData(TypedDict):
    """Binary payload embedded in a generateContent request."""

    mime_type: str
    data: str


class InlineDataPart(TypedDict):
    inline_data: InlineData


class TextPart(TypedDict):
    text: str


class Content(TypedDict):
    parts: list[InlineDataPart | TextPart]


class GenerateContentRequest(TypedDict):
    """Body of a generateContent call."""

    contents: list[Content]


class ResponsePart(TypedDict, total=False):
    text: str


class CandidateContent(TypedDict, total=False):
    parts: list[ResponsePart]


class Candidate(TypedDict, total=False):
    content: CandidateContent


class GenerateContentResponse(TypedDict, total=False):
    """Subset of the generateContent response that carries the transcription."""

    candidates: list[Candidate]


class StatusResponse(TypedDict):
    """Current pipeline status returned by /status."""

    status: StatusName
    detail: str | None
    wire: str


class SettingsResponse(TypedDict):
    """Runtime settings returned by /settings."""

    model: str
    api_key_set: bool


class HealthCheck(TypedDict):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
