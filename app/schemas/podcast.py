"""Pydantic schemas for podcast script and speech endpoints.

Wire names are camelCase (``targetMinutes``) to match the browser client;
Python code uses snake_case attributes.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

VoiceName = Literal["Zephyr", "Puck", "Charon", "Kore", "Fenrir"]

ALLOWED_VOICES: tuple[str, ...] = get_args(VoiceName)

PROMPT_MIN_CHARS = 5
PROMPT_MAX_CHARS = 1000
TTS_MAX_CHARS = 2000


class Speaker(BaseModel):
    """A podcast participant; only the name is sent to the model."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Speaker name as it should appear in the script (NAME: Text).",
    )


class GenerateScriptRequest(BaseModel):
    """Request body for ``POST /api/generate-script``."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(
        ...,
        min_length=PROMPT_MIN_CHARS,
        max_length=PROMPT_MAX_CHARS,
        description="Episode subject.",
    )
    language: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Language the script must be written in (e.g., 'English', 'fr-FR').",
    )
    speakers: list[Speaker] = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Participants of the episode.",
    )
    target_minutes: int = Field(
        ...,
        alias="targetMinutes",
        ge=1,
        le=60,
        description="Desired episode duration in minutes.",
    )


class GenerateScriptResponse(BaseModel):
    script: str = Field(..., description="Generated script, one 'NAME: Text' line per turn.")


class TTSRequest(BaseModel):
    """Request body for ``POST /api/tts``."""

    text: str = Field(
        ...,
        min_length=1,
        max_length=TTS_MAX_CHARS,
        description="Text to synthesize.",
    )
    voice: VoiceName = Field(
        ...,
        description="Prebuilt voice name.",
    )


class TTSResponse(BaseModel):
    audio: str = Field(..., description="Base64-encoded audio as returned by the provider.")


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str = Field(..., description="User-facing error message.")
    code: str = Field(..., description="Stable, machine-readable error code.")
    request_id: str | None = Field(default=None, description="Correlation id of the request.")
    details: dict | None = Field(default=None, description="Optional structured context.")
