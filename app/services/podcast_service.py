"""Podcast service orchestrating script generation and speech synthesis.

Thin layer between the HTTP routes and the provider adapters. It handles:
- Prompt construction for the script model
- Rejection of empty provider output
- Classification of upstream failures (quota exhaustion vs. anything else)

No retries are attempted; the caller decides when to try again.
"""

from __future__ import annotations

import logging
import time
from typing import NoReturn

from app.adapters.llm.base import AbstractLLMClient, AbstractSpeechClient
from app.core.errors import LLMAppError, QuotaExceededAppError
from app.schemas.podcast import (
    GenerateScriptRequest,
    GenerateScriptResponse,
    TTSRequest,
    TTSResponse,
)

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("429", "RESOURCE_EXHAUSTED")


def build_script_prompt(
    prompt: str,
    language: str,
    speaker_names: list[str],
    target_minutes: int,
) -> str:
    """Build the producer prompt sent to the script model.

    Args:
        prompt: Episode subject supplied by the user.
        language: Language of the script.
        speaker_names: Names of the participants, in order.
        target_minutes: Desired duration in minutes.

    Returns:
        Prompt string asking for a strict ``NAME: Text`` script.
    """
    speakers = ", ".join(speaker_names)
    return (
        f'You are a podcast producer. Write a script in "{language}". '
        f"Duration: {target_minutes} minutes. Topic: {prompt}. "
        f"Speakers: {speakers}. Strict format: NAME: Text. "
        "Start directly with the script."
    )


def is_quota_error(exc: BaseException) -> bool:
    """Return True when ``exc`` (or an exception it wraps) reports quota exhaustion.

    The provider signals exhausted quota with HTTP 429 / RESOURCE_EXHAUSTED;
    both the numeric ``code`` attribute of SDK errors and the error text are
    inspected, following the ``__cause__`` chain.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if getattr(current, "code", None) == 429:
            return True
        text = str(current)
        if any(marker in text for marker in _QUOTA_MARKERS):
            return True
        current = current.__cause__
    return False


class PodcastService:
    """Service generating podcast scripts and speech through the provider.

    Attributes:
        llm: Text generation client used for scripts.
        speech: Text-to-speech client.
    """

    def __init__(self, llm: AbstractLLMClient, speech: AbstractSpeechClient) -> None:
        self.llm = llm
        self.speech = speech

    async def generate_script(self, request: GenerateScriptRequest) -> GenerateScriptResponse:
        """Generate an episode script.

        Args:
            request: Validated script request.

        Returns:
            GenerateScriptResponse carrying the script text.

        Raises:
            QuotaExceededAppError: Provider quota exhausted (429).
            LLMAppError: Any other provider failure or an empty script (500).
        """
        prompt = build_script_prompt(
            prompt=request.prompt,
            language=request.language,
            speaker_names=[s.name for s in request.speakers],
            target_minutes=request.target_minutes,
        )

        start = time.perf_counter()
        try:
            script = await self.llm.generate_text(prompt)
        except Exception as exc:
            self._raise_upstream_error(
                exc,
                operation="script",
                quota_message="Gemini quota reached.",
                failure_code="script_generation_failed",
                failure_message="Script generation failed.",
            )

        if not script:
            logger.error("podcast.script_empty", extra={"operation": "script"})
            raise LLMAppError(
                code="script_generation_failed",
                message="Script generation failed.",
                details={"hint": "Provider returned an empty script"},
            )

        logger.info(
            "podcast.script_generated",
            extra={
                "language": request.language,
                "speaker_count": len(request.speakers),
                "target_minutes": request.target_minutes,
                "script_chars": len(script),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return GenerateScriptResponse(script=script)

    async def synthesize_speech(self, request: TTSRequest) -> TTSResponse:
        """Synthesize speech for one text segment.

        Raises:
            QuotaExceededAppError: Provider quota exhausted (429).
            LLMAppError: Any other provider failure or missing audio (500).
        """
        start = time.perf_counter()
        try:
            audio = await self.speech.synthesize(request.text, voice=request.voice)
        except Exception as exc:
            self._raise_upstream_error(
                exc,
                operation="tts",
                quota_message="TTS quota reached.",
                failure_code="speech_synthesis_failed",
                failure_message="Speech synthesis failed.",
            )

        if not audio:
            logger.error("podcast.audio_empty", extra={"operation": "tts", "voice": request.voice})
            raise LLMAppError(
                code="speech_synthesis_failed",
                message="Speech synthesis failed.",
                details={"hint": "Provider returned no audio data"},
            )

        logger.info(
            "podcast.speech_synthesized",
            extra={
                "voice": request.voice,
                "text_chars": len(request.text),
                "audio_b64_chars": len(audio),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return TTSResponse(audio=audio)

    @staticmethod
    def _raise_upstream_error(
        exc: Exception,
        *,
        operation: str,
        quota_message: str,
        failure_code: str,
        failure_message: str,
    ) -> NoReturn:
        if is_quota_error(exc):
            logger.warning(
                "podcast.upstream_quota_exhausted",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise QuotaExceededAppError(
                code="upstream_quota_exceeded",
                message=quota_message,
            ) from exc

        logger.error(
            "podcast.upstream_failed",
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )
        raise LLMAppError(code=failure_code, message=failure_message) from exc
