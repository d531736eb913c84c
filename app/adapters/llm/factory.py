"""Factory for creating provider client instances."""

from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import GeminiSettings, settings
from app.core.errors import ValidationAppError


def create_llm_client(gemini_settings: GeminiSettings | None = None) -> GeminiClient:
    """Instantiate the Gemini client from configuration.

    The returned client implements both AbstractLLMClient (scripts) and
    AbstractSpeechClient (TTS).

    Args:
        gemini_settings: Optional settings override; defaults to global settings.

    Returns:
        GeminiClient: Configured client instance.

    Raises:
        ValidationAppError: If the API key is blank.
    """
    cfg = gemini_settings or settings.gemini

    if not cfg.api_key or not cfg.api_key.strip():
        raise ValidationAppError(
            code="gemini_missing_api_key",
            message="Gemini provider requires the GEMINI_API_KEY environment variable",
        )

    return GeminiClient(
        api_key=cfg.api_key.strip(),
        script_model=cfg.script_model,
        tts_model=cfg.tts_model,
        timeout_seconds=cfg.timeout_seconds,
    )
