from fastapi import APIRouter, Depends

from app.adapters.llm.factory import create_llm_client
from app.core.rate_limit import enforce_episode_rate_limit
from app.schemas.podcast import (
    ErrorResponse,
    GenerateScriptRequest,
    GenerateScriptResponse,
    TTSRequest,
    TTSResponse,
)
from app.services.podcast_service import PodcastService

router = APIRouter(tags=["Podcast"])

# One Gemini client serves both scripts and speech
_gemini_client = create_llm_client()
_podcast_service = PodcastService(llm=_gemini_client, speech=_gemini_client)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request body"},
    403: {"model": ErrorResponse, "description": "Origin not allowed"},
    429: {"model": ErrorResponse, "description": "Rate limit or provider quota exceeded"},
    500: {"model": ErrorResponse, "description": "Provider failure"},
}


@router.post(
    "/generate-script",
    response_model=GenerateScriptResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(enforce_episode_rate_limit)],
)
async def generate_script(body: GenerateScriptRequest) -> GenerateScriptResponse:
    """Generate a podcast script.

    Builds a producer prompt from the subject, language, speakers and target
    duration, and returns the script written by the model in ``NAME: Text``
    form. Charged against both the global and the episode rate limits.

    Raises:
        QuotaExceededAppError: 429 when the provider quota is exhausted.
        LLMAppError: 500 on any other provider failure.
    """
    return await _podcast_service.generate_script(body)


@router.post(
    "/tts",
    response_model=TTSResponse,
    responses=_ERROR_RESPONSES,
)
async def text_to_speech(body: TTSRequest) -> TTSResponse:
    """Synthesize speech for a text segment with one of the prebuilt voices.

    Returns the provider's audio as a base64 string.
    """
    return await _podcast_service.synthesize_speech(body)
