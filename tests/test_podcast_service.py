"""Unit tests for PodcastService and its helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import LLMAppError, QuotaExceededAppError
from app.schemas.podcast import GenerateScriptRequest, TTSRequest
from app.services.podcast_service import PodcastService, build_script_prompt, is_quota_error


class _FakeAPIError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


@pytest.fixture
def llm() -> MagicMock:
    fake = MagicMock()
    fake.generate_text = AsyncMock(return_value="HOST: Hello")
    return fake


@pytest.fixture
def speech() -> MagicMock:
    fake = MagicMock()
    fake.synthesize = AsyncMock(return_value="AAAA")
    return fake


@pytest.fixture
def service(llm: MagicMock, speech: MagicMock) -> PodcastService:
    return PodcastService(llm=llm, speech=speech)


@pytest.fixture
def script_request() -> GenerateScriptRequest:
    return GenerateScriptRequest.model_validate(
        {
            "prompt": "Urban beekeeping",
            "language": "fr-FR",
            "speakers": [{"name": "Camille"}, {"name": "Hugo"}, {"name": "Lea"}],
            "targetMinutes": 8,
        }
    )


class TestBuildScriptPrompt:
    def test_includes_every_episode_parameter(self) -> None:
        prompt = build_script_prompt("Urban beekeeping", "fr-FR", ["Camille", "Hugo"], 8)

        assert 'in "fr-FR"' in prompt
        assert "Duration: 8 minutes" in prompt
        assert "Topic: Urban beekeeping" in prompt
        assert "Speakers: Camille, Hugo" in prompt
        assert prompt.endswith("Start directly with the script.")


class TestIsQuotaError:
    @pytest.mark.parametrize(
        "exc",
        [
            RuntimeError("Gemini API error: 429 Too Many Requests"),
            RuntimeError("RESOURCE_EXHAUSTED"),
            _FakeAPIError(429, "quota"),
        ],
    )
    def test_detects_quota_errors(self, exc: Exception) -> None:
        assert is_quota_error(exc) is True

    def test_follows_cause_chain(self) -> None:
        try:
            try:
                raise _FakeAPIError(429, "upstream")
            except _FakeAPIError as inner:
                raise RuntimeError("wrapped") from inner
        except RuntimeError as outer:
            assert is_quota_error(outer) is True

    @pytest.mark.parametrize(
        "exc",
        [
            RuntimeError("Gemini API error: 500 INTERNAL"),
            _FakeAPIError(403, "PERMISSION_DENIED"),
            TimeoutError("timed out"),
        ],
    )
    def test_other_errors_are_not_quota(self, exc: Exception) -> None:
        assert is_quota_error(exc) is False


class TestGenerateScript:
    @pytest.mark.asyncio
    async def test_returns_script(
        self, service: PodcastService, llm: MagicMock, script_request: GenerateScriptRequest
    ) -> None:
        result = await service.generate_script(script_request)

        assert result.script == "HOST: Hello"
        sent = llm.generate_text.call_args.args[0]
        assert "Camille, Hugo, Lea" in sent

    @pytest.mark.asyncio
    async def test_quota_error_maps_to_quota_exceeded(
        self, service: PodcastService, llm: MagicMock, script_request: GenerateScriptRequest
    ) -> None:
        llm.generate_text.side_effect = RuntimeError("Gemini API error: 429 RESOURCE_EXHAUSTED")

        with pytest.raises(QuotaExceededAppError) as exc:
            await service.generate_script(script_request)
        assert exc.value.message == "Gemini quota reached."

    @pytest.mark.asyncio
    async def test_other_error_maps_to_llm_error(
        self, service: PodcastService, llm: MagicMock, script_request: GenerateScriptRequest
    ) -> None:
        llm.generate_text.side_effect = RuntimeError("Gemini API error: 500")

        with pytest.raises(LLMAppError) as exc:
            await service.generate_script(script_request)
        assert not isinstance(exc.value, QuotaExceededAppError)
        assert exc.value.code == "script_generation_failed"

    @pytest.mark.asyncio
    async def test_empty_script_is_an_error(
        self, service: PodcastService, llm: MagicMock, script_request: GenerateScriptRequest
    ) -> None:
        llm.generate_text.return_value = ""

        with pytest.raises(LLMAppError, match="Script generation failed"):
            await service.generate_script(script_request)

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(
        self, service: PodcastService, llm: MagicMock, script_request: GenerateScriptRequest
    ) -> None:
        llm.generate_text.side_effect = RuntimeError("boom")

        with pytest.raises(LLMAppError):
            await service.generate_script(script_request)
        assert llm.generate_text.await_count == 1


class TestSynthesizeSpeech:
    @pytest.mark.asyncio
    async def test_returns_audio(self, service: PodcastService, speech: MagicMock) -> None:
        result = await service.synthesize_speech(TTSRequest(text="Bonjour", voice="Zephyr"))

        assert result.audio == "AAAA"
        speech.synthesize.assert_awaited_once_with("Bonjour", voice="Zephyr")

    @pytest.mark.asyncio
    async def test_quota_error(self, service: PodcastService, speech: MagicMock) -> None:
        speech.synthesize.side_effect = _FakeAPIError(429, "quota")

        with pytest.raises(QuotaExceededAppError) as exc:
            await service.synthesize_speech(TTSRequest(text="Bonjour", voice="Zephyr"))
        assert exc.value.message == "TTS quota reached."

    @pytest.mark.asyncio
    async def test_missing_audio_is_an_error(self, service: PodcastService, speech: MagicMock) -> None:
        speech.synthesize.return_value = None

        with pytest.raises(LLMAppError) as exc:
            await service.synthesize_speech(TTSRequest(text="Bonjour", voice="Zephyr"))
        assert exc.value.code == "speech_synthesis_failed"
