"""Integration tests for the Gemini adapter layer (SDK calls mocked)."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.adapters.llm import GeminiClient, create_llm_client
from app.core.config import GeminiSettings
from app.core.errors import ValidationAppError


def _client_with_response(response=None, side_effect=None) -> GeminiClient:
    client = GeminiClient(
        api_key="test-key",
        script_model="gemini-2.5-flash",
        tts_model="gemini-2.5-flash-preview-tts",
    )
    client.client = MagicMock()
    client.client.aio.models.generate_content = AsyncMock(
        return_value=response,
        side_effect=side_effect,
    )
    return client


def _audio_response(*parts) -> SimpleNamespace:
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


class TestGenerateText:
    """Script generation through the text model."""

    @pytest.mark.asyncio
    async def test_returns_stripped_text(self) -> None:
        client = _client_with_response(SimpleNamespace(text="  ALICE: Hello\nBOB: Hi  \n"))

        result = await client.generate_text("Write a script")

        assert result == "ALICE: Hello\nBOB: Hi"
        call_kwargs = client.client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash"
        assert call_kwargs["contents"] == "Write a script"
        assert "config" not in call_kwargs

    @pytest.mark.asyncio
    async def test_missing_text_returns_empty_string(self) -> None:
        client = _client_with_response(SimpleNamespace(text=None))

        assert await client.generate_text("Write a script") == ""

    @pytest.mark.asyncio
    async def test_generation_options_are_not_accepted(self) -> None:
        client = _client_with_response(SimpleNamespace(text="ok"))

        with pytest.raises(TypeError):
            await client.generate_text("Write", temperature=0.3)
        client.client.aio.models.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped_with_original_text(self) -> None:
        client = _client_with_response(side_effect=Exception("429 RESOURCE_EXHAUSTED. quota"))

        with pytest.raises(RuntimeError, match="Gemini API error: 429") as exc:
            await client.generate_text("Write a script")
        assert exc.value.__cause__ is not None


class TestSynthesize:
    """Speech synthesis through the TTS model."""

    @pytest.mark.asyncio
    async def test_returns_base64_of_inline_audio(self) -> None:
        pcm = b"\x00\x01\x02\x03"
        response = _audio_response(
            SimpleNamespace(inline_data=None, text="ignored"),
            SimpleNamespace(inline_data=SimpleNamespace(data=pcm, mime_type="audio/L16;rate=24000")),
        )
        client = _client_with_response(response)

        audio = await client.synthesize("Hello there", voice="Kore")

        assert audio == base64.b64encode(pcm).decode("ascii")

    @pytest.mark.asyncio
    async def test_requests_audio_modality_and_voice(self) -> None:
        response = _audio_response(SimpleNamespace(inline_data=SimpleNamespace(data=b"x")))
        client = _client_with_response(response)

        await client.synthesize("Hello there", voice="Puck")

        call_kwargs = client.client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash-preview-tts"
        config = call_kwargs["config"]
        assert config.response_modalities == ["AUDIO"]
        assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Puck"
        assert call_kwargs["contents"][0].parts[0].text == "Hello there"

    @pytest.mark.asyncio
    async def test_no_candidates_returns_none(self) -> None:
        client = _client_with_response(SimpleNamespace(candidates=None))

        assert await client.synthesize("Hello there", voice="Kore") is None

    @pytest.mark.asyncio
    async def test_no_inline_data_returns_none(self) -> None:
        client = _client_with_response(_audio_response(SimpleNamespace(inline_data=None)))

        assert await client.synthesize("Hello there", voice="Kore") is None

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self) -> None:
        client = _client_with_response(side_effect=ConnectionError("connection reset"))

        with pytest.raises(RuntimeError, match="connection reset"):
            await client.synthesize("Hello there", voice="Kore")


class TestLLMFactory:
    """Test provider client factory."""

    def test_create_llm_client_with_settings(self) -> None:
        cfg = GeminiSettings(
            api_key="test-key",
            script_model="gemini-custom",
            tts_model="gemini-custom-tts",
            timeout_seconds=10.0,
        )

        client = create_llm_client(cfg)

        assert isinstance(client, GeminiClient)
        assert client.script_model == "gemini-custom"
        assert client.tts_model == "gemini-custom-tts"

    def test_create_llm_client_defaults_to_global_settings(self) -> None:
        client = create_llm_client()

        assert isinstance(client, GeminiClient)
        assert client.script_model == "gemini-2.5-flash"

    def test_blank_api_key_raises_error(self) -> None:
        cfg = GeminiSettings(api_key="   ")

        with pytest.raises(ValidationAppError, match="GEMINI_API_KEY") as exc:
            create_llm_client(cfg)
        assert exc.value.code == "gemini_missing_api_key"
