"""Google Gemini adapter for script generation and text-to-speech."""

import base64
from typing import Any

from google import genai
from google.genai import types

from app.adapters.llm.base import AbstractLLMClient, AbstractSpeechClient


class GeminiClient(AbstractLLMClient, AbstractSpeechClient):
    """Client for the Gemini API using the official ``google-genai`` SDK.

    Uses the async surface (``client.aio``) so upstream calls never block the
    event loop.
    """

    def __init__(
        self,
        api_key: str,
        script_model: str,
        tts_model: str,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            script_model: Model name used by generate_text.
            tts_model: Model name used by synthesize.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )
        self.script_model = script_model
        self.tts_model = tts_model

    async def generate_text(self, prompt: str) -> str:
        """Generate text with the script model and its default generation config.

        Args:
            prompt: Prompt to send to the model.

        Returns:
            str: Stripped model text, empty when the model returned none.

        Raises:
            RuntimeError: If the API call fails. The upstream error text
                (including its status code) is kept in the message.
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.script_model,
                contents=prompt,
            )
            text = response.text
        except Exception as exc:
            raise RuntimeError(f"Gemini API error: {str(exc)}") from exc

        return (text or "").strip()

    async def synthesize(self, text: str, *, voice: str) -> str | None:
        """Synthesize ``text`` with the TTS model and a prebuilt voice.

        Returns:
            str | None: Base64 audio of the first inline-data part, or None.

        Raises:
            RuntimeError: If the API call fails.
        """
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                ),
            ),
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.tts_model,
                contents=[types.Content(role="user", parts=[types.Part(text=text)])],
                config=config,
            )
        except Exception as exc:
            raise RuntimeError(f"Gemini API error: {str(exc)}") from exc

        return _extract_audio(response)


def _extract_audio(response: Any) -> str | None:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline_data = getattr(part, "inline_data", None)
        data = getattr(inline_data, "data", None) if inline_data else None
        if not data:
            continue
        # The SDK decodes inline data to bytes; re-encode for JSON transport
        if isinstance(data, (bytes, bytearray)):
            return base64.b64encode(bytes(data)).decode("ascii")
        return str(data)
    return None
