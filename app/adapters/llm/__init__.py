"""Generative provider adapter layer - abstracts over the Gemini SDK."""

from app.adapters.llm.base import AbstractLLMClient, AbstractSpeechClient
from app.adapters.llm.factory import create_llm_client
from app.adapters.llm.gemini_client import GeminiClient

__all__ = [
    "AbstractLLMClient",
    "AbstractSpeechClient",
    "GeminiClient",
    "create_llm_client",
]
