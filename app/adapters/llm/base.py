from abc import ABC, abstractmethod


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that produce free-form text."""

	@abstractmethod
	async def generate_text(self, prompt: str) -> str:
		"""Generate text from the model.

		Args:
			prompt: Prompt to send to the model.

		Returns:
			str: Model output; empty string when the model returned no text.

		Raises:
			RuntimeError: If the provider call fails.
		"""
		...


class AbstractSpeechClient(ABC):
	"""Interface for text-to-speech clients."""

	@abstractmethod
	async def synthesize(self, text: str, *, voice: str) -> str | None:
		"""Synthesize speech for ``text`` with a prebuilt ``voice``.

		Returns:
			str | None: Base64-encoded audio, or None when the provider
			returned no audio part.

		Raises:
			RuntimeError: If the provider call fails.
		"""
		...
