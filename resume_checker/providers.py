"""
LLM providers.

One text-generation call (analyze) and one streaming chat call (chat coach).
Groq is the primary provider; Gemini is selectable with LLM_PROVIDER=gemini.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from groq import AsyncGroq

from .config import Settings
from .exceptions import ProviderError

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Interface every LLM backend implements."""

    name: str = "provider"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Single-shot completion for a user prompt."""

    @abstractmethod
    def stream_chat(self, system: str, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """Yield response text deltas for a system-prompted conversation."""


class GroqProvider(Provider):
    """Groq chat-completions provider."""

    name = "groq"

    def __init__(self, api_key: str, model: str, temperature: float = 0.2,
                 max_tokens: int = 3000, timeout: float = 60.0,
                 client: Optional[AsyncGroq] = None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or AsyncGroq(api_key=api_key, timeout=timeout)

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Groq generation error: {e}")
            raise ProviderError(f"Groq - Error generating response: {e}") from e

    async def stream_chat(self, system: str, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        try:
            stream = await self._client.chat.completions.create(
                messages=[{"role": "system", "content": system}, *messages],
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except Exception as e:
            logger.error(f"Groq stream error: {e}")
            raise ProviderError(f"Groq - Error streaming response: {e}") from e


class GeminiProvider(Provider):
    """Google Gemini provider via the google-genai SDK."""

    name = "gemini"

    def __init__(self, api_key: str, model: str, temperature: float = 0.2,
                 max_tokens: int = 3000, client: Any = None):
        from google import genai

        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or genai.Client(api_key=api_key)

    def _config(self, system: Optional[str] = None):
        from google.genai import types

        return types.GenerateContentConfig(
            system_instruction=system,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
        )

    @staticmethod
    def _contents(messages: List[Dict[str, str]]):
        from google.genai import types

        # Gemini names the assistant role "model"
        return [
            types.Content(
                role="model" if m["role"] == "assistant" else "user",
                parts=[types.Part.from_text(text=m["content"])],
            )
            for m in messages
        ]

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=self._config(),
            )
            return response.text or ""
        except Exception as e:
            logger.error(f"Gemini generation error: {e}")
            raise ProviderError(f"Gemini - Error generating response: {e}") from e

    async def stream_chat(self, system: str, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        try:
            stream = await self._client.aio.models.generate_content_stream(
                model=self.model,
                contents=self._contents(messages),
                config=self._config(system),
            )
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except Exception as e:
            logger.error(f"Gemini stream error: {e}")
            raise ProviderError(f"Gemini - Error streaming response: {e}") from e


def build_provider(settings: Settings) -> Optional[Provider]:
    """Create the configured provider, or None when its API key is missing."""
    api_key = settings.api_key_for()
    if not api_key:
        logger.warning(f"⚠️ No API key for LLM provider '{settings.llm_provider}' — analyze/chat disabled")
        return None

    match settings.llm_provider:
        case "gemini":
            provider: Provider = GeminiProvider(
                api_key=api_key,
                model=settings.gemini_model,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )
        case _:
            provider = GroqProvider(
                api_key=api_key,
                model=settings.groq_model,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                timeout=settings.llm_timeout_seconds,
            )
    logger.info(f"✅ LLM provider initialized ({provider.name})")
    return provider
