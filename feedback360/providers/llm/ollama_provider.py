"""Ollama LLM provider adapter.

Talks to a local Ollama server through its OpenAI-compatible ``/v1``
endpoint, reusing the ``openai`` client.  Lets feedback360 run fully
offline at the cost of weaker analysis from local models.

Setup: install Ollama, ``ollama pull llama3.1``, and set
OLLAMA_BASE_URL=http://localhost:11434
"""

from __future__ import annotations

import httpx
import openai
import structlog

from feedback360.config.settings import Settings
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.utils.errors import LLMError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url.rstrip('/')}/v1",
            # Ollama ignores the key but the SDK requires a non-empty one.
            api_key="ollama",
            timeout=settings.generator_timeout_seconds,
            max_retries=0,
        )
        self._text_model = settings.ollama_model or "llama3.1"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        """Generate a text completion via Ollama's OpenAI-compatible API."""
        request_kwargs: dict = {
            "model": self._text_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request_kwargs)
        except openai.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"Ollama server unreachable at {self._base_url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message="Ollama returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info("ollama_completion", model=self._text_model)
        return content

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the Ollama server is running via its native /api/tags."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url.rstrip('/')}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def get_provider_name(self) -> str:
        return "ollama"
