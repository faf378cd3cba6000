"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  When
``openai_base_url`` is configured (TogetherAI, Groq, Fireworks, ...) the
client points at that URL instead of the default OpenAI endpoint, so one
adapter covers every OpenAI-compatible service.

JSON mode maps to ``response_format={"type": "json_object"}``, which the
insight generator relies on for well-formed output.
"""

from __future__ import annotations

import openai
import structlog

from feedback360.config.settings import Settings
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Defaults to ``gpt-4o`` for analysis; override with ``OPENAI_TEXT_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        # The SDK timeout is a transport-level guard only; the cache
        # coordinator applies its own deadline around the whole call.
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.generator_timeout_seconds, connect=5.0),
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o"
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

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
        """Generate a text completion via the chat completions API."""
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
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIConnectionError as exc:
            # APITimeoutError is a subclass of APIConnectionError.
            raise ProviderUnavailableError(
                message=f"{self._provider_label} unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the API key without paying for inference."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label
