"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI adapter:
    - Messages API instead of chat.completions
    - System prompt is a top-level parameter, not a message
    - Response content is a list of blocks; text blocks are joined
    - No JSON-mode switch: ``json_mode`` appends an instruction instead
"""

from __future__ import annotations

import anthropic
import structlog

from feedback360.config.settings import Settings
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_JSON_ONLY_SUFFIX = "\n\nRespond with a single JSON object and nothing else."


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            timeout=settings.generator_timeout_seconds,
            max_retries=0,
        )
        self._model = settings.anthropic_model or "claude-sonnet-4-20250514"

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
        """Generate a text completion via the Anthropic Messages API."""
        if json_mode:
            system_prompt += _JSON_ONLY_SUFFIX

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"Anthropic rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Send a one-token request to confirm the key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
            return True
        except anthropic.APIError:
            return False

    def get_provider_name(self) -> str:
        return "anthropic"
