"""Unit tests for LLM provider adapters — OpenAI, Anthropic, Ollama."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from feedback360.config.settings import Settings
from feedback360.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

_REQUEST = httpx.Request("POST", "https://llm.test/v1/chat")


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "anthropic_api_key": "test-anthropic",
        "anthropic_model": "",
        "ollama_base_url": "http://localhost:11434",
        "ollama_model": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=100)
    return response


def _rate_limited(module):  # noqa: ANN001, ANN202
    return module.RateLimitError(
        "Too many requests",
        response=httpx.Response(429, request=_REQUEST),
        body=None,
    )


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(settings).get_provider_name() == "openai"

    def test_provider_name_with_base_url(self) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        provider = OpenAILLMProvider(_settings(openai_base_url="https://api.together.xyz/v1"))
        assert provider.get_provider_name() == "openai-compatible"

    def test_is_available_with_key(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(settings).is_available() is True

    def test_is_available_without_key(self) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    def test_client_disables_sdk_retries(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        with patch("feedback360.providers.llm.openai_provider.openai.AsyncOpenAI") as client_cls:
            OpenAILLMProvider(settings)

        kwargs = client_cls.call_args.kwargs
        assert kwargs["max_retries"] == 0
        assert "base_url" not in kwargs

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_chat_response("LLM response text")
        )

        with patch(
            "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAILLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt")

        assert result == "LLM response text"
        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_json_mode_sets_response_format(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("{}"))

        with patch(
            "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            await OpenAILLMProvider(settings).complete("s", "u", json_mode=True)

        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_empty_content_raises_llm_error(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response(None))

        with patch(
            "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(LLMError):
                await OpenAILLMProvider(settings).complete("s", "u")

    @pytest.mark.asyncio
    async def test_error_mapping(self, settings: Settings) -> None:
        import openai

        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        cases = [
            (_rate_limited(openai), RateLimitError),
            (openai.APIConnectionError(request=_REQUEST), ProviderUnavailableError),
            (openai.APIError("Server exploded", request=_REQUEST, body=None), LLMError),
        ]
        for raised, expected in cases:
            mock_client = AsyncMock()
            mock_client.chat.completions.create = AsyncMock(side_effect=raised)
            with patch(
                "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
                return_value=mock_client,
            ):
                provider = OpenAILLMProvider(settings)
                with pytest.raises(expected) as excinfo:
                    await provider.complete("system", "user")
            assert excinfo.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_validate_credentials_success(self, settings: Settings) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(return_value=MagicMock())

        with patch(
            "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OpenAILLMProvider(settings).validate_credentials()

        assert result is True

    @pytest.mark.asyncio
    async def test_validate_credentials_failure(self, settings: Settings) -> None:
        import openai

        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(
            side_effect=openai.APIError("Invalid key", request=_REQUEST, body=None)
        )

        with patch(
            "feedback360.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OpenAILLMProvider(settings).validate_credentials()

        assert result is False

    @pytest.mark.asyncio
    async def test_validate_credentials_without_key(self) -> None:
        from feedback360.providers.llm.openai_provider import OpenAILLMProvider

        provider = OpenAILLMProvider(_settings(openai_api_key=""))
        assert await provider.validate_credentials() is False


# ======================================================================
# Anthropic LLM Provider
# ======================================================================


class TestAnthropicLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    @staticmethod
    def _message(*texts: str) -> MagicMock:
        response = MagicMock()
        response.content = [MagicMock(type="text", text=t) for t in texts]
        response.usage = MagicMock(input_tokens=10, output_tokens=20)
        return response

    def test_provider_name(self, settings: Settings) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(settings).get_provider_name() == "anthropic"

    def test_is_available_without_key(self) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(_settings(anthropic_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self, settings: Settings) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=self._message("part one", "part two"))

        with patch(
            "feedback360.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            result = await AnthropicLLMProvider(settings).complete("system", "user")

        assert result == "part one\npart two"
        kwargs = mock_client.messages.create.await_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["messages"] == [{"role": "user", "content": "user"}]

    @pytest.mark.asyncio
    async def test_json_mode_extends_system_prompt(self, settings: Settings) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=self._message("{}"))

        with patch(
            "feedback360.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            await AnthropicLLMProvider(settings).complete("system", "user", json_mode=True)

        system = mock_client.messages.create.await_args.kwargs["system"]
        assert system.startswith("system")
        assert "JSON" in system

    @pytest.mark.asyncio
    async def test_no_text_blocks_raises_llm_error(self, settings: Settings) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        response = self._message()
        response.content = [MagicMock(type="tool_use")]
        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=response)

        with patch(
            "feedback360.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            with pytest.raises(LLMError):
                await AnthropicLLMProvider(settings).complete("system", "user")

    @pytest.mark.asyncio
    async def test_error_mapping(self, settings: Settings) -> None:
        import anthropic

        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        cases = [
            (_rate_limited(anthropic), RateLimitError),
            (anthropic.APIConnectionError(request=_REQUEST), ProviderUnavailableError),
            (anthropic.APIError("Overloaded", request=_REQUEST, body=None), LLMError),
        ]
        for raised, expected in cases:
            mock_client = AsyncMock()
            mock_client.messages.create = AsyncMock(side_effect=raised)
            with patch(
                "feedback360.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
                return_value=mock_client,
            ):
                provider = AnthropicLLMProvider(settings)
                with pytest.raises(expected):
                    await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_validate_credentials(self, settings: Settings) -> None:
        from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=self._message("pong"))

        with patch(
            "feedback360.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            assert await AnthropicLLMProvider(settings).validate_credentials() is True

        assert mock_client.messages.create.await_args.kwargs["max_tokens"] == 1


# ======================================================================
# Ollama LLM Provider
# ======================================================================


class TestOllamaLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name(self, settings: Settings) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        assert OllamaLLMProvider(settings).get_provider_name() == "ollama"

    def test_client_points_at_v1_endpoint(self) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        with patch("feedback360.providers.llm.ollama_provider.openai.AsyncOpenAI") as client_cls:
            OllamaLLMProvider(_settings(ollama_base_url="http://gpu-box:11434/"))

        assert client_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"

    def test_is_available_without_url(self) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        assert OllamaLLMProvider(_settings(ollama_base_url="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("local"))

        with patch(
            "feedback360.providers.llm.ollama_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OllamaLLMProvider(settings).complete("s", "u")

        assert result == "local"
        assert mock_client.chat.completions.create.await_args.kwargs["model"] == "llama3.1"

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self, settings: Settings) -> None:
        import openai

        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=_REQUEST)
        )

        with patch(
            "feedback360.providers.llm.ollama_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(ProviderUnavailableError):
                await OllamaLLMProvider(settings).complete("s", "u")

    @pytest.mark.asyncio
    async def test_validate_credentials_success(self, settings: Settings) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        mock_response = MagicMock(status_code=200)
        mock_http = AsyncMock()
        mock_http.get = AsyncMock(return_value=mock_response)
        mock_http.__aenter__ = AsyncMock(return_value=mock_http)
        mock_http.__aexit__ = AsyncMock(return_value=False)

        with patch(
            "feedback360.providers.llm.ollama_provider.httpx.AsyncClient",
            return_value=mock_http,
        ):
            result = await OllamaLLMProvider(settings).validate_credentials()

        assert result is True
        mock_http.get.assert_awaited_once_with("http://localhost:11434/api/tags")

    @pytest.mark.asyncio
    async def test_validate_credentials_server_down(self, settings: Settings) -> None:
        from feedback360.providers.llm.ollama_provider import OllamaLLMProvider

        mock_http = AsyncMock()
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        mock_http.__aenter__ = AsyncMock(return_value=mock_http)
        mock_http.__aexit__ = AsyncMock(return_value=False)

        with patch(
            "feedback360.providers.llm.ollama_provider.httpx.AsyncClient",
            return_value=mock_http,
        ):
            result = await OllamaLLMProvider(settings).validate_credentials()

        assert result is False
