"""Abstract base class for LLM service providers.

Defines the contract for the large-language-model backend that the insight
generator talks to.  Implementations wrap OpenAI-compatible APIs, Anthropic,
or a local Ollama server; the generator never imports an SDK directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: feedback360/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.
        json_mode:
            Ask the backend to constrain output to a JSON object where the
            API supports it.  Providers without such a switch ignore it.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        feedback360.utils.errors.LLMError
            If the API call fails or returns an empty response.
        feedback360.utils.errors.RateLimitError
            If the provider rejects the call for rate-limit reasons.
        feedback360.utils.errors.ProviderUnavailableError
            If the provider cannot be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Only checks that credentials/URLs are present; does not make a call.
        """

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm the provider works."""
