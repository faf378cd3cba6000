"""LLM provider adapters.

Three concrete implementations of ILLMProvider
(feedback360/interfaces/llm_provider.py):
    - OpenAILLMProvider    — gpt-4o (also any OpenAI-compatible API)
    - AnthropicLLMProvider — Claude Sonnet
    - OllamaLLMProvider    — local models via Ollama (llama3.1)

main.py picks the first configured one: Anthropic, then OpenAI, then Ollama.
"""

from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider
from feedback360.providers.llm.ollama_provider import OllamaLLMProvider
from feedback360.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OllamaLLMProvider", "OpenAILLMProvider"]
