"""Public interface definitions for every external collaborator.

The analytics core reaches the LLM, the generator and the insight store
only through the abstract base classes in this package.  Concrete adapters
live in ``feedback360/providers/`` (and the LLM-backed generator in
``feedback360/services/``) and are wired together in ``feedback360/main.py``.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementations
    ─────────────────────────────────────────────────────────────
    ILLMProvider         →  OpenAILLMProvider, AnthropicLLMProvider,
                            OllamaLLMProvider
    IInsightGenerator    →  LLMInsightGenerator
    IInsightStore        →  MemoryInsightStore, SQLiteInsightStore
"""

from feedback360.interfaces.insight_generator import IInsightGenerator, InsightRequest
from feedback360.interfaces.insight_store import IInsightStore
from feedback360.interfaces.llm_provider import ILLMProvider

__all__ = [
    "IInsightGenerator",
    "IInsightStore",
    "ILLMProvider",
    "InsightRequest",
]
