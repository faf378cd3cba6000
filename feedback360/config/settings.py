"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. Environment variables — e.g. OPENAI_API_KEY=sk-abc123 (always wins)
#   2. .env file in the working directory (local development)
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
# below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """feedback360 application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers ===
    # Empty string = "not configured"; main.py falls through to the next one.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, Groq, ...)
    openai_text_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = ""

    # === Insight store ===
    insight_store_backend: str = "sqlite"  # "sqlite" or "memory"
    insight_db_path: str = "data/insights.db"
    memory_store_max_size: int = 1000
    memory_store_ttl_seconds: int = 86400

    # === Cache coordinator ===
    # Deadline for a single generator call; on expiry the attempt counts
    # as a transient failure.
    generator_timeout_seconds: float = Field(default=60.0, gt=0)
    # Extra attempts after a transient failure.  Values above 1 are clamped.
    generator_max_retries: int = Field(default=1, ge=0)
    # False restores the "rerun on request only" behaviour: a mismatching
    # stored analysis is served with stale=True until forced.
    auto_recompute: bool = True
    # Collections with fewer responses are not analysed.
    min_responses: int = Field(default=1, ge=1)

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that are configured, in priority order."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
