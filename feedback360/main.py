"""feedback360 FastAPI application entry point.

Wires providers, the insight generator and the cache coordinator together
via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

``build_coordinator`` is also used by the CLI, so the web server and
scripts assemble the exact same object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from feedback360 import __version__
from feedback360.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from feedback360.api.routes import router as api_router
from feedback360.config.competency_framework import framework_from_config, weights_from_config
from feedback360.config.loader import load_config
from feedback360.config.settings import Settings
from feedback360.interfaces.insight_store import IInsightStore
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.pipeline.cache_coordinator import CacheCoordinator
from feedback360.pipeline.phase_tracker import PhaseTracker
from feedback360.providers.llm.anthropic_provider import AnthropicLLMProvider
from feedback360.providers.llm.ollama_provider import OllamaLLMProvider
from feedback360.providers.llm.openai_provider import OpenAILLMProvider
from feedback360.providers.store.memory_store import MemoryInsightStore
from feedback360.providers.store.sqlite_store import SQLiteInsightStore
from feedback360.services.insight_generator import LLMInsightGenerator
from feedback360.utils.errors import ConfigurationError
from feedback360.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Anthropic -> OpenAI -> Ollama (always available).
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_store(app_settings: Settings) -> IInsightStore:
    backend = app_settings.insight_store_backend.strip().lower()
    if backend == "sqlite":
        return SQLiteInsightStore(db_path=app_settings.insight_db_path)
    if backend == "memory":
        return MemoryInsightStore(
            max_size=app_settings.memory_store_max_size,
            ttl=app_settings.memory_store_ttl_seconds,
        )
    raise ConfigurationError(
        message=f"Unknown insight store backend {app_settings.insight_store_backend!r}"
    )


# ---------------------------------------------------------------------------
# DI assembly
# ---------------------------------------------------------------------------


def build_coordinator(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct the LLM provider, store, generator and coordinator.

    Returns a flat dict of named components; the FastAPI lifespan copies
    them onto ``app.state``.  The store is returned uninitialized.
    """
    app_config = app_config if app_config is not None else load_config(
        app_settings.config_path, app_settings
    )
    llm_config = app_config.get("llm", {})

    llm_provider = _build_llm_provider(app_settings)
    insight_store = _build_store(app_settings)
    generator = LLMInsightGenerator(
        llm_provider=llm_provider,
        temperature=float(llm_config.get("temperature", 0.3)),
        max_tokens=int(llm_config.get("max_tokens", 4000)),
    )
    phase_tracker = PhaseTracker()
    coordinator = CacheCoordinator(
        store=insight_store,
        generator=generator,
        competency_framework=framework_from_config(app_config),
        weights=weights_from_config(app_config),
        generator_timeout=app_settings.generator_timeout_seconds,
        max_retries=app_settings.generator_max_retries,
        auto_recompute=app_settings.auto_recompute,
        min_responses=app_settings.min_responses,
        phase_tracker=phase_tracker,
    )
    return {
        "settings": app_settings,
        "llm_provider": llm_provider,
        "insight_store": insight_store,
        "insight_generator": generator,
        "phase_tracker": phase_tracker,
        "coordinator": coordinator,
    }


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Components are built in the lifespan handler, so importing this module
    or constructing the app never touches the network or the database.
    """
    app_settings = app_settings or Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Initialise providers and the store on startup."""
        components = build_coordinator(app_settings)
        for key, value in components.items():
            setattr(application.state, key, value)

        await components["insight_store"].initialize()

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            llm_provider=components["llm_provider"].get_provider_name(),
            store=components["insight_store"].get_provider_name(),
        )
        yield
        _logger.info("app_shutdown")

    application = FastAPI(
        title="feedback360",
        version=__version__,
        lifespan=_lifespan,
    )

    configure_cors(application)
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    application.include_router(api_router)
    return application


def main() -> None:
    """Run the API server with uvicorn."""
    app_settings = Settings()
    uvicorn.run(
        create_app(app_settings),
        host=app_settings.app_host,
        port=app_settings.app_port,
    )


if __name__ == "__main__":
    main()
