"""FastAPI routes for the feedback analytics cache.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/collections/{cid}/analyze          POST    Serve or compute insights
# /api/v1/collections/{cid}/analysis         DELETE  Drop the stored analysis
# /api/v1/collections/{cid}/phase            GET     Current coordinator phase
# /api/v1/health                             GET     Health check
#
# Services are resolved from app.state (populated in main.py's lifespan)
# through Annotated[..., Depends(...)] aliases.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response, status

from feedback360 import __version__
from feedback360.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    PhaseResponse,
)
from feedback360.interfaces.insight_store import IInsightStore
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.pipeline.cache_coordinator import CacheCoordinator
from feedback360.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_coordinator(request: Request) -> CacheCoordinator:
    """Return the cache coordinator from application state."""
    return request.app.state.coordinator


CoordinatorDep = Annotated[CacheCoordinator, Depends(_get_coordinator)]


# ---------------------------------------------------------------------------
# Collection endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/collections/{collection_id}/analyze",
    response_model=AnalyzeResponse,
    summary="Serve cached insights or recompute them",
    responses={
        502: {"model": ErrorResponse, "description": "Generator output unusable"},
        503: {"model": ErrorResponse, "description": "Generator temporarily unavailable"},
    },
)
async def analyze_collection(
    collection_id: str,
    body: AnalyzeRequest,
    coordinator: CoordinatorDep,
) -> AnalyzeResponse:
    """Return insights for the submitted feedback set of *collection_id*."""
    result = await coordinator.analyze(
        collection_id,
        body.feedback,
        body.force_rerun,
        employee_name=body.employee_name,
        employee_role=body.employee_role,
    )
    return AnalyzeResponse.model_validate(result.model_dump())


@router.delete(
    "/collections/{collection_id}/analysis",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Invalidate the stored analysis",
)
async def invalidate_collection(
    collection_id: str,
    coordinator: CoordinatorDep,
) -> Response:
    """Delete the stored analysis so the next analyze call recomputes."""
    await coordinator.invalidate(collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/collections/{collection_id}/phase",
    response_model=PhaseResponse,
    summary="Current analysis phase",
)
async def collection_phase(
    collection_id: str,
    coordinator: CoordinatorDep,
) -> PhaseResponse:
    return PhaseResponse(
        collection_id=collection_id,
        phase=coordinator.get_phase(collection_id),
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Report version and which LLM provider / insight store are wired in."""
    llm: ILLMProvider | None = getattr(request.app.state, "llm_provider", None)
    store: IInsightStore | None = getattr(request.app.state, "insight_store", None)

    if llm is not None and llm.is_available() and store is not None:
        health = "healthy"
    elif store is not None:
        health = "degraded"
    else:
        health = "unhealthy"

    return HealthResponse(
        status=health,
        version=__version__,
        llm_provider=llm.get_provider_name() if llm is not None else None,
        store_provider=store.get_provider_name() if store is not None else None,
    )
