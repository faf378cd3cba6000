"""Pydantic request/response schemas for the feedback360 API.

Request schemas end with "Request", response schemas with "Response".
Domain models (``FeedbackItem``, ``RelationshipInsight``, ...) are reused
directly where their shape is already the public contract.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from feedback360.models.analysis import AnalysisPhase, AnalysisSource
from feedback360.models.feedback import FeedbackItem
from feedback360.models.insights import AggregateInsight, RelationshipInsight


class AnalyzeRequest(BaseModel):
    """Current feedback set of a collection, plus who it is about."""

    employee_name: str = ""
    employee_role: str = ""
    feedback: list[FeedbackItem] = Field(default_factory=list)
    force_rerun: bool = False


class AnalyzeResponse(BaseModel):
    """Insights for a collection and where they came from."""

    collection_id: str
    insights: list[RelationshipInsight] = Field(default_factory=list)
    aggregate: AggregateInsight | None = None
    computed_at: datetime | None = None
    stale: bool = False
    source: AnalysisSource
    responses_needed: int = 0


class PhaseResponse(BaseModel):
    """Current coordinator phase of one collection."""

    collection_id: str
    phase: AnalysisPhase


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    llm_provider: str | None = None
    store_provider: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    # True when repeating the same request later can succeed.
    retryable: bool = False
