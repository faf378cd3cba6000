"""Cache and result models for the analytics cache.

``CachedAnalysis`` is the unit stored per feedback collection: the insights
together with the fingerprint of the feedback set they were computed from.
It is always written whole, never patched, so the fingerprint and the
insights in one record always describe the same feedback set.

``AnalysisResult`` is what ``CacheCoordinator.analyze`` hands back to
callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from feedback360.models.insights import AggregateInsight, RelationshipInsight


class AnalysisPhase(str, Enum):  # noqa: UP042
    """States of the cache coordinator for one collection.

        IDLE → CHECKING_CACHE → SERVING_FRESH → IDLE
        IDLE → CHECKING_CACHE → RECOMPUTING → STORING → SERVING_COMPUTED → IDLE
        RECOMPUTING | STORING → FAILED → IDLE
    """

    IDLE = "IDLE"
    CHECKING_CACHE = "CHECKING_CACHE"
    SERVING_FRESH = "SERVING_FRESH"
    RECOMPUTING = "RECOMPUTING"
    STORING = "STORING"
    SERVING_COMPUTED = "SERVING_COMPUTED"
    FAILED = "FAILED"


class AnalysisSource(str, Enum):  # noqa: UP042
    """Where the insights in an :class:`AnalysisResult` came from."""

    CACHE = "cache"                # stored analysis served
    COMPUTED = "computed"          # freshly generated in this request
    EMPTY = "empty"                # no feedback, nothing to analyse
    INSUFFICIENT = "insufficient"  # below the minimum response count


class CachedAnalysis(BaseModel):
    """The last successful analysis for one feedback collection."""

    model_config = ConfigDict(frozen=True)

    collection_id: str
    fingerprint: str
    insights: list[RelationshipInsight] = Field(default_factory=list)
    computed_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class AnalysisResult(BaseModel):
    """Caller-facing outcome of ``CacheCoordinator.analyze``."""

    model_config = ConfigDict(frozen=True)

    collection_id: str
    insights: list[RelationshipInsight] = Field(default_factory=list)
    # Weighted cross-relationship view; None when there are no insights.
    aggregate: AggregateInsight | None = None
    computed_at: datetime | None = None
    # True only when a stored analysis for a *different* feedback set is
    # served (auto-recompute disabled).
    stale: bool = False
    source: AnalysisSource = AnalysisSource.COMPUTED
    # How many more responses are needed before analysis runs.
    responses_needed: int = 0
