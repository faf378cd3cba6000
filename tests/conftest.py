"""Shared pytest fixtures for the feedback360 test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from feedback360.interfaces.insight_generator import IInsightGenerator
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.models.analysis import CachedAnalysis
from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import CompetencyScore, RelationshipInsight
from feedback360.providers.store.memory_store import MemoryInsightStore

_BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_item(
    item_id: str,
    relationship: str = "peer",
    minutes: int = 0,
    strengths: str = "Clear communicator",
    areas: str = "Could delegate more",
) -> FeedbackItem:
    """Build a FeedbackItem submitted *minutes* after a fixed base time."""
    return FeedbackItem(
        id=item_id,
        relationship=relationship,
        strengths=strengths,
        areas_for_improvement=areas,
        submitted_at=_BASE_TIME + timedelta(minutes=minutes),
    )


def make_insights(
    scores: dict[CanonicalRelationship, dict[str, float]] | None = None,
) -> list[RelationshipInsight]:
    """One insight per canonical relationship with the given competency scores."""
    scores = scores or {}
    insights: list[RelationshipInsight] = []
    for relationship in CanonicalRelationship:
        competencies = [
            CompetencyScore(name=name, score=score, evidence_count=3, confidence="medium")
            for name, score in scores.get(relationship, {}).items()
        ]
        insights.append(
            RelationshipInsight(
                relationship=relationship,
                themes=[f"{relationship.value} theme"] if competencies else [],
                competencies=competencies,
                response_count=1 if competencies else 0,
            )
        )
    return insights


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def feedback_set() -> list[FeedbackItem]:
    """Three responses, one per relationship category."""
    return [
        make_item("a", "Senior Colleague", minutes=1),
        make_item("b", "equal_colleague", minutes=2),
        make_item("c", "Junior colleague", minutes=3),
    ]


@pytest.fixture
def sample_insights() -> list[RelationshipInsight]:
    return make_insights(
        {
            CanonicalRelationship.SENIOR: {"Collaboration & Communication": 5},
            CanonicalRelationship.PEER: {"Collaboration & Communication": 3},
        }
    )


@pytest.fixture
def memory_store() -> MemoryInsightStore:
    return MemoryInsightStore(max_size=100, ttl=3600)


@pytest.fixture
def mock_generator(sample_insights: list[RelationshipInsight]) -> MagicMock:
    """Insight generator returning *sample_insights* on every call."""
    generator = MagicMock(spec=IInsightGenerator)
    generator.generate = AsyncMock(return_value=sample_insights)
    generator.get_provider_name.return_value = "mock_generator"
    return generator


@pytest.fixture
def mock_llm() -> MagicMock:
    """LLM provider with an AsyncMock ``complete``; set ``return_value`` per test."""
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="{}")
    llm.get_provider_name.return_value = "mock_llm"
    llm.is_available.return_value = True
    return llm


def cached(
    collection_id: str,
    fingerprint: str,
    insights: list[RelationshipInsight] | None = None,
    **extra: Any,
) -> CachedAnalysis:
    return CachedAnalysis(
        collection_id=collection_id,
        fingerprint=fingerprint,
        insights=insights if insights is not None else make_insights(),
        **extra,
    )
