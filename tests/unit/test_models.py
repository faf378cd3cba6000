"""Unit tests for the Pydantic domain models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from feedback360.models.analysis import AnalysisResult, AnalysisSource, CachedAnalysis
from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import (
    CompetencyScore,
    ConfidenceLevel,
    RelationshipInsight,
    RelationshipWeights,
)
from tests.conftest import make_insights

_SUBMITTED = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)  # noqa: UP017


# ======================================================================
# FeedbackItem
# ======================================================================


class TestFeedbackItem:
    def test_relationship_alias(self) -> None:
        item = FeedbackItem.model_validate(
            {"id": "r1", "relationship": "Senior Colleague", "submitted_at": _SUBMITTED}
        )
        assert item.relationship_raw == "Senior Colleague"

    def test_integer_id_coerced(self) -> None:
        item = FeedbackItem(id=42, submitted_at=_SUBMITTED)
        assert item.id == "42"

    def test_none_relationship_becomes_empty(self) -> None:
        item = FeedbackItem(id="r1", relationship=None, submitted_at=_SUBMITTED)
        assert item.relationship_raw == ""

    def test_text_fields_optional(self) -> None:
        item = FeedbackItem(id="r1", submitted_at=_SUBMITTED)
        assert item.strengths is None
        assert item.areas_for_improvement is None

    def test_submitted_at_required(self) -> None:
        with pytest.raises(ValidationError):
            FeedbackItem(id="r1")

    def test_frozen(self) -> None:
        item = FeedbackItem(id="r1", submitted_at=_SUBMITTED)
        with pytest.raises(ValidationError):
            item.strengths = "edited"

    def test_canonical_order(self) -> None:
        assert [r.value for r in CanonicalRelationship] == ["senior", "peer", "junior"]


# ======================================================================
# Insights
# ======================================================================


class TestInsightModels:
    def test_camel_case_aliases(self) -> None:
        insight = RelationshipInsight.model_validate(
            {
                "relationship": "Peer",
                "uniquePerspectives": ["Sees the on-call load"],
                "responseCount": 2,
                "competencies": [
                    {
                        "name": "Growth & Development",
                        "score": 4,
                        "confidence": "HIGH",
                        "evidenceCount": 2,
                        "roleSpecificNotes": None,
                        "evidenceQuotes": ["Always learning"],
                    }
                ],
            }
        )
        assert insight.relationship is CanonicalRelationship.PEER
        assert insight.unique_perspectives == ["Sees the on-call load"]
        assert insight.response_count == 2
        score = insight.competencies[0]
        assert score.confidence is ConfidenceLevel.HIGH
        assert score.evidence_count == 2
        assert score.role_specific_notes == ""

    def test_null_lists_become_empty(self) -> None:
        insight = RelationshipInsight.model_validate(
            {"relationship": "junior", "themes": None, "competencies": None}
        )
        assert insight.themes == []
        assert insight.competencies == []

    @pytest.mark.parametrize("score", [0, 5.5])
    def test_score_bounds(self, score: float) -> None:
        with pytest.raises(ValidationError):
            CompetencyScore(name="x", score=score)

    def test_unknown_relationship_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RelationshipInsight(relationship="manager")

    def test_weights_lookup(self) -> None:
        weights = RelationshipWeights(senior=0.5)
        assert weights.for_relationship(CanonicalRelationship.SENIOR) == 0.5
        assert weights.for_relationship(CanonicalRelationship.JUNIOR) == 0.25


# ======================================================================
# Cache records
# ======================================================================


class TestAnalysisModels:
    def test_cached_analysis_json_round_trip(self) -> None:
        original = CachedAnalysis(
            collection_id="c1",
            fingerprint="abc",
            insights=make_insights(
                {CanonicalRelationship.SENIOR: {"Leadership & Influence": 4}}
            ),
        )
        restored = CachedAnalysis.model_validate_json(original.model_dump_json())
        assert restored == original
        assert restored.computed_at.tzinfo is not None

    def test_result_defaults(self) -> None:
        result = AnalysisResult(collection_id="c1")
        assert result.source is AnalysisSource.COMPUTED
        assert result.stale is False
        assert result.aggregate is None
        assert result.responses_needed == 0
