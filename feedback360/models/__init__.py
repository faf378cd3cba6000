"""feedback360 domain models — re-exports all public model classes.

Submodules by concern:
    - feedback.py  — feedback items and the canonical relationship enum
    - insights.py  — competency scores, relationship insights, aggregates,
                     competency framework and relationship weights
    - analysis.py  — cached analysis records, coordinator phases, results
"""

from __future__ import annotations

from feedback360.models.analysis import (
    AnalysisPhase,
    AnalysisResult,
    AnalysisSource,
    CachedAnalysis,
)
from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import (
    AggregateCompetency,
    AggregateInsight,
    CompetencyDefinition,
    CompetencyScore,
    ConfidenceLevel,
    RelationshipInsight,
    RelationshipWeights,
)

__all__ = [
    "AggregateCompetency",
    "AggregateInsight",
    "AnalysisPhase",
    "AnalysisResult",
    "AnalysisSource",
    "CachedAnalysis",
    "CanonicalRelationship",
    "CompetencyDefinition",
    "CompetencyScore",
    "ConfidenceLevel",
    "FeedbackItem",
    "RelationshipInsight",
    "RelationshipWeights",
]
