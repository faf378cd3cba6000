"""Insight models: competency scores, per-relationship insights, aggregates.

Defines Pydantic v2 models for the structured output of the insight
generator and the aggregate view derived from it.  All models are frozen.

The generator speaks camelCase JSON (``evidenceCount``,
``uniquePerspectives``); the models accept both that and the snake_case
field names via ``AliasChoices`` so the same classes parse LLM output and
round-trip through the insight store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from feedback360.models.feedback import CanonicalRelationship


class ConfidenceLevel(str, Enum):  # noqa: UP042
    """How much evidence backs a competency score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Competency framework
# ---------------------------------------------------------------------------
class CompetencyDefinition(BaseModel):
    """A named evaluation dimension with its aspects and 1–5 rubric."""

    model_config = ConfigDict(frozen=True)

    name: str
    aspects: list[str] = Field(default_factory=list)
    # Score level (1..5) -> description of what that level looks like.
    rubric: dict[int, str] = Field(default_factory=dict)


class RelationshipWeights(BaseModel):
    """Per-category weights used by the aggregation engine.

    Weights need not sum to 1; the engine renormalizes over whichever
    categories actually report a competency.
    """

    model_config = ConfigDict(frozen=True)

    senior: float = Field(default=0.40, ge=0.0)
    peer: float = Field(default=0.35, ge=0.0)
    junior: float = Field(default=0.25, ge=0.0)

    def for_relationship(self, relationship: CanonicalRelationship) -> float:
        """Return the weight configured for *relationship*."""
        return float(getattr(self, relationship.value))


# ---------------------------------------------------------------------------
# Generator output
# ---------------------------------------------------------------------------
class CompetencyScore(BaseModel):
    """One competency scored 1–5 for one relationship category."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    score: float = Field(ge=1.0, le=5.0)
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    # Number of distinct responses that explicitly evidence this competency.
    evidence_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("evidence_count", "evidenceCount"),
    )
    description: str = ""
    role_specific_notes: str = Field(
        default="",
        validation_alias=AliasChoices("role_specific_notes", "roleSpecificNotes"),
    )
    evidence_quotes: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("evidence_quotes", "evidenceQuotes"),
    )

    @field_validator("confidence", mode="before")
    @classmethod
    def _lower_confidence(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("description", "role_specific_notes", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RelationshipInsight(BaseModel):
    """Themes and competency scores for one canonical relationship category."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    relationship: CanonicalRelationship
    themes: list[str] = Field(default_factory=list)
    unique_perspectives: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("unique_perspectives", "uniquePerspectives"),
    )
    competencies: list[CompetencyScore] = Field(default_factory=list)
    response_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("response_count", "responseCount"),
    )

    @field_validator("relationship", mode="before")
    @classmethod
    def _lower_relationship(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("themes", "unique_perspectives", "competencies", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


# ---------------------------------------------------------------------------
# Aggregate view (derived, never stored)
# ---------------------------------------------------------------------------
class AggregateCompetency(BaseModel):
    """One competency combined across every category that reported it."""

    model_config = ConfigDict(frozen=True)

    name: str
    weighted_score: float
    raw_average: float
    evidence_count: int = 0
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    reporting_relationships: list[CanonicalRelationship] = Field(default_factory=list)
    evidence_quotes: list[str] = Field(default_factory=list)


class AggregateInsight(BaseModel):
    """Cross-relationship summary built by the aggregation engine."""

    model_config = ConfigDict(frozen=True)

    themes: list[str] = Field(default_factory=list)
    competencies: list[AggregateCompetency] = Field(default_factory=list)
    response_count: int = 0
