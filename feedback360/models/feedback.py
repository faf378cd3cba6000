"""Feedback input models.

A *feedback collection* is the set of responses gathered for one review
request.  Each response is a :class:`FeedbackItem`; once ``submitted_at`` is
set the item never changes, which is what lets the content hasher treat
``(id, submitted_at)`` as the item's identity.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CanonicalRelationship(str, Enum):  # noqa: UP042
    """The three reviewer categories used for grouping and weighting.

    Order of declaration is the display order: senior, peer, junior.
    """

    SENIOR = "senior"
    PEER = "peer"
    JUNIOR = "junior"


class FeedbackItem(BaseModel):
    """A single submitted feedback response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Row identifier from the feedback-collection process.  Coerced to str
    # so integer primary keys and UUIDs fingerprint the same way.
    id: str
    # Free-form label chosen by the reviewer, e.g. "senior_colleague" or
    # "Equal Colleague".  Normalized by RelationshipNormalizer.
    relationship_raw: str = Field(default="", alias="relationship")
    strengths: str | None = None
    areas_for_improvement: str | None = None
    submitted_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("relationship_raw", mode="before")
    @classmethod
    def _coerce_relationship(cls, value: Any) -> str:
        return "" if value is None else str(value)
