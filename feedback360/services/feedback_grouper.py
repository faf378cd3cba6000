"""Partition a feedback set by canonical relationship."""

from __future__ import annotations

from collections.abc import Iterable

from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.services.relationship_normalizer import normalize


def group(
    items: Iterable[FeedbackItem],
) -> dict[CanonicalRelationship, list[FeedbackItem]]:
    """Bucket *items* by :func:`normalize` of their relationship label.

    The result always holds all three canonical keys, in display order
    (senior, peer, junior), even for an empty input.  Items keep their
    input order within a bucket.
    """
    grouped: dict[CanonicalRelationship, list[FeedbackItem]] = {
        relationship: [] for relationship in CanonicalRelationship
    }
    for item in items:
        grouped[normalize(item.relationship_raw)].append(item)
    return grouped
