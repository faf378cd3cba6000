"""Relationship label normalization.

Reviewers pick (or type) how they relate to the person being reviewed:
"Senior Colleague", "equal_colleague", "Peer", "Junior colleague", ...
Everything downstream works with exactly three categories, so every label
is folded into one of them.

Keyword checks run in a fixed order; the first hit wins::

    "senior"           -> senior
    "peer" | "equal"   -> peer
    "junior"           -> junior
    anything else      -> peer
"""

from __future__ import annotations

from feedback360.models.feedback import CanonicalRelationship

# Checked in order.  "senior" must precede the others so that a label such
# as "senior peer" lands in the senior bucket.
_KEYWORD_ORDER: tuple[tuple[tuple[str, ...], CanonicalRelationship], ...] = (
    (("senior",), CanonicalRelationship.SENIOR),
    (("peer", "equal"), CanonicalRelationship.PEER),
    (("junior",), CanonicalRelationship.JUNIOR),
)

_DEFAULT = CanonicalRelationship.PEER


def normalize(raw: str | None) -> CanonicalRelationship:
    """Map a free-form relationship label to a canonical category.

    Never raises: unknown, empty and ``None`` labels fall back to ``peer``.
    """
    if not raw:
        return _DEFAULT
    folded = "".join(ch for ch in str(raw).lower() if not ch.isspace() and ch != "_")
    for keywords, relationship in _KEYWORD_ORDER:
        if any(keyword in folded for keyword in keywords):
            return relationship
    return _DEFAULT
