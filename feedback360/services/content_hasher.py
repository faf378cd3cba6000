"""Content fingerprinting for feedback collections.

A fingerprint identifies *which* responses a collection contains, not what
they say.  Each response contributes ``"{id}-{submitted_at}"``; the strings
are sorted so input order never matters, joined with ``|`` and hashed with
SHA-256.

Because ``submitted_at`` is the only time component, an edit to the
``strengths`` / ``areas_for_improvement`` text that keeps the original
timestamp produces the same fingerprint.  Submitted responses are treated
as immutable, so this is the intended trade-off; callers that allow text
edits after submission should bump ``submitted_at`` or call
``CacheCoordinator.invalidate``.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from feedback360.models.feedback import FeedbackItem

_DELIMITER = "|"


def _item_key(item: FeedbackItem) -> str:
    return f"{item.id}-{item.submitted_at.isoformat()}"


def fingerprint(items: Iterable[FeedbackItem]) -> str:
    """Return the order-independent fingerprint of *items*.

    Parameters
    ----------
    items:
        The complete feedback set of one collection.

    Returns
    -------
    str
        64-character hex digest.  The empty set has a fingerprint too
        (the digest of the empty string).
    """
    joined = _DELIMITER.join(sorted(_item_key(item) for item in items))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()
