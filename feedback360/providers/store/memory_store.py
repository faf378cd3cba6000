"""In-memory insight store using cachetools.TTLCache.

Suitable for development, tests and single-process deployments.  Each
``put`` stores a new frozen :class:`CachedAnalysis` under the collection
key in one dict assignment, so readers see either the previous record or
the new one.  Expiry or LRU eviction only ever causes a recompute.
"""

from __future__ import annotations

import structlog
from cachetools import TTLCache

from feedback360.interfaces.insight_store import IInsightStore
from feedback360.models.analysis import CachedAnalysis

logger = structlog.get_logger(logger_name=__name__)


class MemoryInsightStore(IInsightStore):
    """In-memory TTL store backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    max_size:
        Maximum number of collections kept before the least-recently-used
        entry is evicted.
    ttl:
        Seconds an analysis stays cached.
    """

    def __init__(self, max_size: int = 1000, ttl: int = 86400) -> None:
        self._cache: TTLCache[str, CachedAnalysis] = TTLCache(maxsize=max_size, ttl=ttl)

    # ------------------------------------------------------------------
    # IInsightStore implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Nothing to create for an in-memory store."""
        logger.info("memory_insight_store_initialized", max_size=self._cache.maxsize)

    async def get(self, collection_id: str) -> CachedAnalysis | None:
        """Return the cached analysis, or ``None`` if missing/expired."""
        analysis = self._cache.get(collection_id)
        logger.debug(
            "insight_store_get",
            collection_id=collection_id,
            hit=analysis is not None,
        )
        return analysis

    async def put(self, collection_id: str, analysis: CachedAnalysis) -> None:
        """Replace the analysis for *collection_id* in a single assignment."""
        self._cache[collection_id] = analysis
        logger.debug(
            "insight_store_put",
            collection_id=collection_id,
            fingerprint=analysis.fingerprint[:12],
        )

    async def delete(self, collection_id: str) -> None:
        """Remove the analysis for *collection_id* (no-op if absent)."""
        self._cache.pop(collection_id, None)
        logger.debug("insight_store_delete", collection_id=collection_id)

    def get_provider_name(self) -> str:
        return "memory_insight_store"
