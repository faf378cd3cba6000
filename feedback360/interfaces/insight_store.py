"""Abstract base class for insight store providers.

Defines the contract for persisting the last computed analysis of each
feedback collection.  Implementations may use an in-memory cache, SQLite,
PostgreSQL or any other backend that can replace one record atomically.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from feedback360.models.analysis import CachedAnalysis


class IInsightStore(ABC):
    """Contract for row-keyed cached-analysis persistence.

    All operations are async to allow network-backed stores.  ``put`` must
    replace the record for a collection atomically: a concurrent ``get``
    returns either the old record or the new one, never a mix.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices or other backing structures.  Called at startup."""

    @abstractmethod
    async def get(self, collection_id: str) -> CachedAnalysis | None:
        """Return the stored analysis for *collection_id*, or ``None``.

        Raises
        ------
        feedback360.utils.errors.PersistenceReadError
            If the backend fails or the stored record cannot be decoded.
        """

    @abstractmethod
    async def put(self, collection_id: str, analysis: CachedAnalysis) -> None:
        """Replace the stored analysis for *collection_id* with *analysis*.

        This is a full replace, never a merge.

        Raises
        ------
        feedback360.utils.errors.PersistenceWriteError
            If the backend rejects the write.
        """

    @abstractmethod
    async def delete(self, collection_id: str) -> None:
        """Remove the stored analysis.  No-op if none exists.

        Raises
        ------
        feedback360.utils.errors.PersistenceWriteError
            If the backend rejects the delete.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
