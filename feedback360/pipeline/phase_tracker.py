"""Per-collection phase tracking with callback-based listener notification.

Records the cache coordinator's current :class:`AnalysisPhase` for each
feedback collection and broadcasts transitions to registered listeners.

# ─── HOW PHASE TRACKING WORKS ─────────────────────────────────────────
#
# Observer pattern:
#
#   CacheCoordinator ──update()──→ PhaseTracker ──callback()──→ listener
#
#   1. The coordinator calls tracker.update(collection_id, phase) on every
#      state-machine transition.
#   2. PhaseTracker stores the phase and calls the listeners registered for
#      that collection (and the global ones registered with "*").
#   3. Reaching IDLE drops the stored entry; get_phase() reports IDLE for
#      any collection it holds nothing for.
#
# Listener errors are caught and logged so a broken listener can't fail
# an analysis.  Sync and async callbacks are both supported.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from feedback360.models.analysis import AnalysisPhase
from feedback360.utils.logging import get_logger

# Listeners registered under this key receive every collection's updates.
ALL_COLLECTIONS = "*"


class PhaseTracker:
    """Tracks and broadcasts coordinator phases via callbacks."""

    def __init__(self) -> None:
        self._phases: dict[str, AnalysisPhase] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(self, collection_id: str, phase: AnalysisPhase) -> None:
        """Record *phase* for *collection_id* and notify listeners."""
        if phase is AnalysisPhase.IDLE:
            self._phases.pop(collection_id, None)
        else:
            self._phases[collection_id] = phase

        self._logger.debug(
            "analysis_phase",
            collection_id=collection_id,
            phase=phase.value,
        )
        await self._notify_listeners(collection_id, phase)

    def get_phase(self, collection_id: str) -> AnalysisPhase:
        """Return the current phase; ``IDLE`` when nothing is in progress."""
        return self._phases.get(collection_id, AnalysisPhase.IDLE)

    def register_listener(self, collection_id: str, callback: Callable) -> None:
        """Register ``callback(collection_id, phase)`` for one collection.

        Use :data:`ALL_COLLECTIONS` to receive updates for every collection.
        """
        listeners = self._listeners.setdefault(collection_id, [])
        if callback not in listeners:
            listeners.append(callback)

    def unregister_listener(self, collection_id: str, callback: Callable) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners.get(collection_id, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._listeners.pop(collection_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, collection_id: str, phase: AnalysisPhase) -> None:
        listeners = [
            *self._listeners.get(collection_id, []),
            *self._listeners.get(ALL_COLLECTIONS, []),
        ]
        for callback in listeners:
            try:
                result = callback(collection_id, phase)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "phase_listener_error",
                    collection_id=collection_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
