"""Cache coordinator for feedback analytics.

Decides whether a stored analysis is still valid for the current feedback
set, and if not, runs the insight generator exactly once per staleness
event and stores the result.

ARCHITECTURE NOTE:
    State machine per collection (see :class:`AnalysisPhase`)::

        IDLE → CHECKING_CACHE → SERVING_FRESH → IDLE
        IDLE → CHECKING_CACHE → RECOMPUTING → STORING → SERVING_COMPUTED → IDLE
        RECOMPUTING | STORING → FAILED → IDLE

    Concurrency: every recomputation runs as a *flight*, an asyncio task
    registered under the pair (collection id, fingerprint).

        - A caller whose fingerprint matches a running flight of the same
          collection awaits that flight instead of starting another
          generator call, even while flights for other feedback sets of
          the collection are queued.
        - A caller with no matching flight, or a forced rerun facing an
          unforced flight, starts its own flight.  Flights for one
          collection are serialized by a per-id ``KeyedLock``; once a queued
          flight holds the lock it re-reads the store, so a result written
          by the previous flight is reused when the fingerprints agree.
        - Callers await flights through ``asyncio.shield``: cancelling a
          caller leaves the flight running and the store is still updated.

    Error translation happens here and nowhere else.  Whatever the
    generator raises leaves as ``TransientGeneratorError`` (retryable) or
    ``MalformedGeneratorResponse`` (not retryable); store failures never
    fail a request that has a result to return.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from feedback360.interfaces.insight_generator import IInsightGenerator, InsightRequest
from feedback360.interfaces.insight_store import IInsightStore
from feedback360.models.analysis import (
    AnalysisPhase,
    AnalysisResult,
    AnalysisSource,
    CachedAnalysis,
)
from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import (
    CompetencyDefinition,
    RelationshipInsight,
    RelationshipWeights,
)
from feedback360.pipeline.phase_tracker import PhaseTracker
from feedback360.services.aggregation_engine import build_aggregate_insight
from feedback360.services.content_hasher import fingerprint
from feedback360.services.feedback_grouper import group
from feedback360.utils.concurrency import KeyedLock
from feedback360.utils.errors import (
    InsightGenerationError,
    InsightParseError,
    LLMError,
    MalformedGeneratorResponse,
    PersistenceReadError,
    PersistenceWriteError,
    ProviderUnavailableError,
    RateLimitError,
    TransientGeneratorError,
)
from feedback360.utils.logging import get_logger

# Provider-level failures that are worth one more attempt.
_TRANSIENT_ERRORS = (LLMError, RateLimitError, ProviderUnavailableError)

# Never more than one extra attempt, whatever the configuration says.
_MAX_RETRIES_CAP = 1


@dataclass(frozen=True)
class _Flight:
    """An in-flight recomputation for one collection."""

    fingerprint: str
    task: asyncio.Task
    forced: bool = False


class CacheCoordinator:
    """Serve fresh insights from the store or recompute them exactly once.

    Parameters
    ----------
    store:
        Where the last successful analysis per collection lives.
    generator:
        Produces relationship insights from grouped feedback.
    competency_framework:
        Competencies passed to the generator on every call.
    weights:
        Relationship weights used for the aggregate view.
    generator_timeout:
        Deadline in seconds for one generator attempt.
    max_retries:
        Extra attempts after a transient failure (capped at 1).
    auto_recompute:
        When ``False`` a stored analysis for a different feedback set is
        served with ``stale=True`` until a forced rerun.
    min_responses:
        Collections smaller than this are reported as insufficient and not
        analysed.
    phase_tracker:
        Receives every state transition; a private tracker is created when
        omitted.
    """

    def __init__(
        self,
        store: IInsightStore,
        generator: IInsightGenerator,
        competency_framework: Sequence[CompetencyDefinition] = (),
        weights: RelationshipWeights | None = None,
        generator_timeout: float = 60.0,
        max_retries: int = 1,
        auto_recompute: bool = True,
        min_responses: int = 1,
        phase_tracker: PhaseTracker | None = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._framework = list(competency_framework)
        self._weights = weights or RelationshipWeights()
        self._generator_timeout = generator_timeout
        self._max_retries = max(0, min(max_retries, _MAX_RETRIES_CAP))
        self._auto_recompute = auto_recompute
        self._min_responses = max(1, min_responses)
        self._tracker = phase_tracker or PhaseTracker()
        self._locks = KeyedLock()
        # One entry per (collection id, fingerprint) being computed.
        self._flights: dict[tuple[str, str], _Flight] = {}
        # Strong references so flights abandoned by every caller still finish.
        self._tasks: set[asyncio.Task] = set()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze(
        self,
        collection_id: str,
        feedback: Sequence[FeedbackItem],
        force_rerun: bool = False,
        *,
        employee_name: str = "",
        employee_role: str = "",
    ) -> AnalysisResult:
        """Return insights for *feedback*, recomputing only when needed.

        Parameters
        ----------
        collection_id:
            Identifier of the feedback collection.
        feedback:
            The collection's complete current feedback set.
        force_rerun:
            Skip the cache and always run the generator.
        employee_name, employee_role:
            Passed through to the generator prompt.

        Raises
        ------
        TransientGeneratorError
            The generator timed out or its service failed; retrying later
            can succeed.  The stored analysis is untouched.
        MalformedGeneratorResponse
            The generator answered with unusable output.  The stored
            analysis is untouched.
        """
        if not feedback:
            self._logger.info("analysis_skipped_empty", collection_id=collection_id)
            return AnalysisResult(collection_id=collection_id, source=AnalysisSource.EMPTY)

        if len(feedback) < self._min_responses:
            needed = self._min_responses - len(feedback)
            self._logger.info(
                "analysis_skipped_insufficient",
                collection_id=collection_id,
                responses=len(feedback),
                responses_needed=needed,
            )
            return AnalysisResult(
                collection_id=collection_id,
                source=AnalysisSource.INSUFFICIENT,
                responses_needed=needed,
            )

        current = fingerprint(feedback)

        if not force_rerun:
            served = await self._serve_from_store(collection_id, current)
            if served is not None:
                return served

        flight = self._flights.get((collection_id, current))
        # A forced rerun only joins a flight that is itself forced; an
        # unforced one may still be served from the store.
        if flight is not None and (flight.forced or not force_rerun):
            self._logger.info(
                "analysis_joined_inflight",
                collection_id=collection_id,
                fingerprint=current[:12],
            )
        else:
            flight = self._start_flight(
                collection_id,
                current,
                list(feedback),
                force_rerun,
                employee_name,
                employee_role,
            )
        return await asyncio.shield(flight.task)

    async def invalidate(self, collection_id: str) -> None:
        """Delete the stored analysis so the next ``analyze`` recomputes.

        Waits for an in-flight recomputation of the same collection to
        finish first, so its write cannot resurrect the deleted row.
        """
        async with self._locks.hold(collection_id):
            await self._store.delete(collection_id)
        self._logger.info("analysis_invalidated", collection_id=collection_id)

    def get_phase(self, collection_id: str) -> AnalysisPhase:
        """Return the collection's current state-machine phase."""
        return self._tracker.get_phase(collection_id)

    @property
    def phase_tracker(self) -> PhaseTracker:
        return self._tracker

    # ------------------------------------------------------------------
    # Cache lookup
    # ------------------------------------------------------------------

    async def _read_store(self, collection_id: str) -> CachedAnalysis | None:
        try:
            return await self._store.get(collection_id)
        except PersistenceReadError as exc:
            self._logger.warning(
                "analysis_read_failed",
                collection_id=collection_id,
                error=str(exc),
            )
            return None

    async def _serve_from_store(
        self, collection_id: str, current: str
    ) -> AnalysisResult | None:
        """Serve a stored analysis when allowed; ``None`` means recompute."""
        # A running flight owns the phase; an unlocked lookup must not
        # overwrite RECOMPUTING with its own transitions.
        tracked = not self._locks.locked(collection_id)
        if tracked:
            await self._tracker.update(collection_id, AnalysisPhase.CHECKING_CACHE)

        cached = await self._read_store(collection_id)

        if cached is not None and cached.fingerprint == current:
            self._logger.info(
                "analysis_cache_hit",
                collection_id=collection_id,
                fingerprint=current[:12],
            )
            if tracked:
                await self._tracker.update(collection_id, AnalysisPhase.SERVING_FRESH)
                await self._tracker.update(collection_id, AnalysisPhase.IDLE)
            return self._result_from_cache(cached, stale=False)

        if cached is not None and not self._auto_recompute:
            self._logger.info(
                "analysis_serving_stale",
                collection_id=collection_id,
                stored_fingerprint=cached.fingerprint[:12],
                current_fingerprint=current[:12],
            )
            if tracked:
                await self._tracker.update(collection_id, AnalysisPhase.IDLE)
            return self._result_from_cache(cached, stale=True)

        self._logger.info(
            "analysis_cache_miss",
            collection_id=collection_id,
            stored=cached is not None,
        )
        return None

    def _result_from_cache(self, cached: CachedAnalysis, stale: bool) -> AnalysisResult:
        return AnalysisResult(
            collection_id=cached.collection_id,
            insights=cached.insights,
            aggregate=build_aggregate_insight(cached.insights, self._weights),
            computed_at=cached.computed_at,
            stale=stale,
            source=AnalysisSource.CACHE,
        )

    # ------------------------------------------------------------------
    # Flights
    # ------------------------------------------------------------------

    def _start_flight(
        self,
        collection_id: str,
        current: str,
        feedback: list[FeedbackItem],
        force_rerun: bool,
        employee_name: str,
        employee_role: str,
    ) -> _Flight:
        task = asyncio.create_task(
            self._recompute(
                collection_id,
                current,
                feedback,
                force_rerun,
                employee_name,
                employee_role,
            )
        )
        flight = _Flight(fingerprint=current, task=task, forced=force_rerun)
        key = (collection_id, current)
        self._flights[key] = flight
        self._tasks.add(task)

        def _finished(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            if self._flights.get(key) is flight:
                del self._flights[key]
            # Mark the outcome as retrieved; if every caller was cancelled
            # nobody else will look at it.
            if not done.cancelled():
                done.exception()

        task.add_done_callback(_finished)
        return flight

    async def _recompute(
        self,
        collection_id: str,
        current: str,
        feedback: list[FeedbackItem],
        force_rerun: bool,
        employee_name: str,
        employee_role: str,
    ) -> AnalysisResult:
        async with self._locks.hold(collection_id):
            if not force_rerun:
                # The flight queued behind this one may have just stored
                # an analysis for the same feedback set.
                cached = await self._read_store(collection_id)
                if cached is not None and cached.fingerprint == current:
                    self._logger.info(
                        "analysis_cache_hit_after_wait",
                        collection_id=collection_id,
                        fingerprint=current[:12],
                    )
                    await self._tracker.update(collection_id, AnalysisPhase.SERVING_FRESH)
                    await self._tracker.update(collection_id, AnalysisPhase.IDLE)
                    return self._result_from_cache(cached, stale=False)

            await self._tracker.update(collection_id, AnalysisPhase.RECOMPUTING)
            self._logger.info(
                "analysis_recompute_start",
                collection_id=collection_id,
                fingerprint=current[:12],
                responses=len(feedback),
                forced=force_rerun,
            )

            request = InsightRequest(
                employee_name=employee_name,
                employee_role=employee_role,
                grouped_feedback=group(feedback),
                competency_framework=self._framework,
            )
            try:
                insights = await self._generate(collection_id, request)
            except InsightGenerationError as exc:
                self._logger.error(
                    "analysis_recompute_failed",
                    collection_id=collection_id,
                    error_type=type(exc).__name__,
                    retryable=exc.retryable,
                    error=str(exc),
                )
                await self._tracker.update(collection_id, AnalysisPhase.FAILED)
                await self._tracker.update(collection_id, AnalysisPhase.IDLE)
                raise

            await self._tracker.update(collection_id, AnalysisPhase.STORING)
            analysis = CachedAnalysis(
                collection_id=collection_id,
                fingerprint=current,
                insights=insights,
                computed_at=datetime.now(tz=timezone.utc),  # noqa: UP017
            )
            try:
                await self._store.put(collection_id, analysis)
            except PersistenceWriteError as exc:
                # The result is still correct; it just won't be reused.
                self._logger.error(
                    "analysis_store_failed",
                    collection_id=collection_id,
                    error=str(exc),
                )

            await self._tracker.update(collection_id, AnalysisPhase.SERVING_COMPUTED)
            self._logger.info(
                "analysis_recompute_complete",
                collection_id=collection_id,
                fingerprint=current[:12],
            )
            await self._tracker.update(collection_id, AnalysisPhase.IDLE)

            return AnalysisResult(
                collection_id=collection_id,
                insights=analysis.insights,
                aggregate=build_aggregate_insight(analysis.insights, self._weights),
                computed_at=analysis.computed_at,
                stale=False,
                source=AnalysisSource.COMPUTED,
            )

    # ------------------------------------------------------------------
    # Generator call and error translation
    # ------------------------------------------------------------------

    async def _generate(
        self, collection_id: str, request: InsightRequest
    ) -> list[RelationshipInsight]:
        provider = self._generator.get_provider_name()
        attempt = 1

        while True:
            try:
                raw = await asyncio.wait_for(
                    self._generator.generate(request),
                    timeout=self._generator_timeout,
                )
            except asyncio.TimeoutError as exc:
                failure = TransientGeneratorError(
                    message=f"Generator timed out after {self._generator_timeout:g}s",
                    provider_name=provider,
                )
                failure.__cause__ = exc
            except _TRANSIENT_ERRORS as exc:
                failure = TransientGeneratorError(message=str(exc), provider_name=provider)
                failure.__cause__ = exc
            except TransientGeneratorError as exc:
                failure = exc
            except InsightGenerationError:
                raise
            except InsightParseError as exc:
                raise MalformedGeneratorResponse(
                    message=str(exc), provider_name=provider
                ) from exc
            except Exception as exc:
                raise MalformedGeneratorResponse(
                    message=f"Generator failed unexpectedly: {exc}",
                    provider_name=provider,
                ) from exc
            else:
                return self._check_insights(raw, provider, request)

            if attempt > self._max_retries:
                raise failure
            self._logger.warning(
                "generator_retry",
                collection_id=collection_id,
                attempt=attempt,
                error=str(failure),
            )
            attempt += 1

    @staticmethod
    def _check_insights(
        raw: object, provider: str, request: InsightRequest
    ) -> list[RelationshipInsight]:
        """Reject empty, partial or inconsistent output.

        Every category with feedback must have an insight of its own, and
        at least one insight must carry a theme or a score.  Categories
        without feedback are completed with empty insights.
        """
        if not isinstance(raw, list) or not raw:
            raise MalformedGeneratorResponse(
                message="Generator returned no insights",
                provider_name=provider,
            )

        by_relationship: dict[CanonicalRelationship, RelationshipInsight] = {}
        for insight in raw:
            if not isinstance(insight, RelationshipInsight):
                raise MalformedGeneratorResponse(
                    message=f"Generator returned {type(insight).__name__}, not RelationshipInsight",
                    provider_name=provider,
                )
            if insight.relationship in by_relationship:
                raise MalformedGeneratorResponse(
                    message=f"Generator returned two insights for {insight.relationship.value}",
                    provider_name=provider,
                )
            by_relationship[insight.relationship] = insight

        for relationship, items in request.grouped_feedback.items():
            if items and relationship not in by_relationship:
                raise MalformedGeneratorResponse(
                    message=(
                        f"Generator returned no insight for {relationship.value} "
                        f"({len(items)} responses)"
                    ),
                    provider_name=provider,
                )
        if not any(i.themes or i.competencies for i in by_relationship.values()):
            raise MalformedGeneratorResponse(
                message="Generator returned insights without themes or scores",
                provider_name=provider,
            )

        return [
            by_relationship.get(relationship) or RelationshipInsight(relationship=relationship)
            for relationship in CanonicalRelationship
        ]
