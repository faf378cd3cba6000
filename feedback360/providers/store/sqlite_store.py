"""SQLite-backed insight store.

Persists one row per feedback collection in ``data/insights.db`` using
``aiosqlite`` for async I/O.  Replacement is a single
``INSERT ... ON CONFLICT DO UPDATE`` statement, so the fingerprint and the
insights JSON of a row always change together; there is never a window in
which the row is deleted but not yet re-inserted.
"""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite
import structlog
from pydantic import ValidationError

from feedback360.interfaces.insight_store import IInsightStore
from feedback360.models.analysis import CachedAnalysis
from feedback360.utils.errors import PersistenceReadError, PersistenceWriteError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/insights.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS feedback_analytics (
    collection_id  TEXT PRIMARY KEY,
    fingerprint    TEXT NOT NULL,
    insights_json  TEXT NOT NULL,
    computed_at    TEXT NOT NULL,
    updated_at     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO feedback_analytics (collection_id, fingerprint, insights_json, computed_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(collection_id)
DO UPDATE SET fingerprint   = excluded.fingerprint,
              insights_json = excluded.insights_json,
              computed_at   = excluded.computed_at,
              updated_at    = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = """\
SELECT collection_id, fingerprint, insights_json, computed_at
FROM feedback_analytics
WHERE collection_id = ?;
"""

_DELETE_SQL = "DELETE FROM feedback_analytics WHERE collection_id = ?;"


class SQLiteInsightStore(IInsightStore):
    """SQLite-backed cached-analysis persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the table if it doesn't exist and switch to WAL mode."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            # WAL lets readers proceed while a writer commits.
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute(_CREATE_TABLE_SQL)
            await db.commit()
        logger.info("insight_db_initialized", path=str(self._db_path))

    async def get(self, collection_id: str) -> CachedAnalysis | None:
        """Load and decode the row for *collection_id*."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_SQL, (collection_id,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceReadError(
                message=f"Failed to read analysis for {collection_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            return None

        try:
            return CachedAnalysis.model_validate(
                {
                    "collection_id": row["collection_id"],
                    "fingerprint": row["fingerprint"],
                    "insights": json.loads(row["insights_json"]),
                    "computed_at": row["computed_at"],
                }
            )
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "analysis_deserialize_failed",
                collection_id=collection_id,
                error=str(exc)[:200],
            )
            raise PersistenceReadError(
                message=f"Stored analysis for {collection_id} is corrupt",
                provider_name=self.get_provider_name(),
            ) from exc

    async def put(self, collection_id: str, analysis: CachedAnalysis) -> None:
        """Upsert the whole record in one statement."""
        insights_json = json.dumps(
            [insight.model_dump(mode="json") for insight in analysis.insights]
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _UPSERT_SQL,
                    (
                        collection_id,
                        analysis.fingerprint,
                        insights_json,
                        analysis.computed_at.isoformat(),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceWriteError(
                message=f"Failed to store analysis for {collection_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "analysis_stored",
            collection_id=collection_id,
            fingerprint=analysis.fingerprint[:12],
            insight_count=len(analysis.insights),
        )

    async def delete(self, collection_id: str) -> None:
        """Delete the row for *collection_id* (no-op if absent)."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_DELETE_SQL, (collection_id,))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceWriteError(
                message=f"Failed to delete analysis for {collection_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("analysis_deleted", collection_id=collection_id)

    def get_provider_name(self) -> str:
        return "sqlite_insight_store"
