"""Insight store adapters.

Two concrete implementations of IInsightStore
(feedback360/interfaces/insight_store.py):
    - MemoryInsightStore  — cachetools TTLCache, process-local
    - SQLiteInsightStore  — aiosqlite, one upserted row per collection

main.py picks one from the INSIGHT_STORE_BACKEND setting.
"""

from feedback360.providers.store.memory_store import MemoryInsightStore
from feedback360.providers.store.sqlite_store import SQLiteInsightStore

__all__ = ["MemoryInsightStore", "SQLiteInsightStore"]
