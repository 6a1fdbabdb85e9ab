"""Persistence port, store implementations and the write coordinator."""

from reviewpulse.store.port import CHILD_KINDS, AnalyticsStore
from reviewpulse.store.memory import InMemoryAnalyticsStore
from reviewpulse.store.json_store import JsonAnalyticsStore
from reviewpulse.store.coordinator import KeyedLock, PersistenceCoordinator

__all__ = [
    "CHILD_KINDS",
    "AnalyticsStore",
    "InMemoryAnalyticsStore",
    "JsonAnalyticsStore",
    "KeyedLock",
    "PersistenceCoordinator",
]
