"""Fuente de eventos respaldada por la base SQLite local."""

from __future__ import annotations

from entreno_tool.model import ActivityEvent
from entreno_tool.sources.base import EventSource
from entreno_tool.storage import SQLiteStore


class StoreEventSource(EventSource):
    """Activity history of one user in a :class:`SQLiteStore`."""

    def __init__(self, store: SQLiteStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id

    def validate(self) -> None:
        """The store creates its schema on open; nothing to check."""

    def load_events(self) -> list[ActivityEvent]:
        return self._store.load_activity_events(self._user_id)
