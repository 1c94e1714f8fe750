"""In-memory snapshot of recently seen code snippet events."""

from datetime import datetime
import asyncio

import pytz
from pydantic import BaseModel, ConfigDict

from services.snippets.QueryMatcher import matches_criteria
from shared.clients.node.models.SnippetEvent import SnippetEvent


class CacheSnapshot(BaseModel):
    """Events and the time they were collected, always from the same refresh cycle."""

    model_config = ConfigDict(frozen=True)

    events: tuple[SnippetEvent, ...] = ()
    last_refresh: datetime | None = None


class SnippetCache:
    """Holds one immutable CacheSnapshot.

    Readers take the current snapshot reference and never observe a partial
    update. Writers build the new snapshot first and swap it in under a lock.
    """

    def __init__(self) -> None:
        self._snapshot = CacheSnapshot()
        self._lock = asyncio.Lock()

    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot.events)

    async def replace(self, events: list[SnippetEvent]) -> CacheSnapshot:
        """Replace all cached events and stamp the refresh time.

        Args:
            events (list[SnippetEvent]): The events of one refresh cycle.

        Returns:
            CacheSnapshot: The snapshot now being served.
        """
        snapshot = CacheSnapshot(events=tuple(events), last_refresh=datetime.now(pytz.utc))
        async with self._lock:
            self._snapshot = snapshot
        return snapshot

    def search(self, language: str | None, author: str | None, query: str | None, limit: int) -> list[SnippetEvent]:
        """Return up to limit cached events matching every filter that is set, in cache order."""
        matches: list[SnippetEvent] = []
        for event in self._snapshot.events:
            if not matches_criteria(event, language, author, query):
                continue
            matches.append(event)
            if len(matches) >= limit:
                break
        return matches
