"""Tracking of recently opened catalog items across every kind."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

from pydantic import TypeAdapter, ValidationError

from .local_store import RECENT_ITEMS_KEY, LocalStore
from .models import CatalogItem, RecencyEntry
from .utils import utcnow

logger = logging.getLogger(__name__)

RecentListener = Callable[[tuple[RecencyEntry, ...]], None]

DEFAULT_RECENT_LIMIT = 6
DEFAULT_RETENTION = timedelta(days=30)

_ENTRIES_ADAPTER = TypeAdapter(list[RecencyEntry])


class RecencyTracker:
    """Shared store of recently opened items with subscriber notification.

    Entries are kept most-recent-first, unique per ``(id, kind)``, capped at
    ``limit`` and pruned to the retention window whenever they are read.
    Updates are read-modify-write without locking, so concurrent writers
    resolve as last write wins.
    """

    def __init__(
        self,
        store: LocalStore,
        *,
        limit: int = DEFAULT_RECENT_LIMIT,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if limit < 1:
            raise ValueError("Recent item limit must be positive")
        self._store = store
        self._limit = limit
        self._retention = retention
        self._clock = clock
        self._listeners: list[RecentListener] = []

    @property
    def limit(self) -> int:
        return self._limit

    def subscribe(self, listener: RecentListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def record_visit(self, item: CatalogItem) -> tuple[RecencyEntry, ...]:
        """Move ``item`` to the front of the recent list and notify subscribers."""

        entry = RecencyEntry.from_item(item, timestamp=self._clock())
        existing = self.fresh(await self._read_entries())
        remaining = [
            current for current in existing if current.identity != entry.identity
        ]
        entries = tuple([entry, *remaining][: self._limit])
        await self._write_entries(entries)
        self._publish(entries)
        return entries

    async def load_recent(self) -> tuple[RecencyEntry, ...]:
        """Return the stored entries still inside the retention window."""

        entries = self.fresh(await self._read_entries())
        await self._write_entries(entries)
        return entries

    def fresh(self, entries: Sequence[RecencyEntry]) -> tuple[RecencyEntry, ...]:
        """Drop entries that fell out of the retention window."""

        cutoff = self._clock() - self._retention
        return tuple(entry for entry in entries if entry.timestamp >= cutoff)

    async def _read_entries(self) -> list[RecencyEntry]:
        payload = await self._store.get_json(RECENT_ITEMS_KEY)
        if payload is None:
            return []
        try:
            return _ENTRIES_ADAPTER.validate_python(payload)
        except ValidationError:
            logger.debug("Ignoring malformed recent item history")
            return []

    async def _write_entries(self, entries: Sequence[RecencyEntry]) -> None:
        await self._store.set_json(
            RECENT_ITEMS_KEY,
            [entry.model_dump(mode="json") for entry in entries],
        )

    def _publish(self, entries: tuple[RecencyEntry, ...]) -> None:
        for listener in list(self._listeners):
            try:
                listener(entries)
            except Exception:  # pragma: no cover - defensive logging branch
                logger.exception("Recent items listener %r failed", listener)
