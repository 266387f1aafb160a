"""Catalog views, dashboard and request sink built on the table API."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Mapping

from ..catalog_kinds import CatalogKind
from ..config import Settings
from ..filtering import extract_categories, filter_items, group_categories
from ..local_store import WELCOME_SEEN_KEY, LocalStore
from ..models import AdditionRequest, CatalogItem, RecencyEntry
from ..recency import RecencyTracker
from .backend import BackendClient, BackendError

logger = logging.getLogger(__name__)


class CatalogView:
    """In-memory snapshot of one catalog kind with search and like toggles."""

    def __init__(
        self,
        kind: CatalogKind,
        backend: BackendClient,
        tracker: RecencyTracker,
        *,
        require_query: bool = False,
    ) -> None:
        self.kind = kind
        self.require_query = require_query
        self._backend = backend
        self._tracker = tracker
        self._items: list[CatalogItem] = []
        self._loaded = False

    @property
    def items(self) -> list[CatalogItem]:
        return list(self._items)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> list[CatalogItem]:
        """Replace the snapshot with the full backend table."""

        rows = await self._backend.select_all(self.kind.table)
        items: list[CatalogItem] = []
        for row in rows:
            try:
                items.append(self.kind.build_item(row))
            except ValueError as exc:
                logger.warning("Skipping %s row: %s", self.kind.table, exc)
        self._items = items
        self._loaded = True
        logger.debug("Loaded %d %s", len(items), self.kind.slug)
        return self.items

    async def ensure_loaded(self) -> list[CatalogItem]:
        if not self._loaded:
            return await self.load()
        return self.items

    def search(
        self,
        query: str | None = None,
        *,
        category: str | None = None,
        liked_only: bool = False,
    ) -> list[CatalogItem]:
        return filter_items(
            self._items,
            query,
            category=category,
            liked_only=liked_only,
            require_query=self.require_query,
        )

    def category_groups(self) -> dict[str, list[str]]:
        return group_categories(extract_categories(self._items))

    def find(self, key: object) -> CatalogItem | None:
        resolved = self.kind.coerce_key(key)
        if resolved is None:
            return None
        for item in self._items:
            if item.key == resolved:
                return item
        return None

    async def toggle_like(self, key: object) -> CatalogItem | None:
        """Invert the liked flag remotely, then patch the snapshot.

        Returns the updated item, or ``None`` when the key is unknown or the
        backend rejected the update. Failed updates leave the snapshot as is.
        """

        item = self.find(key)
        if item is None:
            logger.warning("%s %s not found for like toggle", self.kind.singular, key)
            return None

        liked = not item.liked
        logger.info(
            "Toggling like for %s %s (currently %s)", self.kind.singular, item.key, item.liked
        )
        try:
            updated_rows = await self._backend.update(
                self.kind.table,
                {"liked": liked},
                key_field=self.kind.key_field,
                key=item.key,
            )
        except BackendError as exc:
            logger.warning(
                "Failed to update liked flag for %s %s: %s",
                self.kind.singular,
                item.key,
                exc,
            )
            return None

        if not updated_rows:
            logger.warning(
                "No %s row matched %s when updating liked flag", self.kind.singular, item.key
            )
            return None

        updated = item.with_liked(liked)
        self._items = [
            updated if current.key == item.key else current for current in self._items
        ]
        return updated

    async def open_item(self, key: object) -> CatalogItem | None:
        """Return the item for ``key`` and record it as recently viewed."""

        item = self.find(key)
        if item is None:
            return None
        await self._tracker.record_visit(item)
        return item

    async def add_item(self, fields: Mapping[str, Any]) -> CatalogItem | None:
        """Insert a new row for this kind and append it to the snapshot.

        Raises ``ValueError`` when ``fields`` lacks a title.
        """

        row = self.kind.build_row(dict(fields))
        try:
            stored = await self._backend.insert(self.kind.table, [row])
        except BackendError as exc:
            logger.warning("Failed to add %s: %s", self.kind.singular, exc)
            return None
        if not stored:
            logger.warning("Backend returned no row for new %s", self.kind.singular)
            return None
        try:
            item = self.kind.build_item(stored[0])
        except ValueError as exc:
            logger.warning("Backend returned an unusable %s row: %s", self.kind.singular, exc)
            return None
        self._items.append(item)
        logger.info("Added %s %s", self.kind.singular, item.key)
        return item


class DashboardView:
    """Liked items across every kind plus the shared recent list."""

    def __init__(
        self,
        kinds: tuple[CatalogKind, ...],
        backend: BackendClient,
        tracker: RecencyTracker,
    ) -> None:
        self._kinds = kinds
        self._backend = backend
        self._tracker = tracker
        self.recent: tuple[RecencyEntry, ...] = ()
        self._refreshed = False
        self._unsubscribe = tracker.subscribe(self._on_recent_changed)

    def _on_recent_changed(self, entries: tuple[RecencyEntry, ...]) -> None:
        self.recent = entries

    async def refresh(self) -> tuple[RecencyEntry, ...]:
        self.recent = await self._tracker.load_recent()
        self._refreshed = True
        return self.recent

    async def current_recent(self) -> tuple[RecencyEntry, ...]:
        """Return the list kept by the subscription, reading storage only once."""

        if not self._refreshed:
            return await self.refresh()
        self.recent = self._tracker.fresh(self.recent)
        return self.recent

    async def load_liked(self) -> dict[str, list[CatalogItem]]:
        """Return the liked items of every kind, keyed by kind slug."""

        liked: dict[str, list[CatalogItem]] = {}
        for kind in self._kinds:
            rows = await self._backend.select_eq(kind.table, "liked", True)
            items: list[CatalogItem] = []
            for row in rows:
                try:
                    items.append(kind.build_item(row))
                except ValueError as exc:
                    logger.warning("Skipping %s row: %s", kind.table, exc)
            liked[kind.slug] = items
        return liked

    def close(self) -> None:
        self._unsubscribe()


class RequestService:
    """Records requests for titles the catalogs do not carry yet."""

    def __init__(self, backend: BackendClient, table: str):
        self._backend = backend
        self._table = table

    async def submit(self, request: AdditionRequest) -> bool:
        try:
            await self._backend.insert(self._table, [request.to_row()])
        except BackendError as exc:
            logger.warning("Failed to submit request %r: %s", request.query, exc)
            return False
        logger.info("Recorded request for %r (%s)", request.query, request.kind or "any")
        return True


class CatalogService:
    """Wires the catalog views, dashboard and local state together."""

    def __init__(
        self,
        settings: Settings,
        backend: BackendClient,
        store: LocalStore,
        tracker: RecencyTracker | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self.tracker = tracker or RecencyTracker(
            store,
            limit=settings.recent_limit,
            retention=timedelta(days=settings.recent_retention_days),
        )
        kinds = settings.catalog_kinds
        self.views: dict[str, CatalogView] = {
            kind.slug: CatalogView(
                kind,
                backend,
                self.tracker,
                require_query=settings.requires_query(kind.slug),
            )
            for kind in kinds
        }
        self.dashboard = DashboardView(kinds, backend, self.tracker)
        self.requests = RequestService(backend, settings.requests_table)

    def get_view(self, slug: str) -> CatalogView:
        try:
            return self.views[slug]
        except KeyError as exc:
            raise KeyError(f"Unknown catalog kind: {slug}") from exc

    async def has_seen_welcome(self) -> bool:
        return await self._store.get_flag(WELCOME_SEEN_KEY)

    async def dismiss_welcome(self) -> None:
        await self._store.set_flag(WELCOME_SEEN_KEY, True)

    def close(self) -> None:
        self.dashboard.close()
