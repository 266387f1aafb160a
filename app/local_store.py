"""Durable key/value storage for state that never leaves this client."""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db_models import LocalStateRecord
from .utils import loads_json

logger = logging.getLogger(__name__)

WELCOME_SEEN_KEY = "hasSeenWelcome"
RECENT_ITEMS_KEY = "recentItems"


class LocalStore:
    """JSON values addressed by string keys, persisted in the local database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_raw(self, key: str) -> str | None:
        async with self._session_factory() as session:
            record = await session.get(LocalStateRecord, key)
            return record.value if record is not None else None

    async def get_json(self, key: str) -> Any:
        """Return the decoded value for ``key`` or ``None`` when absent or corrupt."""

        raw = await self.get_raw(key)
        value = loads_json(raw)
        if raw is not None and value is None and raw.strip() != "null":
            logger.debug("Discarding undecodable local state for %s", key)
        return value

    async def set_raw(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            record = await session.get(LocalStateRecord, key)
            if record is None:
                session.add(LocalStateRecord(key=key, value=value))
            else:
                record.value = value
            await session.commit()

    async def set_json(self, key: str, value: Any) -> None:
        await self.set_raw(key, json.dumps(value))

    async def get_flag(self, key: str) -> bool:
        return await self.get_json(key) is True

    async def set_flag(self, key: str, value: bool = True) -> None:
        await self.set_json(key, bool(value))
