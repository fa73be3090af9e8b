import secrets
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from redis.exceptions import RedisError

from xmarks.core.core import Service
from xmarks.core.modules.session.models import SessionData, SessionId
from xmarks.core.modules.session.store import SessionStore, create_session_store
from xmarks.errors import SessionPersistError, StorageError

logger = structlog.get_logger(__name__)


def new_session_id() -> SessionId:
    return SessionId(secrets.token_urlsafe(32))


class SessionService(Service):
    """Loads and persists server-side session state."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._store: SessionStore | None = None

    async def on_start(self) -> None:
        config = self.core.config
        self._store = await create_session_store(
            config.redis_url, config.session_ttl_seconds, config.session_cache_max_entries
        )

    async def on_stop(self) -> None:
        if self._store is not None:
            await self._store.close()
            self._store = None

    @property
    def store(self) -> SessionStore:
        if self._store is None:
            raise RuntimeError("Session store not started")
        return self._store

    async def load(self, session_id: SessionId) -> SessionData:
        """Return the session data, or an empty session if none is stored."""
        try:
            data = await self.store.get(session_id)
        except RedisError as e:
            logger.error("session_load_failed", error=type(e).__name__)
            raise StorageError from e
        return data if data is not None else SessionData()

    async def save(self, session_id: SessionId, data: SessionData) -> None:
        """Persist session data, raising SessionPersistError if the store refuses it."""
        try:
            await self.store.set(session_id, data)
        except RedisError as e:
            logger.error("session_save_failed", error=type(e).__name__)
            raise SessionPersistError from e

    async def destroy(self, session_id: SessionId) -> None:
        try:
            await self.store.destroy(session_id)
        except RedisError as e:
            logger.error("session_destroy_failed", error=type(e).__name__)
            raise StorageError from e
