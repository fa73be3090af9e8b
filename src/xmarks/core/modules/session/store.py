"""Session storage backends.

Two backends share one interface: a process-local store with TTL and LRU
eviction, and a Redis store shared between processes. The backend is picked
once at startup by `create_session_store`.
"""

import time
from abc import ABC, abstractmethod
from collections import OrderedDict

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from xmarks.core.modules.session.models import SessionData, SessionId

logger = structlog.get_logger(__name__)


class SessionStore(ABC):
    """Get/set/destroy session data by id with TTL-based expiry."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def get(self, session_id: SessionId) -> SessionData | None: ...

    @abstractmethod
    async def set(self, session_id: SessionId, data: SessionData) -> None: ...

    @abstractmethod
    async def destroy(self, session_id: SessionId) -> None: ...

    async def close(self) -> None:
        """Release backend resources."""


class MemorySessionStore(SessionStore):
    """In-process store. Entries expire after the TTL; the least recently used entry is evicted when full."""

    def __init__(self, ttl_seconds: int, max_entries: int = 10_000) -> None:
        super().__init__(ttl_seconds)
        self.max_entries = max_entries
        self._entries: OrderedDict[SessionId, tuple[float, str]] = OrderedDict()

    async def get(self, session_id: SessionId) -> SessionData | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        expires_at, payload = entry
        if time.monotonic() >= expires_at:
            del self._entries[session_id]
            return None
        self._entries.move_to_end(session_id)
        return SessionData.model_validate_json(payload)

    async def set(self, session_id: SessionId, data: SessionData) -> None:
        self._entries[session_id] = (time.monotonic() + self.ttl_seconds, data.model_dump_json())
        self._entries.move_to_end(session_id)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    async def destroy(self, session_id: SessionId) -> None:
        self._entries.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisSessionStore(SessionStore):
    """Shared store. Redis handles expiry via key TTL; eviction follows the server's maxmemory policy."""

    KEY_PREFIX = "xmarks:session:"

    def __init__(self, client: redis.Redis, ttl_seconds: int) -> None:
        super().__init__(ttl_seconds)
        self._client = client

    def _key(self, session_id: SessionId) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    async def get(self, session_id: SessionId) -> SessionData | None:
        payload = await self._client.get(self._key(session_id))
        if payload is None:
            return None
        return SessionData.model_validate_json(payload)

    async def set(self, session_id: SessionId, data: SessionData) -> None:
        await self._client.set(self._key(session_id), data.model_dump_json(), ex=self.ttl_seconds)

    async def destroy(self, session_id: SessionId) -> None:
        await self._client.delete(self._key(session_id))

    async def close(self) -> None:
        await self._client.aclose()


async def create_session_store(redis_url: str | None, ttl_seconds: int, max_entries: int) -> SessionStore:
    """Resolve the session backend once: Redis when configured and reachable, memory otherwise."""
    if redis_url:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.warning("session_store_fallback", backend="memory", reason=type(e).__name__)
            await client.aclose()
        else:
            logger.info("session_store_ready", backend="redis")
            return RedisSessionStore(client, ttl_seconds)
    logger.info("session_store_ready", backend="memory", max_entries=max_entries)
    return MemorySessionStore(ttl_seconds, max_entries)
