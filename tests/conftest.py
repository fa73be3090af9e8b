"""Shared pytest fixtures."""

import copy
import re
from collections.abc import Callable, Coroutine
from datetime import timedelta
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from redis.exceptions import ConnectionError as RedisConnectionError

from xmarks.app import App
from xmarks.config import Config
from xmarks.core.modules.session.models import SessionData, SessionId, SessionTokens, SessionUser
from xmarks.core.modules.session.service import new_session_id
from xmarks.core.modules.session.store import MemorySessionStore
from xmarks.utils import now


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB query syntax the services use."""
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and any(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if op == "$ne" and value == operand:
                    return False
                if op == "$type" and operand == "string" and not isinstance(value, str):
                    return False
                if op == "$in" and value not in operand:
                    return False
                if op == "$regex":
                    flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                    if not isinstance(value, str) or not re.search(operand, value, flags):
                        return False
        elif value != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._docs = self._docs[count:]
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._docs = self._docs[:count]
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return self._docs if length is None else self._docs[:length]

    def __aiter__(self) -> "FakeCursor":
        self._iter = iter(self._docs)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class FakeCollection:
    """In-memory stand-in for an async pymongo collection, including unique indexes.

    Set `fail_with` to make every call raise, simulating a broken backend.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: dict[Any, dict[str, Any]] = {}
        self.unique_keys: list[tuple[tuple[str, ...], dict[str, Any]]] = []
        self.fail_with: Exception | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _check_unique(self, candidate: dict[str, Any]) -> None:
        for doc_id, doc in self.docs.items():
            if doc_id == candidate["_id"]:
                continue
            for fields, partial in self.unique_keys:
                if not (_matches(doc, partial) and _matches(candidate, partial)):
                    continue
                if all(doc.get(field) == candidate.get(field) for field in fields):
                    raise DuplicateKeyError(f"E11000 duplicate key in {self.name}: {fields}")

    async def create_index(
        self,
        keys: list[tuple[str, int]],
        unique: bool = False,
        partialFilterExpression: dict[str, Any] | None = None,  # noqa: N803
        **_: Any,
    ) -> str:
        if unique:
            self.unique_keys.append((tuple(field for field, _ in keys), partialFilterExpression or {}))
        return "_".join(field for field, _ in keys)

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        self._check()
        if document["_id"] in self.docs:
            raise DuplicateKeyError(f"E11000 duplicate _id in {self.name}")
        self._check_unique(document)
        self.docs[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query: dict[str, Any], projection: Any = None, sort: Any = None) -> dict[str, Any] | None:
        self._check()
        for doc in self.docs.values():
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query: dict[str, Any] | None = None, projection: Any = None) -> FakeCursor:
        self._check()
        return FakeCursor([copy.deepcopy(doc) for doc in self.docs.values() if _matches(doc, query or {})])

    async def count_documents(self, query: dict[str, Any]) -> int:
        self._check()
        return sum(1 for doc in self.docs.values() if _matches(doc, query))

    def _apply(self, doc: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        updated = copy.deepcopy(doc)
        updated.update(update.get("$set", {}))
        self._check_unique(updated)
        return updated

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        self._check()
        for doc_id, doc in self.docs.items():
            if _matches(doc, query):
                self.docs[doc_id] = self._apply(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def update_many(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        self._check()
        matched = [doc_id for doc_id, doc in self.docs.items() if _matches(doc, query)]
        for doc_id in matched:
            self.docs[doc_id] = self._apply(self.docs[doc_id], update)
        return SimpleNamespace(matched_count=len(matched), modified_count=len(matched))

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
        return_document: bool = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        self._check()
        for doc_id, doc in self.docs.items():
            if _matches(doc, query):
                self.docs[doc_id] = self._apply(doc, update)
                return copy.deepcopy(self.docs[doc_id] if return_document == ReturnDocument.AFTER else doc)
        if not upsert:
            return None
        seeded = {key: value for key, value in query.items() if not isinstance(value, dict)}
        seeded.update(update.get("$setOnInsert", {}))
        seeded.update(update.get("$set", {}))
        await self.insert_one(seeded)
        return copy.deepcopy(seeded) if return_document == ReturnDocument.AFTER else None

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        self._check()
        for doc_id, doc in self.docs.items():
            if _matches(doc, query):
                del self.docs[doc_id]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        self._check()
        doomed = [doc_id for doc_id, doc in self.docs.items() if _matches(doc, query)]
        for doc_id in doomed:
            del self.docs[doc_id]
        return SimpleNamespace(deleted_count=len(doomed))


class FakeDatabase:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection(name))


class FakeProvider:
    """Identity provider double served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_body: dict[str, Any] = {
            "access_token": "provider-access-token",
            "refresh_token": "provider-refresh-token",
            "expires_in": 7200,
            "token_type": "bearer",
        }
        self.token_error: Exception | None = None
        self.profile_status = 200
        self.profile_body: dict[str, Any] = {"data": {"id": "1001", "username": "alice", "name": "Alice"}}
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/2/oauth2/token":
            if self.token_error is not None:
                raise self.token_error
            return httpx.Response(self.token_status, json=self.token_body)
        if request.url.path == "/2/users/me":
            return httpx.Response(self.profile_status, json=self.profile_body)
        return httpx.Response(404)


class FailingSessionStore(MemorySessionStore):
    """Session store whose writes fail. Reads and deletes fail too when `reads_fail` is set."""

    def __init__(self, reads_fail: bool = False) -> None:
        super().__init__(ttl_seconds=60)
        self.reads_fail = reads_fail

    async def get(self, session_id: SessionId) -> SessionData | None:
        if self.reads_fail:
            raise RedisConnectionError("connection refused")
        return await super().get(session_id)

    async def set(self, session_id: SessionId, data: SessionData) -> None:
        raise RedisConnectionError("connection refused")

    async def destroy(self, session_id: SessionId) -> None:
        if self.reads_fail:
            raise RedisConnectionError("connection refused")
        await super().destroy(session_id)


@pytest.fixture
def config():
    return Config(
        database_url="mongodb://localhost:27017/xmarks_test",
        host="127.0.0.1",
        port=3100,
        debug=True,
        session_secret_key="test-session-secret",
        redis_url=None,
        oauth_client_id="test-client-id",
        oauth_client_secret="test-client-secret",
        oauth_callback_url="http://testserver/auth/x/callback",
    )


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def app(config, database, provider):
    return App(config, database=database, http_transport=httpx.MockTransport(provider.handle))


@pytest.fixture
async def core(app):
    """Started core behind the `app` facade."""
    async with app.lifespan():
        yield app._core


LoginFactory = Callable[..., Coroutine[Any, Any, SessionId]]


@pytest.fixture
def login(core) -> LoginFactory:
    """Create an authenticated session for a user without going through the provider."""

    async def _login(user_id: str = "u1", username: str | None = None, expires_in: int = 3600) -> SessionId:
        session_id = new_session_id()
        data = SessionData(
            user=SessionUser(user_id=user_id, username=username or f"user-{user_id}"),
            tokens=SessionTokens(access_token=f"token-{user_id}", expires_at=now() + timedelta(seconds=expires_in)),
        )
        await core.services.session.save(session_id, data)
        return session_id

    return _login


@pytest.fixture
def fail_session_store(app, monkeypatch) -> Callable[..., FailingSessionStore]:
    """Swap the started session backend for one that refuses to save."""

    def _fail(reads_fail: bool = False) -> FailingSessionStore:
        store = FailingSessionStore(reads_fail=reads_fail)
        monkeypatch.setattr(app._core.services.session, "_store", store)
        return store

    return _fail
