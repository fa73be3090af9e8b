from typing import Any
from uuid import uuid4

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from xmarks.core.core import Service
from xmarks.core.db import storage_guard
from xmarks.core.modules.user.models import User
from xmarks.errors import NotFoundError
from xmarks.utils import now

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Identity store: maps external identities to local users."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1)], unique=True)
        # Released usernames are stored as null and stay out of the unique index
        await self._collection.create_index(
            [("username", 1)], unique=True, partialFilterExpression={"username": {"$type": "string"}}
        )

    @storage_guard
    async def get_user(self, user_id: str) -> User:
        """Get user by external identity id."""
        doc = await self._collection.find_one({"user_id": user_id})
        if doc is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return User.model_validate(doc)

    @storage_guard
    async def upsert_user(self, user_id: str, username: str, refresh_token: str | None) -> User:
        """Create or update the user keyed by external identity id.

        Usernames can be renamed and reused on the provider, so any other
        identity still holding `username` gives it up first. A missing
        refresh token keeps the stored one.
        """
        released = await self._collection.update_many(
            {"username": username, "user_id": {"$ne": user_id}},
            {"$set": {"username": None, "updated_at": now()}},
        )
        if released.modified_count:
            logger.info("username_released", username=username, count=released.modified_count)

        timestamp = now()
        fields: dict[str, Any] = {"username": username, "updated_at": timestamp}
        if refresh_token is not None:
            fields["refresh_token"] = refresh_token
        doc = await self._collection.find_one_and_update(
            {"user_id": user_id},
            {
                "$set": fields,
                "$setOnInsert": {"_id": uuid4(), "created_at": timestamp},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info("user_upserted", user_id=user_id, username=username)
        return User.model_validate(doc)
