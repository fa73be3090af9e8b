from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from xmarks.core.core import Service
from xmarks.core.db import storage_guard
from xmarks.core.modules.bookmark.models import Bookmark
from xmarks.core.modules.folder.models import Folder
from xmarks.errors import FolderNotFoundError, ForbiddenFolderError, InvalidTitleError, NotFoundError, ValidationError
from xmarks.utils import clean_text

logger = structlog.get_logger(__name__)


class BookmarkService(Service):
    """Manages bookmarks and their folder membership."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("bookmarks")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("user_id", 1), ("folder", 1)])
        await self._collection.create_index([("folder", 1)])

    async def _resolve_folder(self, user_id: str, folder_id: UUID) -> Folder:
        """A bookmark can only be filed in an existing folder of its owner."""
        try:
            folder = await self.core.services.folder.get_folder(folder_id)
        except NotFoundError as e:
            raise FolderNotFoundError(f"Folder '{folder_id}' not found") from e
        if folder.user_id != user_id:
            raise ForbiddenFolderError("Target folder belongs to a different user")
        return folder

    @storage_guard
    async def get_bookmark(self, bookmark_id: UUID) -> Bookmark:
        doc = await self._collection.find_one({"_id": bookmark_id})
        if doc is None:
            raise NotFoundError(f"Bookmark '{bookmark_id}' not found")
        return Bookmark.model_validate(doc)

    @storage_guard
    async def list_bookmarks(self, user_id: str) -> list[Bookmark]:
        """Get all bookmarks of a user, newest first."""
        return await Bookmark.list_cursor(self._collection.find({"user_id": user_id}).sort("created_at", -1))

    @storage_guard
    async def list_folder_bookmarks(self, folder_id: UUID) -> list[Bookmark]:
        return await Bookmark.list_cursor(self._collection.find({"folder": folder_id}).sort("created_at", -1))

    @storage_guard
    async def create_bookmark(self, user_id: str, title: str, url: str, folder: UUID | None = None) -> Bookmark:
        title = clean_text(title)
        url = clean_text(url)
        if not title:
            raise InvalidTitleError
        if not url:
            raise ValidationError("URL cannot be empty")
        if folder is not None:
            await self._resolve_folder(user_id, folder)

        bookmark = Bookmark(user_id=user_id, title=title, url=url, folder=folder)
        await self._collection.insert_one(bookmark.to_mongo())
        logger.debug("bookmark_created", bookmark_id=bookmark.id, user_id=user_id, folder=folder)
        return bookmark

    @storage_guard
    async def move_bookmark(self, bookmark_id: UUID, new_folder: UUID | None) -> Bookmark:
        """File the bookmark in another folder, or unfile it with None.

        Moving into the folder it is already in returns it unchanged.
        """
        bookmark = await self.get_bookmark(bookmark_id)
        if new_folder is not None:
            await self._resolve_folder(bookmark.user_id, new_folder)
        if new_folder == bookmark.folder:
            return bookmark

        await self._collection.update_one({"_id": bookmark_id}, {"$set": {"folder": new_folder}})
        return await self.get_bookmark(bookmark_id)

    @storage_guard
    async def copy_bookmark(self, bookmark_id: UUID, target_folder: UUID | None) -> Bookmark:
        """Insert a new bookmark with the same title and url. Always creates a record."""
        source = await self.get_bookmark(bookmark_id)
        if target_folder is not None:
            await self._resolve_folder(source.user_id, target_folder)

        copy = Bookmark(user_id=source.user_id, title=source.title, url=source.url, folder=target_folder)
        await self._collection.insert_one(copy.to_mongo())
        return copy

    @storage_guard
    async def rename_bookmark(self, bookmark_id: UUID, new_title: str) -> Bookmark:
        new_title = clean_text(new_title)
        if not new_title:
            raise InvalidTitleError
        await self.get_bookmark(bookmark_id)
        await self._collection.update_one({"_id": bookmark_id}, {"$set": {"title": new_title}})
        return await self.get_bookmark(bookmark_id)

    @storage_guard
    async def delete_bookmark(self, bookmark_id: UUID) -> None:
        result = await self._collection.delete_one({"_id": bookmark_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Bookmark '{bookmark_id}' not found")

    @storage_guard
    async def delete_bookmarks_in_folders(self, folder_ids: list[UUID]) -> int:
        """Delete all bookmarks filed in any of the folders and return the count."""
        if not folder_ids:
            return 0
        result = await self._collection.delete_many({"folder": {"$in": folder_ids}})
        return result.deleted_count
