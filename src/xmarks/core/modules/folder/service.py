import re
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from xmarks.core.core import Service
from xmarks.core.db import storage_guard
from xmarks.core.modules.folder.models import Folder, FolderDeleteResult
from xmarks.errors import (
    CyclicMoveError,
    DuplicateNameError,
    FolderNotFoundError,
    ForbiddenFolderError,
    InvalidHierarchyError,
    MissingParentError,
    NotFoundError,
    SelfParentError,
    ValidationError,
)
from xmarks.utils import clean_text, now

logger = structlog.get_logger(__name__)


def validate_folder_name(name: str) -> str:
    """Return the stored form of a folder name, rejecting blank names."""
    cleaned = clean_text(name)
    if not cleaned:
        raise ValidationError("Folder name cannot be empty")
    return cleaned


class FolderService(Service):
    """Owns folder records and the invariants of each user's folder tree."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("folders")

    async def on_start(self) -> None:
        """Create indexes for sibling lookup and uniqueness."""
        await self._collection.create_index([("user_id", 1), ("parent_folder", 1), ("name", 1)], unique=True)
        await self._collection.create_index([("user_id", 1), ("parent_folder", 1)])
        await self._collection.create_index([("parent_folder", 1)])

    @storage_guard
    async def get_folder(self, folder_id: UUID) -> Folder:
        doc = await self._collection.find_one({"_id": folder_id})
        if doc is None:
            raise NotFoundError(f"Folder '{folder_id}' not found")
        return Folder.model_validate(doc)

    @storage_guard
    async def list_folders(self, user_id: str) -> list[Folder]:
        """Get all folders of a user, sorted by name."""
        return await Folder.list_cursor(self._collection.find({"user_id": user_id}).sort("name", 1))

    @storage_guard
    async def search_folders(self, user_id: str, query: str) -> list[Folder]:
        """Case-insensitive substring match on folder names."""
        query = clean_text(query)
        if not query:
            raise ValidationError("Search query is required")
        cursor = self._collection.find({"user_id": user_id, "name": {"$regex": re.escape(query), "$options": "i"}})
        return await Folder.list_cursor(cursor.sort("name", 1))

    async def _has_sibling(self, user_id: str, parent_folder: UUID | None, name: str, exclude: UUID | None = None) -> bool:
        query: dict[str, Any] = {"user_id": user_id, "parent_folder": parent_folder, "name": name}
        if exclude is not None:
            query["_id"] = {"$ne": exclude}
        return await self._collection.find_one(query, {"_id": 1}) is not None

    async def _resolve_parent(self, user_id: str, parent_id: UUID) -> Folder:
        """Load a prospective parent, which must exist and belong to the same user."""
        doc = await self._collection.find_one({"_id": parent_id})
        if doc is None:
            raise FolderNotFoundError(f"Parent folder '{parent_id}' not found")
        parent = Folder.model_validate(doc)
        if parent.user_id != user_id:
            raise ForbiddenFolderError("Parent folder must belong to the same user")
        return parent

    async def _insert(self, folder: Folder) -> Folder:
        try:
            await self._collection.insert_one(folder.to_mongo())
        except DuplicateKeyError as e:
            # Lost a race with a concurrent insert of the same sibling name
            raise DuplicateNameError from e
        return folder

    async def _set(self, folder_id: UUID, fields: dict[str, Any]) -> Folder:
        fields["updated_at"] = now()
        try:
            await self._collection.update_one({"_id": folder_id}, {"$set": fields})
        except DuplicateKeyError as e:
            raise DuplicateNameError from e
        return await self.get_folder(folder_id)

    @storage_guard
    async def create_folder(self, user_id: str, name: str, parent_folder: UUID | None, is_parent_root: bool) -> Folder:
        """Create a root folder or a child of one of the user's folders."""
        name = validate_folder_name(name)
        if is_parent_root and parent_folder is not None:
            raise InvalidHierarchyError("Root folders cannot have a parent folder")
        if not is_parent_root and parent_folder is None:
            raise MissingParentError
        if parent_folder is not None:
            await self._resolve_parent(user_id, parent_folder)
        if await self._has_sibling(user_id, parent_folder, name):
            raise DuplicateNameError

        folder = await self._insert(
            Folder(user_id=user_id, name=name, parent_folder=parent_folder, is_parent_root=is_parent_root)
        )
        logger.debug("folder_created", folder_id=folder.id, user_id=user_id, parent_folder=parent_folder)
        return folder

    @storage_guard
    async def rename_folder(self, folder_id: UUID, new_name: str) -> Folder:
        folder = await self.get_folder(folder_id)
        new_name = validate_folder_name(new_name)
        if new_name == folder.name:
            return folder
        if await self._has_sibling(folder.user_id, folder.parent_folder, new_name, exclude=folder.id):
            raise DuplicateNameError
        return await self._set(folder_id, {"name": new_name})

    async def _ensure_not_ancestor(self, folder_id: UUID, start: UUID) -> None:
        """Walk parent references up from `start`; fail if `folder_id` is on the chain.

        The walk ends at a root, at a dangling reference, or at an id already
        visited (a pre-existing cycle in stored data).
        """
        visited: set[UUID] = set()
        current: UUID | None = start
        while current is not None and current not in visited:
            if current == folder_id:
                raise CyclicMoveError
            visited.add(current)
            doc = await self._collection.find_one({"_id": current}, {"parent_folder": 1})
            if doc is None:
                break
            current = doc.get("parent_folder")

    @storage_guard
    async def move_folder(self, folder_id: UUID, new_parent_folder: UUID | None) -> Folder:
        """Re-parent a folder, or make it a root when `new_parent_folder` is None."""
        folder = await self.get_folder(folder_id)
        if new_parent_folder == folder.id:
            raise SelfParentError
        if new_parent_folder is not None:
            parent = await self._resolve_parent(folder.user_id, new_parent_folder)
            await self._ensure_not_ancestor(folder.id, parent.id)

        if new_parent_folder == folder.parent_folder and folder.is_parent_root == (new_parent_folder is None):
            return folder
        if await self._has_sibling(folder.user_id, new_parent_folder, folder.name, exclude=folder.id):
            raise DuplicateNameError("A folder with this name already exists in the target folder")

        moved = await self._set(
            folder_id, {"parent_folder": new_parent_folder, "is_parent_root": new_parent_folder is None}
        )
        logger.debug("folder_moved", folder_id=folder_id, parent_folder=new_parent_folder)
        return moved

    @storage_guard
    async def copy_folder(self, folder_id: UUID, new_name: str | None = None) -> Folder:
        """Copy a folder node next to the source under a free name.

        Shallow: child folders and bookmarks stay with the source. A taken name
        gets the first free numeric suffix: "Name 2", "Name 3", ...
        """
        source = await self.get_folder(folder_id)
        base_name = validate_folder_name(new_name) if new_name is not None else source.name

        final_name = base_name
        count = 2
        while await self._has_sibling(source.user_id, source.parent_folder, final_name):
            final_name = f"{base_name} {count}"
            count += 1

        return await self._insert(
            Folder(
                user_id=source.user_id,
                name=final_name,
                is_parent_root=source.is_parent_root,
                parent_folder=source.parent_folder,
            )
        )

    async def collect_subtree(self, folder_id: UUID) -> list[UUID]:
        """Ids of the folder and all its descendants, depth-first with an explicit stack."""
        subtree: list[UUID] = []
        seen: set[UUID] = set()
        stack = [folder_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            subtree.append(current)
            children = await self._collection.find({"parent_folder": current}, {"_id": 1}).to_list()
            stack.extend(child["_id"] for child in children)
        return subtree

    @storage_guard
    async def delete_folder(self, folder_id: UUID) -> FolderDeleteResult:
        """Delete a folder with every descendant folder and every bookmark inside them.

        Ids that vanish mid-cascade are skipped, so a retried delete finishes
        the job instead of failing.
        """
        await self.get_folder(folder_id)
        subtree = await self.collect_subtree(folder_id)

        deleted_bookmarks = await self.core.services.bookmark.delete_bookmarks_in_folders(subtree)
        result = await self._collection.delete_many({"_id": {"$in": subtree}})

        logger.info(
            "folder_deleted",
            folder_id=folder_id,
            deleted_folders=result.deleted_count,
            deleted_bookmarks=deleted_bookmarks,
        )
        return FolderDeleteResult(deleted_folders=result.deleted_count, deleted_bookmarks=deleted_bookmarks)
