from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from xmarks.core.db import MongoModel
from xmarks.utils import now


class Folder(MongoModel):
    """Node of a per-user folder tree.

    Root folders have is_parent_root=True and no parent_folder; every other
    folder has a parent owned by the same user. Names are unique per
    (user_id, parent_folder).
    Indexed on (user_id, parent_folder, name) - unique, (user_id, parent_folder), parent_folder.
    """

    user_id: str
    name: str
    is_parent_root: bool
    parent_folder: UUID | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class FolderDeleteResult(BaseModel):
    """Outcome of a cascade delete."""

    deleted_folders: int = Field(..., description="Folders removed, including the target", ge=0)
    deleted_bookmarks: int = Field(..., description="Bookmarks removed from the subtree", ge=0)
