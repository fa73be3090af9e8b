from datetime import datetime
from uuid import UUID

from pydantic import Field

from xmarks.core.db import MongoModel
from xmarks.utils import now


class Bookmark(MongoModel):
    """Saved link, optionally filed in one of the owner's folders.

    Indexed on user_id, (user_id, folder), folder.
    """

    user_id: str
    title: str
    url: str
    folder: UUID | None = None
    created_at: datetime = Field(default_factory=now)
