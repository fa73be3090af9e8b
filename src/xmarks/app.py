from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import httpx
from pymongo.asynchronous.database import AsyncDatabase

from xmarks.config import Config
from xmarks.core.core import Core
from xmarks.core.modules.bookmark.models import Bookmark
from xmarks.core.modules.folder.models import Folder, FolderDeleteResult
from xmarks.core.modules.session.models import AuthContext, SessionId
from xmarks.core.modules.user.models import UserView


class App:
    """Facade for all application operations, validates session and ownership before delegating to Core."""

    def __init__(
        self,
        config: Config,
        database: AsyncDatabase[dict[str, Any]] | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._core = Core(config, database=database, http_transport=http_transport)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    async def start_login(self, session_id: SessionId) -> str:
        """Begin the OAuth login and return the provider authorization URL."""
        return await self._core.services.oauth.start_login(session_id)

    async def handle_callback(self, session_id: SessionId, code: object, state: object) -> str:
        """Finish the OAuth login and return the landing URL."""
        return await self._core.services.oauth.handle_callback(session_id, code, state)

    async def logout(self, session_id: SessionId) -> None:
        """End the session. Works for expired or anonymous sessions too."""
        await self._core.services.oauth.logout(session_id)

    async def check_session(self, session_id: SessionId) -> AuthContext:
        return await self._core.services.access.ensure_authenticated(session_id)

    async def get_current_user(self, session_id: SessionId) -> UserView:
        """Get current authenticated user profile."""
        context = await self._core.services.access.ensure_authenticated(session_id)
        user = await self._core.services.user.get_user(context.user_id)
        return UserView.from_domain(user)

    # === Folders ===
    async def get_folders(self, session_id: SessionId) -> list[Folder]:
        context = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.folder.list_folders(context.user_id)

    async def search_folders(self, session_id: SessionId, query: str) -> list[Folder]:
        context = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.folder.search_folders(context.user_id, query)

    async def get_folder(self, session_id: SessionId, folder_id: UUID) -> Folder:
        _, folder = await self._resolve_owned_folder(session_id, folder_id)
        return folder

    async def create_folder(
        self, session_id: SessionId, name: str, parent_folder: UUID | None, is_parent_root: bool
    ) -> Folder:
        """Create folder owned by the current user."""
        context = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.folder.create_folder(context.user_id, name, parent_folder, is_parent_root)

    async def rename_folder(self, session_id: SessionId, folder_id: UUID, name: str) -> Folder:
        await self._resolve_owned_folder(session_id, folder_id)
        return await self._core.services.folder.rename_folder(folder_id, name)

    async def move_folder(self, session_id: SessionId, folder_id: UUID, new_parent_folder: UUID | None) -> Folder:
        await self._resolve_owned_folder(session_id, folder_id)
        return await self._core.services.folder.move_folder(folder_id, new_parent_folder)

    async def copy_folder(self, session_id: SessionId, folder_id: UUID, new_name: str | None = None) -> Folder:
        await self._resolve_owned_folder(session_id, folder_id)
        return await self._core.services.folder.copy_folder(folder_id, new_name)

    async def delete_folder(self, session_id: SessionId, folder_id: UUID) -> FolderDeleteResult:
        """Delete folder with its whole subtree and contained bookmarks."""
        await self._resolve_owned_folder(session_id, folder_id)
        return await self._core.services.folder.delete_folder(folder_id)

    # === Bookmarks ===
    async def get_bookmarks(self, session_id: SessionId) -> list[Bookmark]:
        context = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.bookmark.list_bookmarks(context.user_id)

    async def get_folder_bookmarks(self, session_id: SessionId, folder_id: UUID) -> list[Bookmark]:
        await self._resolve_owned_folder(session_id, folder_id)
        return await self._core.services.bookmark.list_folder_bookmarks(folder_id)

    async def get_bookmark(self, session_id: SessionId, bookmark_id: UUID) -> Bookmark:
        _, bookmark = await self._resolve_owned_bookmark(session_id, bookmark_id)
        return bookmark

    async def create_bookmark(self, session_id: SessionId, title: str, url: str, folder: UUID | None = None) -> Bookmark:
        context = await self._core.services.access.ensure_authenticated(session_id)
        return await self._core.services.bookmark.create_bookmark(context.user_id, title, url, folder)

    async def rename_bookmark(self, session_id: SessionId, bookmark_id: UUID, title: str) -> Bookmark:
        await self._resolve_owned_bookmark(session_id, bookmark_id)
        return await self._core.services.bookmark.rename_bookmark(bookmark_id, title)

    async def move_bookmark(self, session_id: SessionId, bookmark_id: UUID, folder: UUID | None) -> Bookmark:
        await self._resolve_owned_bookmark(session_id, bookmark_id)
        return await self._core.services.bookmark.move_bookmark(bookmark_id, folder)

    async def copy_bookmark(self, session_id: SessionId, bookmark_id: UUID, folder: UUID | None) -> Bookmark:
        await self._resolve_owned_bookmark(session_id, bookmark_id)
        return await self._core.services.bookmark.copy_bookmark(bookmark_id, folder)

    async def delete_bookmark(self, session_id: SessionId, bookmark_id: UUID) -> None:
        await self._resolve_owned_bookmark(session_id, bookmark_id)
        await self._core.services.bookmark.delete_bookmark(bookmark_id)

    # === Private resolver methods ===
    async def _resolve_owned_folder(self, session_id: SessionId, folder_id: UUID) -> tuple[AuthContext, Folder]:
        """Resolve folder id for the current user. Raises NotFoundError or AccessDeniedError."""
        context = await self._core.services.access.ensure_authenticated(session_id)
        folder = await self._core.services.folder.get_folder(folder_id)
        self._core.services.access.ensure_owner(context, folder.user_id)
        return context, folder

    async def _resolve_owned_bookmark(self, session_id: SessionId, bookmark_id: UUID) -> tuple[AuthContext, Bookmark]:
        """Resolve bookmark id for the current user. Raises NotFoundError or AccessDeniedError."""
        context = await self._core.services.access.ensure_authenticated(session_id)
        bookmark = await self._core.services.bookmark.get_bookmark(bookmark_id)
        self._core.services.access.ensure_owner(context, bookmark.user_id)
        return context, bookmark
