"""Bookmark-related API endpoints."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from xmarks.core.modules.bookmark.models import Bookmark
from xmarks.web.deps import AppDep, SessionIdDep
from xmarks.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["bookmarks"])


class CreateBookmarkRequest(BaseModel):
    """Request to create a bookmark."""

    title: str = Field(..., description="Bookmark title")
    url: str = Field(..., description="Bookmarked URL", min_length=1)
    folder: UUID | None = Field(None, description="Folder to file the bookmark in")


class RenameBookmarkRequest(BaseModel):
    title: str = Field(..., description="New title")


class BookmarkFolderRequest(BaseModel):
    """Target folder for move and copy; null means unfiled."""

    folder: UUID | None = Field(None, description="Target folder ID")


@router.get(
    "/bookmarks",
    summary="List bookmarks",
    description="Get all bookmarks of the current user, newest first.",
    operation_id="listBookmarks",
    responses={
        200: {"description": "List of bookmarks"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_bookmarks(app: AppDep, session_id: SessionIdDep) -> list[Bookmark]:
    return await app.get_bookmarks(session_id)


@router.post(
    "/bookmarks",
    summary="Create bookmark",
    operation_id="createBookmark",
    status_code=201,
    responses={
        201: {"description": "Bookmark created successfully"},
        400: {"model": ErrorResponse, "description": "Blank title or url"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
    },
)
async def create_bookmark(request: CreateBookmarkRequest, app: AppDep, session_id: SessionIdDep) -> Bookmark:
    return await app.create_bookmark(session_id, request.title, request.url, request.folder)


@router.get(
    "/bookmarks/{bookmark_id}",
    summary="Get bookmark",
    operation_id="getBookmark",
    responses={
        200: {"description": "Bookmark details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Bookmark belongs to another user"},
        404: {"model": ErrorResponse, "description": "Bookmark not found"},
    },
)
async def get_bookmark(bookmark_id: UUID, app: AppDep, session_id: SessionIdDep) -> Bookmark:
    return await app.get_bookmark(session_id, bookmark_id)


@router.patch(
    "/bookmarks/{bookmark_id}",
    summary="Rename bookmark",
    operation_id="renameBookmark",
    responses={
        200: {"description": "Bookmark renamed successfully"},
        400: {"model": ErrorResponse, "description": "Blank title"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Bookmark belongs to another user"},
        404: {"model": ErrorResponse, "description": "Bookmark not found"},
    },
)
async def rename_bookmark(
    bookmark_id: UUID, request: RenameBookmarkRequest, app: AppDep, session_id: SessionIdDep
) -> Bookmark:
    return await app.rename_bookmark(session_id, bookmark_id, request.title)


@router.put(
    "/bookmarks/{bookmark_id}/move",
    summary="Move bookmark",
    description="File the bookmark in another folder. Moving to its current folder is a no-op.",
    operation_id="moveBookmark",
    responses={
        200: {"description": "Bookmark moved successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Bookmark or folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Bookmark or folder not found"},
    },
)
async def move_bookmark(
    bookmark_id: UUID, request: BookmarkFolderRequest, app: AppDep, session_id: SessionIdDep
) -> Bookmark:
    return await app.move_bookmark(session_id, bookmark_id, request.folder)


@router.post(
    "/bookmarks/{bookmark_id}/copy",
    summary="Copy bookmark",
    description="Create a new bookmark with the same title and url in the target folder.",
    operation_id="copyBookmark",
    status_code=201,
    responses={
        201: {"description": "Bookmark copied successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Bookmark or folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Bookmark or folder not found"},
    },
)
async def copy_bookmark(
    bookmark_id: UUID, request: BookmarkFolderRequest, app: AppDep, session_id: SessionIdDep
) -> Bookmark:
    return await app.copy_bookmark(session_id, bookmark_id, request.folder)


@router.delete(
    "/bookmarks/{bookmark_id}",
    summary="Delete bookmark",
    operation_id="deleteBookmark",
    status_code=204,
    responses={
        204: {"description": "Bookmark deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Bookmark belongs to another user"},
        404: {"model": ErrorResponse, "description": "Bookmark not found"},
    },
)
async def delete_bookmark(bookmark_id: UUID, app: AppDep, session_id: SessionIdDep) -> None:
    await app.delete_bookmark(session_id, bookmark_id)
