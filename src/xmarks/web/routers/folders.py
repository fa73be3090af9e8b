"""Folder-related API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from xmarks.core.modules.bookmark.models import Bookmark
from xmarks.core.modules.folder.models import Folder, FolderDeleteResult
from xmarks.web.deps import AppDep, SessionIdDep
from xmarks.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["folders"])


class CreateFolderRequest(BaseModel):
    """Request to create a folder."""

    name: str = Field(..., description="Folder name, unique among its siblings", min_length=1)
    is_parent_root: bool = Field(..., description="True for a top-level folder")
    parent_folder: UUID | None = Field(None, description="Parent folder ID, required unless is_parent_root")


class RenameFolderRequest(BaseModel):
    name: str = Field(..., description="New folder name", min_length=1)


class MoveFolderRequest(BaseModel):
    new_parent_folder: UUID | None = Field(None, description="New parent folder ID, null to make it a root folder")


class CopyFolderRequest(BaseModel):
    new_name: str | None = Field(None, description="Name for the copy, defaults to the source name")


@router.get(
    "/folders",
    summary="List folders",
    description="Get all folders of the current user.",
    operation_id="listFolders",
    responses={
        200: {"description": "List of folders"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_folders(app: AppDep, session_id: SessionIdDep) -> list[Folder]:
    return await app.get_folders(session_id)


@router.get(
    "/folders/search",
    summary="Search folders",
    description="Case-insensitive substring search on the current user's folder names.",
    operation_id="searchFolders",
    responses={
        200: {"description": "Matching folders"},
        400: {"model": ErrorResponse, "description": "Empty query"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def search_folders(
    app: AppDep, session_id: SessionIdDep, query: Annotated[str, Query(description="Text to look for")]
) -> list[Folder]:
    return await app.search_folders(session_id, query)


@router.post(
    "/folders",
    summary="Create folder",
    description="Create a root folder or a child of one of your folders.",
    operation_id="createFolder",
    status_code=201,
    responses={
        201: {"description": "Folder created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid hierarchy or input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Parent folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Parent folder not found"},
        409: {"model": ErrorResponse, "description": "A sibling folder already has this name"},
    },
)
async def create_folder(request: CreateFolderRequest, app: AppDep, session_id: SessionIdDep) -> Folder:
    return await app.create_folder(session_id, request.name, request.parent_folder, request.is_parent_root)


@router.get(
    "/folders/{folder_id}",
    summary="Get folder",
    operation_id="getFolder",
    responses={
        200: {"description": "Folder details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
    },
)
async def get_folder(folder_id: UUID, app: AppDep, session_id: SessionIdDep) -> Folder:
    return await app.get_folder(session_id, folder_id)


@router.get(
    "/folders/{folder_id}/bookmarks",
    summary="List folder bookmarks",
    description="Get the bookmarks filed directly in a folder.",
    operation_id="listFolderBookmarks",
    responses={
        200: {"description": "List of bookmarks"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
    },
)
async def list_folder_bookmarks(folder_id: UUID, app: AppDep, session_id: SessionIdDep) -> list[Bookmark]:
    return await app.get_folder_bookmarks(session_id, folder_id)


@router.patch(
    "/folders/{folder_id}",
    summary="Rename folder",
    operation_id="renameFolder",
    responses={
        200: {"description": "Folder renamed successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
        409: {"model": ErrorResponse, "description": "A sibling folder already has this name"},
    },
)
async def rename_folder(folder_id: UUID, request: RenameFolderRequest, app: AppDep, session_id: SessionIdDep) -> Folder:
    return await app.rename_folder(session_id, folder_id, request.name)


@router.put(
    "/folders/{folder_id}/move",
    summary="Move folder",
    description="Move a folder under a new parent, or to the top level with a null parent.",
    operation_id="moveFolder",
    responses={
        200: {"description": "Folder moved successfully"},
        400: {"model": ErrorResponse, "description": "Move would create a cycle"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder or target belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder or target not found"},
        409: {"model": ErrorResponse, "description": "Target already has a folder with this name"},
    },
)
async def move_folder(folder_id: UUID, request: MoveFolderRequest, app: AppDep, session_id: SessionIdDep) -> Folder:
    return await app.move_folder(session_id, folder_id, request.new_parent_folder)


@router.post(
    "/folders/{folder_id}/copy",
    summary="Copy folder",
    description=(
        "Create a sibling copy of the folder node. Child folders and bookmarks are not copied. "
        "A taken name gets a numeric suffix (\"Name 2\", \"Name 3\", ...)."
    ),
    operation_id="copyFolder",
    status_code=201,
    responses={
        201: {"description": "Folder copied successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
    },
)
async def copy_folder(
    folder_id: UUID, app: AppDep, session_id: SessionIdDep, request: CopyFolderRequest | None = None
) -> Folder:
    return await app.copy_folder(session_id, folder_id, request.new_name if request else None)


@router.delete(
    "/folders/{folder_id}",
    summary="Delete folder",
    description="Delete a folder together with all descendant folders and their bookmarks.",
    operation_id="deleteFolder",
    responses={
        200: {"description": "Folder and its contents deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Folder belongs to another user"},
        404: {"model": ErrorResponse, "description": "Folder not found"},
    },
)
async def delete_folder(folder_id: UUID, app: AppDep, session_id: SessionIdDep) -> FolderDeleteResult:
    return await app.delete_folder(session_id, folder_id)
