from xmarks.web.routers.auth import login_router
from xmarks.web.routers.auth import router as auth_router
from xmarks.web.routers.bookmarks import router as bookmarks_router
from xmarks.web.routers.folders import router as folders_router
from xmarks.web.routers.profile import router as profile_router

__all__ = [
    "auth_router",
    "bookmarks_router",
    "folders_router",
    "login_router",
    "profile_router",
]
