from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from xmarks.web.deps import AppDep, AuthContextDep, SessionIdDep
from xmarks.web.openapi import ErrorResponse

# Browser-facing login endpoints, mounted without the API prefix
login_router = APIRouter(tags=["auth"])
router = APIRouter(tags=["auth"])


class SessionInfo(BaseModel):
    """Authenticated session summary."""

    user_id: str = Field(..., description="External identity ID")
    username: str = Field(..., description="Username on the identity provider")


@login_router.get(
    "/auth/x",
    summary="Start login",
    description="Redirect to the identity provider's authorization page (OAuth2 with PKCE).",
    operation_id="startLogin",
    status_code=302,
    responses={
        302: {"description": "Redirect to the identity provider"},
        500: {"model": ErrorResponse, "description": "Session could not be saved"},
    },
)
async def start_login(app: AppDep, session_id: SessionIdDep) -> RedirectResponse:
    authorization_url = await app.start_login(session_id)
    return RedirectResponse(authorization_url, status_code=302)


@login_router.get(
    "/auth/x/callback",
    summary="Login callback",
    description="Validate the state, exchange the code for tokens and sign the user in.",
    operation_id="loginCallback",
    status_code=302,
    responses={
        302: {"description": "Signed in, redirect to the landing page"},
        400: {"model": ErrorResponse, "description": "Missing parameters, state mismatch or expired login"},
        403: {"model": ErrorResponse, "description": "Provider rejected the client"},
        502: {"model": ErrorResponse, "description": "Profile could not be fetched"},
    },
)
async def login_callback(
    app: AppDep,
    session_id: SessionIdDep,
    code: Annotated[str | None, Query(description="Authorization code")] = None,
    state: Annotated[str | None, Query(description="State token from the login request")] = None,
) -> RedirectResponse:
    landing_url = await app.handle_callback(session_id, code, state)
    return RedirectResponse(landing_url, status_code=302)


@router.get(
    "/auth/session",
    summary="Check session",
    description="Return the authenticated user of the current session.",
    operation_id="checkSession",
    responses={
        200: {"description": "Session is authenticated"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def check_session(context: AuthContextDep) -> SessionInfo:
    return SessionInfo(user_id=context.user_id, username=context.username)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Destroy the current session. Succeeds even when the login has expired.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        500: {"model": ErrorResponse, "description": "Session store unavailable"},
    },
)
async def logout(app: AppDep, session_id: SessionIdDep) -> None:
    await app.logout(session_id)
