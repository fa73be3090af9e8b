from typing import Annotated, cast

from fastapi import Depends, Request

from xmarks.app import App
from xmarks.core.modules.session.models import AuthContext, SessionId
from xmarks.core.modules.session.service import new_session_id

SESSION_KEY = "sid"


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_session_id(request: Request) -> SessionId:
    """Session id from the signed session cookie, issuing a fresh one if absent.

    Only the id travels in the cookie; session data stays server-side.
    """
    session_id = request.session.get(SESSION_KEY)
    if not isinstance(session_id, str) or not session_id:
        session_id = new_session_id()
        request.session[SESSION_KEY] = session_id
    return SessionId(session_id)


async def get_auth_context(
    app: Annotated[App, Depends(get_app)],
    session_id: Annotated[SessionId, Depends(get_session_id)],
) -> AuthContext:
    """Reject the request unless the session holds a valid login."""
    return await app.check_session(session_id)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SessionIdDep = Annotated[SessionId, Depends(get_session_id)]
AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
