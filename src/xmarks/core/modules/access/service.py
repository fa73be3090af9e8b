from datetime import datetime

from xmarks.core.core import Service
from xmarks.core.modules.session.models import AuthContext, SessionData, SessionId
from xmarks.errors import AccessDeniedError, AuthenticationError, SessionExpiredError
from xmarks.utils import now


def check_session(session: SessionData, at: datetime | None = None) -> AuthContext:
    """Validate an authenticated session without side effects.

    Raises:
        AuthenticationError: No user or no tokens in the session
        SessionExpiredError: The access token expired at or before `at`
    """
    if session.user is None or session.tokens is None:
        raise AuthenticationError
    if (at or now()) >= session.tokens.expires_at:
        raise SessionExpiredError
    return AuthContext(
        user_id=session.user.user_id,
        username=session.user.username,
        access_token=session.tokens.access_token,
    )


class AccessService(Service):
    async def ensure_authenticated(self, session_id: SessionId) -> AuthContext:
        """Ensure the session holds a valid, unexpired login."""
        session = await self.core.services.session.load(session_id)
        return check_session(session)

    def ensure_owner(self, context: AuthContext, owner_id: str) -> None:
        """Ensure the authenticated user owns the resource."""
        if context.user_id != owner_id:
            raise AccessDeniedError("Access denied: resource belongs to a different user")
