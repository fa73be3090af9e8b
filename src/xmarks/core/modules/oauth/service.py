import secrets
from datetime import timedelta
from typing import Any
from urllib.parse import urlencode

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from xmarks.core.core import Service
from xmarks.core.modules.oauth.client import ProviderClient
from xmarks.core.modules.oauth.pkce import generate_code_challenge, generate_code_verifier, generate_state
from xmarks.core.modules.session.models import OAuthState, SessionId, SessionTokens, SessionUser
from xmarks.errors import CsrfMismatchError, StateExpiredError, ValidationError
from xmarks.utils import now

logger = structlog.get_logger(__name__)


class OAuthService(Service):
    """Authorization-code-with-PKCE login against the identity provider.

    Per session: ANONYMOUS -> PENDING(state, verifier) -> AUTHENTICATED, or back
    to ANONYMOUS when the callback fails. A pending state is consumed by the
    first callback that sees it, whatever the outcome.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._provider: ProviderClient | None = None

    async def on_start(self) -> None:
        self._provider = ProviderClient(self.core.config, transport=self.core.http_transport)

    async def on_stop(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None

    @property
    def provider(self) -> ProviderClient:
        if self._provider is None:
            raise RuntimeError("Provider client not started")
        return self._provider

    async def start_login(self, session_id: SessionId) -> str:
        """Record a pending login in the session and return the authorization URL.

        The session is persisted before the URL is handed out; a callback could
        not be validated against an unsaved state.
        """
        config = self.core.config
        state = generate_state()
        code_verifier = generate_code_verifier()

        session = await self.core.services.session.load(session_id)
        session.oauth_state = OAuthState(state=state, code_verifier=code_verifier, created_at=now())
        await self.core.services.session.save(session_id, session)

        params = {
            "response_type": "code",
            "client_id": config.oauth_client_id,
            "redirect_uri": config.oauth_callback_url,
            "scope": " ".join(config.oauth_scopes),
            "state": state,
            "code_challenge": generate_code_challenge(code_verifier),
            "code_challenge_method": "S256",
        }
        logger.info("login_started")
        return f"{config.oauth_authorize_url}?{urlencode(params)}"

    async def handle_callback(self, session_id: SessionId, code: object, state: object) -> str:
        """Complete the login and return the landing URL."""
        sessions = self.core.services.session
        session = await sessions.load(session_id)

        pending = session.oauth_state
        if pending is None:
            raise CsrfMismatchError

        # Single use: cleared before anything else can fail
        session.oauth_state = None
        await sessions.save(session_id, session)

        if not isinstance(code, str) or not isinstance(state, str) or not code or not state:
            raise ValidationError("Invalid request: missing code or state")
        if not secrets.compare_digest(pending.state, state):
            raise CsrfMismatchError
        if now() - pending.created_at > timedelta(seconds=self.core.config.oauth_state_ttl_seconds):
            raise StateExpiredError

        tokens = await self.provider.exchange_code(code, pending.code_verifier)
        profile = await self.provider.fetch_profile(tokens.access_token)
        user = await self.core.services.user.upsert_user(profile.id, profile.username, tokens.refresh_token)

        session.tokens = SessionTokens(
            access_token=tokens.access_token,
            expires_at=now() + timedelta(seconds=tokens.expires_in),
        )
        session.user = SessionUser(user_id=user.user_id, username=profile.username)
        await sessions.save(session_id, session)

        logger.info("login_completed", user_id=user.user_id)
        return self.core.config.login_redirect_url

    async def logout(self, session_id: SessionId) -> None:
        await self.core.services.session.destroy(session_id)
        logger.info("logout")
