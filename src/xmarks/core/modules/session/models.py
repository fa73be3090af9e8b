"""Server-side session state."""

from datetime import datetime
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field

SessionId = NewType("SessionId", str)


class OAuthState(BaseModel):
    """Pending authorization request awaiting its callback."""

    state: str = Field(..., repr=False)
    code_verifier: str = Field(..., repr=False)
    created_at: datetime


class SessionTokens(BaseModel):
    access_token: str = Field(..., repr=False)
    expires_at: datetime


class SessionUser(BaseModel):
    user_id: str
    username: str


class SessionData(BaseModel):
    """Everything stored under one session id.

    At most one login is in flight per session; `tokens` and `user` are set
    together once the callback succeeds.
    """

    oauth_state: OAuthState | None = None
    tokens: SessionTokens | None = None
    user: SessionUser | None = None


class AuthContext(BaseModel):
    """Read-only view of the authenticated session handed to operations."""

    user_id: str
    username: str
    access_token: str = Field(..., repr=False)

    model_config = ConfigDict(frozen=True)
