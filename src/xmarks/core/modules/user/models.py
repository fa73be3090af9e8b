from datetime import datetime

from pydantic import BaseModel, Field

from xmarks.core.db import MongoModel
from xmarks.utils import now


class User(MongoModel):
    """Local user bound to an external identity.

    Indexed on user_id - unique, username - unique among non-null values.
    """

    user_id: str  # External identity id from the provider
    username: str | None  # None once another identity has taken the name over
    refresh_token: str | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    user_id: str = Field(..., description="External identity ID")
    username: str | None = Field(
        ..., description="Username on the identity provider, null if another account has taken it over"
    )

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(user_id=user.user_id, username=user.username)
