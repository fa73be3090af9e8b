from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Token endpoint answer. Only the fields used by the login flow are kept."""

    access_token: str = Field(..., repr=False)
    expires_in: int = Field(..., gt=0)
    refresh_token: str | None = Field(None, repr=False)
    token_type: str = "bearer"
    scope: str | None = None


class ProviderProfile(BaseModel):
    """The `data` object of the provider's profile endpoint."""

    id: str
    username: str
    name: str | None = None
