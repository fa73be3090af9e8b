from pydantic import SecretStr
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    session_secret_key: str  # Signs the session id cookie
    session_ttl_hours: int = 12
    session_cache_max_entries: int = 10_000  # LRU bound for the in-memory session store
    redis_url: str | None = None  # Shared session cache, falls back to in-memory when unset or unreachable
    cors_origins: list[str] = []
    login_redirect_url: str = "/dashboard"  # Where the browser lands after a successful login

    oauth_client_id: str
    oauth_client_secret: SecretStr
    oauth_callback_url: str  # e.g. https://xmarks.app/auth/x/callback
    oauth_authorize_url: str = "https://twitter.com/i/oauth2/authorize"
    oauth_token_url: str = "https://api.twitter.com/2/oauth2/token"
    oauth_profile_url: str = "https://api.twitter.com/2/users/me"
    oauth_scopes: list[str] = ["users.read", "offline.access", "tweet.read", "bookmark.read", "bookmark.write"]
    oauth_state_ttl_seconds: int = 300
    oauth_http_timeout: float = 10.0

    model_config = {
        "env_file": [".env"],
        "env_prefix": "XMARKS_",
        "extra": "ignore",
    }

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_hours * 60 * 60
