import httpx
import pydantic
import structlog

from xmarks.config import Config
from xmarks.core.modules.oauth.models import ProviderProfile, TokenResponse
from xmarks.errors import ProfileFetchError, TokenExchangeError

logger = structlog.get_logger(__name__)


class ProviderClient:
    """HTTP client for the identity provider's token and profile endpoints.

    Request bodies and responses carry secrets, so nothing but status codes and
    error type names is ever logged.
    """

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.oauth_http_timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def exchange_code(self, code: str, code_verifier: str) -> TokenResponse:
        """Exchange an authorization code plus PKCE verifier for tokens."""
        config = self._config
        try:
            response = await self._client.post(
                config.oauth_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": config.oauth_callback_url,
                    "client_id": config.oauth_client_id,
                    "code_verifier": code_verifier,
                },
                auth=(config.oauth_client_id, config.oauth_client_secret.get_secret_value()),
            )
        except httpx.HTTPError as e:
            logger.warning("token_exchange_transport_error", error=type(e).__name__)
            raise TokenExchangeError from e

        if response.status_code in (401, 403):
            logger.warning("token_exchange_rejected", status=response.status_code)
            raise TokenExchangeError("Forbidden: check callback URL or client settings", status_code=403)
        if response.status_code == 400:
            logger.warning("token_exchange_rejected", status=response.status_code)
            raise TokenExchangeError("Bad request: invalid authorization code", status_code=400)
        if response.is_error:
            logger.warning("token_exchange_failed", status=response.status_code)
            raise TokenExchangeError

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as e:
            logger.warning("token_exchange_malformed_response", error=type(e).__name__)
            raise TokenExchangeError from e

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """Fetch the authenticated user's profile with a bearer token."""
        try:
            response = await self._client.get(
                self._config.oauth_profile_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            return ProviderProfile.model_validate(response.json()["data"])
        except httpx.HTTPStatusError as e:
            logger.warning("profile_fetch_failed", status=e.response.status_code)
            raise ProfileFetchError from e
        except (httpx.HTTPError, ValueError, KeyError, TypeError, pydantic.ValidationError) as e:
            logger.warning("profile_fetch_failed", error=type(e).__name__)
            raise ProfileFetchError from e
