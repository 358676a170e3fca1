"""OAuth2 authentication for Google Workspace APIs."""

import logging
import urllib.parse
from datetime import UTC, datetime, timedelta

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from workspace_functions.config import Settings
from workspace_functions.exceptions import AuthenticationError, RateLimitError

logger = logging.getLogger(__name__)

# OAuth token refresh timeout in seconds
OAUTH_REFRESH_TIMEOUT = 30.0

OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
]


class GoogleOAuthManager:
    """Manages Google OAuth tokens for the Workspace account.

    Exchanges the configured refresh token for short-lived access tokens and
    caches them until five minutes before expiry.
    """

    OAUTH_ENDPOINT = "https://oauth2.googleapis.com/token"  # noqa: S105
    AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str = "",
        redirect_uri: str = "urn:ietf:wg:oauth:2.0:oob",
        scopes: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize OAuth manager.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            refresh_token: Refresh token for API access
            redirect_uri: Redirect URI registered for the client
            scopes: OAuth scopes to request in the consent flow
            transport: Optional httpx transport (tests)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.redirect_uri = redirect_uri
        self.scopes = scopes or list(OAUTH_SCOPES)
        self._transport = transport
        self._access_token: str | None = None
        self._token_expiry: datetime | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleOAuthManager":
        return cls(
            client_id=settings.oauth_client_id,
            client_secret=settings.oauth_client_secret,
            refresh_token=settings.oauth_refresh_token,
            redirect_uri=settings.oauth_redirect_uri,
        )

    async def get_access_token(self) -> str:
        """Get a valid access token, refreshing if needed.

        Raises:
            AuthenticationError: If token refresh fails
        """
        if self._is_token_valid():
            return self._access_token  # type: ignore[return-value]

        return await self._refresh_token()

    def _is_token_valid(self) -> bool:
        if not self._access_token or not self._token_expiry:
            return False
        # Add 5 minute buffer before expiry
        return datetime.now(UTC) < (self._token_expiry - timedelta(minutes=5))

    @retry(
        retry=retry_if_exception_type((RateLimitError, httpx.TransportError)),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _refresh_token(self) -> str:
        """Refresh the OAuth access token with retry logic.

        Rate limits and connection errors are retried three times;
        a rejected refresh token is not.
        """
        if not self.refresh_token:
            raise AuthenticationError("No OAuth refresh token configured", service="oauth")

        try:
            async with httpx.AsyncClient(
                timeout=OAUTH_REFRESH_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.post(
                    self.OAUTH_ENDPOINT,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
        except httpx.TimeoutException as e:
            logger.error(f"OAuth token refresh timeout after {OAUTH_REFRESH_TIMEOUT}s")
            raise AuthenticationError(
                "OAuth token refresh timed out", service="oauth", status_code=504
            ) from e

        if response.status_code == 429:
            logger.warning("OAuth rate limit hit, will retry")
            raise RateLimitError("OAuth rate limit exceeded", service="oauth")

        if response.status_code != 200:
            # Don't log full response text - may contain sensitive info
            logger.error(f"Token refresh failed: HTTP {response.status_code}")
            raise AuthenticationError("Failed to refresh OAuth token", service="oauth")

        data = response.json()
        self._access_token = data["access_token"]
        expires_in = data.get("expires_in", 3600)
        self._token_expiry = datetime.now(UTC) + timedelta(seconds=expires_in)

        logger.info("OAuth token refreshed successfully")
        return self._access_token

    async def get_auth_headers(self) -> dict[str, str]:
        """Authorization headers with a valid bearer token."""
        token = await self.get_access_token()
        return {"Authorization": f"Bearer {token}"}

    def generate_auth_url(self) -> str:
        """Build the consent URL used to obtain a refresh token."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.AUTH_ENDPOINT}?{urllib.parse.urlencode(params)}"

    async def exchange_code(self, code: str) -> dict[str, str]:
        """Exchange an authorization code for access and refresh tokens.

        Raises:
            AuthenticationError: If the exchange fails or returns no refresh token
        """
        async with httpx.AsyncClient(
            timeout=OAUTH_REFRESH_TIMEOUT, transport=self._transport
        ) as client:
            response = await client.post(
                self.OAUTH_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
            )

        if response.status_code != 200:
            logger.error(f"Authorization code exchange failed: HTTP {response.status_code}")
            raise AuthenticationError("Failed to exchange authorization code", service="oauth")

        data = response.json()
        if not data.get("access_token") or not data.get("refresh_token"):
            raise AuthenticationError("Token response missing access or refresh token", service="oauth")

        self.refresh_token = data["refresh_token"]
        self._access_token = data["access_token"]
        self._token_expiry = datetime.now(UTC) + timedelta(seconds=data.get("expires_in", 3600))

        return {"access_token": data["access_token"], "refresh_token": data["refresh_token"]}
