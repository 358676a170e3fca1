"""Shared HTTP plumbing for the Workspace API wrappers."""

import logging
from typing import Any

import httpx

from workspace_functions.exceptions import (
    AuthenticationError,
    GoogleAPIError,
    RateLimitError,
)
from workspace_functions.google.auth import GoogleOAuthManager

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class GoogleAPIClient:
    """Base class: authenticated requests and status-code error mapping."""

    service = "google"

    def __init__(
        self,
        oauth_manager: GoogleOAuthManager,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.oauth_manager = oauth_manager
        self._transport = transport
        self._timeout = timeout

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request and raise on non-2xx responses."""
        request_headers = await self.oauth_manager.get_auth_headers()
        if headers:
            request_headers.update(headers)

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.request(
                method,
                url,
                params=params,
                json=json,
                content=content,
                headers=request_headers,
            )

        if response.is_success:
            return response

        self._raise_for_status(response)
        return response  # pragma: no cover

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        message = _error_message(response)

        if status in (401, 403):
            raise AuthenticationError(message, service=self.service, status_code=status)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                message,
                service=self.service,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        raise GoogleAPIError(message, service=self.service, status_code=status)

    async def _get_json(self, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request("GET", url, **kwargs)
        return response.json()


def _error_message(response: httpx.Response) -> str:
    """Pull the error message out of a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    if isinstance(error, str):
        return body.get("error_description", error)
    return f"HTTP {response.status_code}"
