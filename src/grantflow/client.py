"""Authorized HTTP client produced by a completed grant."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from grantflow.models.config import ClientConfig
from grantflow.models.credentials import Credentials
from grantflow.models.errors import ExpirationError, GrantStateError

logger = logging.getLogger(__name__)


class AuthorizedClient:
    """Makes API requests with the credentials obtained by a grant.

    Shares its HTTP client with the grant that created it. Closing either one
    closes the transport for both.
    """

    def __init__(
        self,
        credentials: Credentials,
        config: ClientConfig,
        http_client: httpx.AsyncClient,
    ):
        self.credentials = credentials
        self.config = config
        self._http_client: httpx.AsyncClient | None = http_client

    @property
    def identifier(self) -> str:
        return self.config.identifier

    @property
    def secret(self) -> str | None:
        return self.config.secret

    @property
    def access_token(self) -> str:
        return self.credentials.access_token

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request with a bearer ``Authorization`` header.

        Raises:
            ExpirationError: If the access token has expired
            GrantStateError: If the client has been closed
        """
        if self._http_client is None:
            raise GrantStateError("HTTP client has been closed.")

        if self.credentials.is_expired():
            # Refreshing is out of scope; the caller has to run a new grant
            raise ExpirationError(
                "OAuth2 credentials have expired and can't be refreshed.",
                self.credentials.expires_at,
            )

        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = self.credentials.authorization_header()

        logger.debug(f"Authorized {method} {url}")
        return await self._http_client.request(method, url, headers=headers, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client. Safe to call more than once."""
        if self._http_client is not None:
            await self._http_client.aclose()
        self._http_client = None
