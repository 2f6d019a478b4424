"""Credentials issued by the token endpoint."""

from __future__ import annotations

import time

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Access credentials obtained from an authorization code exchange.

    ``scopes`` holds the scopes the server granted, which may differ from
    ``requested_scopes``. When the server doesn't say, the requested scopes
    are assumed to have been granted (RFC 6749 Section 5.1).
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    id_token: str | None = None
    token_endpoint: str | None = None
    scopes: list[str] = Field(default_factory=list)
    requested_scopes: list[str] = Field(default_factory=list)
    expires_at: float | None = None  # Unix timestamp

    def is_expired(self, buffer_seconds: float = 0.0) -> bool:
        """Check whether the access token has expired.

        Args:
            buffer_seconds: Treat the token as expired this many seconds early
        """
        if self.expires_at is None:
            return False  # No expiry means token doesn't expire
        return time.time() >= (self.expires_at - buffer_seconds)

    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"
