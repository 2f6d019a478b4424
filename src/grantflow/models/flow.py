"""Authorization flow models for the OAuth 2.0 authorization code grant.

Contains the grant phase enum plus models for authorization requests and
callback handling.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import httpx


class GrantPhase(str, Enum):
    """Phases of an authorization code grant. Only ever advance forward."""

    INITIAL = "initial"
    AWAITING_RESPONSE = "awaitingResponse"
    FINISHED = "finished"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters (RFC 6749 Section 4.1.1)."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    scopes: list[str] = field(default_factory=list)
    state: str | None = None
    code_challenge: str | None = None  # RFC 7636
    code_challenge_method: str | None = None

    def to_query_params(self) -> dict[str, str]:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }

        if self.state is not None:
            params["state"] = self.state
        if self.scopes:
            params["scope"] = " ".join(self.scopes)
        if self.code_challenge is not None:
            params["code_challenge"] = self.code_challenge
            params["code_challenge_method"] = self.code_challenge_method or "S256"

        return params

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL.

        Parameters are merged into any query string already present on the
        authorization endpoint, so existing endpoint parameters survive.
        """
        url = httpx.URL(self.authorization_endpoint)
        return str(url.copy_merge_params(self.to_query_params()))


@dataclass(frozen=True)
class AuthorizationResponse:
    """Parameters the authorization server attached to the redirect."""

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    @classmethod
    def from_params(cls, parameters: Mapping[str, str]) -> AuthorizationResponse:
        return cls(
            code=parameters.get("code"),
            state=parameters.get("state"),
            error=parameters.get("error"),
            error_description=parameters.get("error_description"),
            error_uri=parameters.get("error_uri"),
        )

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None
