"""Authorization code to token exchange.

Implements the RFC 6749 Section 4.1.3 access token request, including the
choice between HTTP Basic and request-body client authentication, and the
Section 5 interpretation of the token endpoint's response.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from grantflow.models.config import ClientConfig
from grantflow.models.credentials import Credentials
from grantflow.models.errors import AuthorizationError, TokenResponseError
from grantflow.primitives.basic_auth import basic_auth_header

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Sends authorization code token requests for one client.

    Uses application/x-www-form-urlencoded encoding as RFC 6749 requires.
    The HTTP client is borrowed, never closed here.
    """

    def __init__(self, config: ClientConfig, http_client: httpx.AsyncClient):
        self.config = config
        self._http_client = http_client

    def build_request(
        self,
        code: str,
        redirect_uri: str,
        code_verifier: str = "",
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Build the headers and form body for a token request.

        Returns:
            Tuple of (headers, form_data)
        """
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        form_data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        }
        if code_verifier:
            form_data["code_verifier"] = code_verifier

        if self.config.basic_auth and self.config.secret is not None:
            headers["Authorization"] = basic_auth_header(
                self.config.identifier, self.config.secret
            )
        else:
            # client_id is required whenever basic auth isn't used, even for
            # public clients with nothing to authenticate.
            form_data["client_id"] = self.config.identifier
            if self.config.secret is not None:
                form_data["client_secret"] = self.config.secret

        return headers, form_data

    async def exchange(
        self,
        code: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
        code_verifier: str = "",
    ) -> Credentials:
        """Exchange an authorization code for credentials.

        Args:
            code: Authorization code from the callback
            redirect_uri: The redirect URI sent in the authorization request
            scopes: Scopes originally requested
            code_verifier: PKCE verifier, empty if PKCE wasn't used

        Returns:
            Credentials: Parsed token response

        Raises:
            AuthorizationError: If the token endpoint reports an error
            TokenResponseError: If the response is malformed
            httpx.HTTPError: If the transport fails
        """
        headers, form_data = self.build_request(code, redirect_uri, code_verifier)

        logger.debug(
            f"Token request to {self.config.token_endpoint}: "
            f"client_auth={'basic' if 'Authorization' in headers else 'body'}, "
            f"pkce={'yes' if code_verifier else 'no'}"
        )

        start_time = time.time()
        response = await self._http_client.post(
            self.config.token_endpoint,
            data=form_data,
            headers=headers,
        )

        return handle_access_token_response(
            response, self.config.token_endpoint, start_time, scopes
        )


def handle_access_token_response(
    response: httpx.Response,
    token_endpoint: str,
    start_time: float,
    scopes: list[str] | None = None,
) -> Credentials:
    """Parse a token endpoint response into credentials.

    Successful responses (2xx) are validated per RFC 6749 Section 5.1, error
    responses per Section 5.2.

    Args:
        response: HTTP response from the token endpoint
        token_endpoint: Endpoint the request was sent to, for error messages
        start_time: Unix time the request was started, used for expiry
        scopes: Scopes that were requested

    Raises:
        AuthorizationError: If the server returned an OAuth error
        TokenResponseError: If the response is malformed
    """
    requested = list(scopes or [])

    if not response.is_success:
        _handle_error_response(response, token_endpoint)

    parameters = _parse_json_object(response, token_endpoint)

    def validate(condition: bool, message: str) -> None:
        if not condition:
            raise TokenResponseError(
                f'Invalid OAuth response for "{token_endpoint}": {message}.',
                token_endpoint,
            )

    access_token = parameters.get("access_token")
    validate(
        isinstance(access_token, str),
        'required parameter "access_token" was not a string, '
        f"was {access_token!r}",
    )

    token_type = parameters.get("token_type")
    validate(
        isinstance(token_type, str),
        f'required parameter "token_type" was not a string, was {token_type!r}',
    )
    # RFC 6749 Section 7.1: token type names are case-insensitive
    validate(
        token_type.lower() == "bearer",
        f'unknown token type "{token_type}"',
    )

    expires_in = parameters.get("expires_in")
    validate(
        expires_in is None
        or (isinstance(expires_in, int) and not isinstance(expires_in, bool)),
        f'parameter "expires_in" was not an int, was {expires_in!r}',
    )

    for name in ("refresh_token", "id_token", "scope"):
        value = parameters.get(name)
        validate(
            value is None or isinstance(value, str),
            f'parameter "{name}" was not a string, was {value!r}',
        )

    scope = parameters.get("scope")
    granted = scope.split() if scope is not None else requested

    logger.info(f"Token exchange with {token_endpoint} successful")

    return Credentials(
        access_token=access_token,
        token_type="Bearer",
        refresh_token=parameters.get("refresh_token"),
        id_token=parameters.get("id_token"),
        token_endpoint=token_endpoint,
        scopes=granted,
        requested_scopes=requested,
        expires_at=None if expires_in is None else start_time + expires_in,
    )


def _parse_json_object(response: httpx.Response, token_endpoint: str) -> dict[str, Any]:
    try:
        parameters = response.json()
    except ValueError as e:
        raise TokenResponseError(
            f'Invalid OAuth response for "{token_endpoint}": '
            f"invalid JSON: {e}.\n\n{response.text}",
            token_endpoint,
        ) from e

    if not isinstance(parameters, dict):
        raise TokenResponseError(
            f'Invalid OAuth response for "{token_endpoint}": '
            f"was not a JSON object.\n\n{response.text}",
            token_endpoint,
        )
    return parameters


def _handle_error_response(response: httpx.Response, token_endpoint: str) -> None:
    """Raise the error described by a non-2xx token endpoint response."""
    parameters = _parse_json_object(response, token_endpoint)

    error = parameters.get("error")
    if not isinstance(error, str):
        raise TokenResponseError(
            f'Invalid OAuth response for "{token_endpoint}": '
            f'status {response.status_code} without a string "error" parameter.',
            token_endpoint,
        )

    description = parameters.get("error_description")
    uri = parameters.get("error_uri")

    logger.warning(
        f"Token exchange failed with {response.status_code}: "
        f"{error} - {description or 'No description provided'}"
    )

    raise AuthorizationError(
        error,
        description if isinstance(description, str) else None,
        httpx.URL(uri) if isinstance(uri, str) else None,
    )
