"""Authorization callback validation.

Checks the parameters an authorization server attaches to the redirect
(RFC 6749 Section 4.1.2) against the state remembered from the request.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from urllib.parse import parse_qs, urlparse

import httpx

from grantflow.models.errors import (
    AuthorizationError,
    AuthorizationResponseError,
    StateValidationError,
)
from grantflow.models.flow import AuthorizationResponse

logger = logging.getLogger(__name__)


def validate_state(expected: str, actual: str | None, endpoint: str) -> None:
    """Validate the callback state parameter matches the one we sent.

    Raises:
        StateValidationError: If the state is missing or different
    """
    if actual is None:
        raise StateValidationError(
            f'Invalid OAuth response for "{endpoint}": parameter "state" '
            f'expected to be "{expected}", was missing.',
            expected,
            actual,
        )
    if not secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8")):
        raise StateValidationError(
            f'Invalid OAuth response for "{endpoint}": parameter "state" '
            f'expected to be "{expected}", was "{actual}".',
            expected,
            actual,
        )


def validate_authorization_response(
    parameters: Mapping[str, str],
    expected_state: str | None,
    endpoint: str,
) -> str:
    """Validate callback parameters and return the authorization code.

    State is checked first, since a forged redirect could carry either a
    code or an error.

    Args:
        parameters: Query parameters from the redirect
        expected_state: State sent in the authorization request, if any
        endpoint: Authorization endpoint, for error messages

    Returns:
        The authorization code

    Raises:
        StateValidationError: If state was sent and doesn't come back intact
        AuthorizationError: If the server reported an error
        AuthorizationResponseError: If neither code nor error is present
    """
    response = AuthorizationResponse.from_params(parameters)

    if expected_state is not None:
        try:
            validate_state(expected_state, response.state, endpoint)
        except StateValidationError:
            logger.warning(f"Authorization callback state mismatch for {endpoint}")
            raise

    if response.is_error():
        logger.warning(
            f"Authorization callback contained error: {response.error} - "
            f"{response.error_description}"
        )
        raise AuthorizationError(
            response.error,
            response.error_description,
            httpx.URL(response.error_uri) if response.error_uri is not None else None,
        )

    if response.code is None:
        raise AuthorizationResponseError(
            f'Invalid OAuth response for "{endpoint}": did not contain '
            'required parameter "code".'
        )

    logger.info("Authorization callback successful - received authorization code")
    return response.code


def parse_callback_url(callback_url: str) -> dict[str, str]:
    """Extract single-valued query parameters from a redirect URL.

    Raises:
        AuthorizationResponseError: If the URL can't be parsed
    """
    try:
        query_params = parse_qs(
            urlparse(callback_url).query, keep_blank_values=True
        )
    except ValueError as e:
        raise AuthorizationResponseError(
            f"Failed to parse callback URL: {e}"
        ) from e

    return {key: values[0] for key, values in query_params.items() if values}
