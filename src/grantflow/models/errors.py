"""Exception hierarchy for the authorization code grant.

Misuse of the grant's call order raises ``GrantStateError``, which is a
``RuntimeError`` and deliberately outside the ``OAuth2Error`` tree. Everything
caused by what a server or caller handed us derives from ``OAuth2Error``.
"""

from __future__ import annotations

import httpx


class GrantStateError(RuntimeError):
    """Raised when grant operations are called out of order or twice.

    This is a programming error in the calling code, not a retryable condition.
    """

    pass


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class AuthorizationResponseError(OAuth2Error):
    """Raised when authorization callback parameters are malformed."""

    pass


class StateValidationError(AuthorizationResponseError):
    """Raised when the callback state parameter is missing or doesn't match.

    This could indicate a CSRF attack or a misbehaving authorization server.
    """

    def __init__(self, message: str, expected: str, actual: str | None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class FlowStateError(OAuth2Error):
    """Raised when a serialized flow state can't be loaded."""

    def __init__(self, message: str, field: str | None, raw: str):
        super().__init__(message)
        self.field = field
        self.raw = raw


class TokenError(OAuth2Error):
    """Raised when token operations fail."""

    pass


class TokenResponseError(TokenError):
    """Raised when the token endpoint returns a response we can't interpret."""

    def __init__(self, message: str, token_endpoint: str):
        super().__init__(message)
        self.token_endpoint = token_endpoint


class AuthorizationError(OAuth2Error):
    """Raised when the authorization server reports an error.

    Carries the ``error``, ``error_description`` and ``error_uri`` values
    exactly as the server sent them.
    """

    def __init__(
        self,
        error: str,
        description: str | None = None,
        uri: httpx.URL | None = None,
    ):
        self.error = error
        self.description = description
        self.uri = uri

        message = f"OAuth authorization error ({error})"
        if description:
            message += f": {description}"
        if uri is not None:
            message += f" See: {uri}"
        super().__init__(message)


class ExpirationError(OAuth2Error):
    """Raised when an authorized client is used with expired credentials."""

    def __init__(self, message: str, expires_at: float):
        super().__init__(message)
        self.expires_at = expires_at
