"""HTTP Basic authentication header encoding (RFC 2617)."""

from __future__ import annotations

import base64


def basic_auth_header(identifier: str, secret: str) -> str:
    """Build an ``Authorization`` header value for client credentials.

    Returns ``Basic <base64(identifier:secret)>``. The identifier must not
    contain a colon, since the scheme can't represent one.
    """
    if ":" in identifier:
        raise ValueError("Basic auth identifier must not contain ':'")
    user_pass = f"{identifier}:{secret}".encode("utf-8")
    return "Basic " + base64.b64encode(user_pass).decode("ascii")
