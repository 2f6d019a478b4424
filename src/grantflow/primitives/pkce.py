"""PKCE (Proof Key for Code Exchange) parameter generation.

Implements the S256 method from RFC 7636. The grant only needs the verifier
to be stored and the challenge to be sent; nothing here talks to a server.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass

VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"


@dataclass(frozen=True)
class PKCEParameters:
    """Immutable verifier/challenge pair for one authorization flow."""

    code_verifier: str
    code_challenge: str
    code_challenge_method: str = "S256"

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")


def generate_code_verifier(length: int = 128) -> str:
    """Generate a cryptographically secure code verifier.

    RFC 7636 Section 4.1: 43-128 characters drawn from
    [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"
    """
    if not (43 <= length <= 128):
        raise ValueError("code_verifier length must be between 43 and 128")
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def generate_code_challenge(code_verifier: str) -> str:
    """BASE64URL-ENCODE(SHA256(ASCII(code_verifier))), without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_parameters() -> PKCEParameters:
    code_verifier = generate_code_verifier()
    return PKCEParameters(
        code_verifier=code_verifier,
        code_challenge=generate_code_challenge(code_verifier),
    )
