"""Client configuration shared by grants and the clients they produce."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClientConfig:
    """Client credentials and endpoints issued by an authorization server.

    None of this is written into a flow state snapshot, so the same config
    has to be supplied again when a grant is restored.
    """

    identifier: str
    authorization_endpoint: str
    token_endpoint: str
    secret: str | None = None
    # Send credentials with HTTP Basic auth (RFC 2617) instead of the body
    basic_auth: bool = True

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("identifier must not be empty")
        for name in ("authorization_endpoint", "token_endpoint"):
            if "://" not in getattr(self, name):
                raise ValueError(f"{name} must be an absolute URL")

    @property
    def is_public(self) -> bool:
        """Whether this client has no secret."""
        return self.secret is None
