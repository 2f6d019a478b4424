"""Portable snapshot of an in-progress authorization code grant.

A ``FlowState`` is what a caller stores between building the authorization
URL and handling the redirect, possibly in another process. It holds no
client identifier, secret or endpoints.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import ErrorDetails

from grantflow.models.errors import FlowStateError

# JSON key for each model field, in emission order
_JSON_KEYS = ("phase", "pkceVerifier", "redirectUri", "state", "scopes")
_REQUIRED_KEYS = ("phase", "pkceVerifier")


class FlowState(BaseModel):
    """Minimal, non-sensitive snapshot of a grant.

    ``pkce_verifier`` is required even when the flow didn't use PKCE, in
    which case it is an empty string.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    phase: str
    pkce_verifier: str = Field(alias="pkceVerifier")
    redirect_uri: str | None = Field(default=None, alias="redirectUri")
    state: str | None = None
    scopes: list[str] | None = None

    def to_json(self) -> str:
        """Serialize with all five keys present, in a fixed order."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> FlowState:
        """Load a flow state, raising ``FlowStateError`` on the first bad field."""
        try:
            # Aliases only; snake_case keys in the JSON count as unknown
            return cls.model_validate_json(raw, by_alias=True, by_name=False)
        except ValidationError as e:
            field, reason = _describe(e.errors(), raw)
            raise FlowStateError(
                f"Failed to load flow state: {reason}.\n\n{raw}", field, raw
            ) from e


def _describe(errors: list[ErrorDetails], raw: str) -> tuple[str | None, str]:
    """Reduce pydantic errors to the first failing field and a reason."""
    by_key: dict[str, ErrorDetails] = {}
    for error in errors:
        loc = error["loc"]
        if not loc:
            if error["type"] == "json_invalid":
                return None, "invalid JSON"
            return None, "was not a JSON object"
        by_key.setdefault(str(loc[0]), error)

    # Report in schema order, not in whatever order pydantic found them
    for key in _JSON_KEYS:
        error = by_key.get(key)
        if error is None:
            continue
        if error["type"] == "missing":
            return key, f'did not contain required field "{key}"'
        value = error["input"] if len(error["loc"]) == 1 else _lookup(raw, key)
        if key in _REQUIRED_KEYS:
            return key, f'required field "{key}" was not a string, was {value!r}'
        if key == "scopes":
            return key, f'field "scopes" was not a list of strings, was {value!r}'
        return key, f'field "{key}" was not a string, was {value!r}'

    first = errors[0]
    return str(first["loc"][0]), first["msg"]


def _lookup(raw: str, key: str) -> object:
    """Fetch the raw value of a top-level key for an error message."""
    # Only called after pydantic has parsed raw as a JSON object
    return json.loads(raw).get(key)
