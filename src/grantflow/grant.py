"""OAuth 2.0 authorization code grant (RFC 6749 Section 4.1).

The resource owner is sent to the authorization server, which redirects them
back with an authorization code. The code is then exchanged for credentials
and an ``AuthorizedClient``.

Typical use::

    grant = AuthorizationCodeGrant(config)
    url = grant.get_authorization_url(redirect_uri, scopes=["read"], state=s)
    # ... send the user to url, then on the redirect:
    client = await grant.handle_authorization_response(query_params)

If the redirect is handled somewhere else, store ``grant.export_flow_state()``
and rebuild the grant with ``AuthorizationCodeGrant.restore``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import httpx

from grantflow.client import AuthorizedClient
from grantflow.models.config import ClientConfig
from grantflow.models.errors import FlowStateError, GrantStateError
from grantflow.models.flow import AuthorizationRequest, GrantPhase
from grantflow.models.flow_state import FlowState
from grantflow.primitives import pkce as pkce_module
from grantflow.services.flow import parse_callback_url, validate_authorization_response
from grantflow.services.tokens import TokenExchanger

logger = logging.getLogger(__name__)

# Operation name -> (required phase, phase after entry)
_TRANSITIONS = {
    "get_authorization_url": (GrantPhase.INITIAL, GrantPhase.AWAITING_RESPONSE),
    "handle_authorization_response": (
        GrantPhase.AWAITING_RESPONSE,
        GrantPhase.FINISHED,
    ),
    "handle_authorization_code": (GrantPhase.AWAITING_RESPONSE, GrantPhase.FINISHED),
}

_PHASE_ERRORS = {
    GrantPhase.INITIAL: "The authorization URL has not yet been generated.",
    GrantPhase.AWAITING_RESPONSE: "The authorization URL has already been generated.",
    GrantPhase.FINISHED: "The authorization code has already been received.",
}


class AuthorizationCodeGrant:
    """One attempt at obtaining credentials through the authorization code grant.

    Each operation runs exactly once, in order: ``get_authorization_url``,
    then one of ``handle_authorization_response`` or
    ``handle_authorization_code``. Calling them any other way raises
    ``GrantStateError``. Not safe for concurrent use; use one grant per flow.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the grant.

        Args:
            config: Client identifier, secret, endpoints and auth policy
            http_client: Transport for the token request, shared with the
                resulting ``AuthorizedClient``. Created if not given.
        """
        self.config = config
        self._http_client: httpx.AsyncClient | None = (
            http_client if http_client is not None else httpx.AsyncClient()
        )

        self.phase = GrantPhase.INITIAL
        self.redirect_uri: str | None = None
        self.scopes: list[str] = []
        self.state: str | None = None
        self.pkce_verifier = ""

    @property
    def identifier(self) -> str:
        return self.config.identifier

    @property
    def secret(self) -> str | None:
        return self.config.secret

    @property
    def authorization_endpoint(self) -> str:
        return self.config.authorization_endpoint

    @property
    def token_endpoint(self) -> str:
        return self.config.token_endpoint

    def _advance(self, operation: str) -> None:
        """Check the phase allows ``operation`` and move to the next one."""
        required, following = _TRANSITIONS[operation]
        if self.phase is not required:
            raise GrantStateError(_PHASE_ERRORS[self.phase])
        logger.debug(
            f"Grant for {self.identifier}: {self.phase.value} -> {following.value}"
        )
        self.phase = following

    def get_authorization_url(
        self,
        redirect_uri: str,
        scopes: Iterable[str] | None = None,
        state: str | None = None,
        *,
        pkce: bool = False,
    ) -> str:
        """Build the URL to send the resource owner to.

        Args:
            redirect_uri: Where the authorization server sends the user back
            scopes: Scopes to request, sent space-separated in this order
            state: Opaque CSRF token, checked again on the callback
            pkce: Add an S256 code challenge (RFC 7636)

        Returns:
            The authorization endpoint with request parameters appended

        Raises:
            GrantStateError: If called more than once
        """
        self._advance("get_authorization_url")

        self.redirect_uri = str(redirect_uri)
        self.scopes = list(scopes) if scopes is not None else []
        self.state = state

        code_challenge = None
        if pkce:
            params = pkce_module.generate_parameters()
            self.pkce_verifier = params.code_verifier
            code_challenge = params.code_challenge

        request = AuthorizationRequest(
            authorization_endpoint=self.authorization_endpoint,
            client_id=self.identifier,
            redirect_uri=self.redirect_uri,
            scopes=self.scopes,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method="S256" if code_challenge else None,
        )

        logger.info(f"Generated authorization URL for client {self.identifier}")
        return request.build_authorization_url()

    async def handle_authorization_response(
        self, parameters: Mapping[str, str]
    ) -> AuthorizedClient:
        """Process the query parameters of the authorization redirect.

        The grant is finished as soon as this is called, whether or not the
        parameters turn out to be valid.

        Raises:
            GrantStateError: If called before ``get_authorization_url`` or twice
            StateValidationError: If the state doesn't match
            AuthorizationError: If the server reported an error
            AuthorizationResponseError: If the parameters are malformed
            TokenResponseError: If the token response is malformed
        """
        self._advance("handle_authorization_response")

        code = validate_authorization_response(
            parameters, self.state, self.authorization_endpoint
        )
        return await self._exchange(code)

    async def handle_authorization_redirect(self, callback_url: str) -> AuthorizedClient:
        """Like ``handle_authorization_response``, taking the full redirect URL."""
        return await self.handle_authorization_response(parse_callback_url(callback_url))

    async def handle_authorization_code(self, code: str) -> AuthorizedClient:
        """Exchange an authorization code directly, without callback checks.

        For servers that let the user paste a code into the application.
        """
        self._advance("handle_authorization_code")
        return await self._exchange(code)

    async def _exchange(self, code: str) -> AuthorizedClient:
        if self._http_client is None:
            raise GrantStateError("The grant has been closed.")

        exchanger = TokenExchanger(self.config, self._http_client)
        credentials = await exchanger.exchange(
            code,
            self.redirect_uri,
            scopes=self.scopes,
            code_verifier=self.pkce_verifier,
        )
        return AuthorizedClient(credentials, self.config, self._http_client)

    def export_flow_state(self) -> FlowState:
        """Snapshot the flow so the callback can be handled elsewhere.

        Call after ``get_authorization_url``. Client credentials are not
        included.
        """
        return FlowState(
            phase=self.phase.value,
            pkce_verifier=self.pkce_verifier,
            redirect_uri=self.redirect_uri,
            state=self.state,
            scopes=list(self.scopes),
        )

    @classmethod
    def restore(
        cls,
        config: ClientConfig,
        flow_state: FlowState | str,
        http_client: httpx.AsyncClient | None = None,
    ) -> AuthorizationCodeGrant:
        """Rebuild a grant from a flow state and the original client config.

        Args:
            config: The same client config the flow was started with
            flow_state: A ``FlowState`` or its JSON text

        Raises:
            FlowStateError: If the flow state can't be loaded
        """
        if isinstance(flow_state, str):
            flow_state = FlowState.from_json(flow_state)

        try:
            phase = GrantPhase(flow_state.phase)
        except ValueError as e:
            raw = flow_state.to_json()
            raise FlowStateError(
                f'Failed to load flow state: unknown phase "{flow_state.phase}".'
                f"\n\n{raw}",
                "phase",
                raw,
            ) from e

        grant = cls(config, http_client=http_client)
        grant.phase = phase
        grant.pkce_verifier = flow_state.pkce_verifier
        grant.redirect_uri = flow_state.redirect_uri
        grant.state = flow_state.state
        grant.scopes = list(flow_state.scopes or [])

        logger.debug(f"Restored grant for {config.identifier} in phase {phase.value}")
        return grant

    async def close(self) -> None:
        """Close the HTTP client, which any ``AuthorizedClient`` also uses.

        Safe to call more than once.
        """
        if self._http_client is not None:
            await self._http_client.aclose()
        self._http_client = None
