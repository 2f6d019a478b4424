import json
from urllib.parse import parse_qsl

import httpx
import pytest

from grantflow.models.config import ClientConfig


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records requests and replies with a canned response."""

    def __init__(self, status_code: int = 200, body: object | None = None):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body if body is not None else {
            "access_token": "access-token-xyz",
            "token_type": "Bearer",
            "expires_in": 3600,
            "refresh_token": "refresh-token-abc",
        }
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        content = self.body if isinstance(self.body, str) else json.dumps(self.body)
        return httpx.Response(
            self.status_code,
            content=content.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    @property
    def last_form(self) -> dict[str, str]:
        return dict(parse_qsl(self.requests[-1].content.decode("utf-8")))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def http_client(transport: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=transport)


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        identifier="client-456",
        secret="s3cret",
        authorization_endpoint="https://auth.example.com/authorize",
        token_endpoint="https://auth.example.com/token",
    )


@pytest.fixture
def make_transport():
    return RecordingTransport
