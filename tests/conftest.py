"""Shared test fixtures for the OAuth playground core."""

from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from playground.api.deps import get_http_client
from playground.core.app import create_app
from playground.crypto.keys import generate_rsa_keypair, pem_to_jwk_entry
from playground.crypto.types import KeyPair
from playground.oidc.jwks import JwksCache, JwksClient, default_jwks_cache

ISSUER = "https://idp.example.com/tenant-1"
KID = "test-key-1"


class StubIdentityProvider:
    """Serves canned JSON documents by URL and counts requests."""

    def __init__(self) -> None:
        self.documents: dict[str, Any] = {}
        self.statuses: dict[str, int] = {}
        self.requests: list[str] = []

    def serve(self, url: str, document: Any, status_code: int = 200) -> None:
        self.documents[url] = document
        self.statuses[url] = status_code

    def hits(self, url: str) -> int:
        return self.requests.count(url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.documents:
            return httpx.Response(404, json={"error": "not_found"})
        return httpx.Response(self.statuses[url], json=self.documents[url])


@pytest.fixture(scope="session")
def keypair() -> KeyPair:
    """One RSA keypair for the whole session; generation is slow."""
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def other_keypair() -> KeyPair:
    return generate_rsa_keypair()


@pytest.fixture(autouse=True)
def _clear_default_cache() -> None:
    default_jwks_cache.clear()


@pytest.fixture
def idp() -> StubIdentityProvider:
    return StubIdentityProvider()


@pytest.fixture
async def jwks_client(idp: StubIdentityProvider) -> AsyncIterator[JwksClient]:
    """JwksClient wired to the stub provider with a private cache."""
    transport = httpx.MockTransport(idp.handler)
    async with httpx.AsyncClient(transport=transport) as http:
        yield JwksClient(http_client=http, cache=JwksCache())


@pytest.fixture
def sign_token(keypair: KeyPair) -> Callable[..., str]:
    """Factory for RS256 tokens signed by the session keypair."""

    def _sign(
        payload: dict[str, Any] | None = None,
        *,
        kid: str | None = KID,
        algorithm: str = "RS256",
        key: Any = None,
    ) -> str:
        claims = {"iss": ISSUER, "sub": "user-1", "aud": "client-1", "ver": "2.0"}
        claims.update(payload or {})
        headers = {"kid": kid} if kid else {}
        return jwt.encode(
            claims,
            key if key is not None else keypair.private_key,
            algorithm=algorithm,
            headers=headers,
        )

    return _sign


@pytest.fixture
def jwks_document(keypair: KeyPair) -> dict[str, Any]:
    entry = pem_to_jwk_entry(keypair.public_key_pem, KID)
    return {"keys": [entry.model_dump()]}


class StubTokenEndpoint:
    """Records token requests and answers with a canned reply."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.reply = httpx.Response(200, json={"access_token": "at-123", "token_type": "Bearer"})
        self.raise_error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        return self.reply


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("PLAYGROUND_ALLOWED_TOKEN_HOSTS", "login.microsoftonline.com,sts.windows.net")
    monkeypatch.delenv("PLAYGROUND_CORS_ORIGINS", raising=False)


@pytest.fixture
def token_endpoint() -> StubTokenEndpoint:
    return StubTokenEndpoint()


@pytest.fixture
async def client(token_endpoint: StubTokenEndpoint) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client whose outbound calls hit the stub endpoint."""
    app = create_app()

    async def _override_http_client() -> AsyncIterator[httpx.AsyncClient]:
        transport = httpx.MockTransport(token_endpoint.handler)
        async with httpx.AsyncClient(transport=transport) as http:
            yield http

    app.dependency_overrides[get_http_client] = _override_http_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
