"""Tests for JWKS and metadata fetching."""

from typing import Any

import httpx
import pytest

from playground.core.errors import MalformedInputError, NetworkFailureError
from playground.crypto.types import JWKSet
from playground.oidc.jwks import JwksCache, JwksClient, default_jwks_cache

JWKS_URL = "https://idp.example.com/tenant-1/keys"
METADATA_URL = "https://idp.example.com/.well-known/openid-configuration"


class TestJwksCache:
    """Tests for the URL-keyed cache."""

    def test_put_get_clear(self) -> None:
        cache = JwksCache()
        jwks = JWKSet()
        assert cache.get(JWKS_URL) is None
        cache.put(JWKS_URL, jwks)
        assert JWKS_URL in cache
        assert len(cache) == 1
        assert cache.get(JWKS_URL) is jwks
        cache.clear()
        assert len(cache) == 0

    def test_default_cache_is_shared(self) -> None:
        assert JwksClient().cache is default_jwks_cache


class TestGetJwks:
    """Tests for JwksClient.get_jwks."""

    @pytest.mark.asyncio
    async def test_fetches_and_parses(
        self, jwks_client: JwksClient, idp: Any, jwks_document: dict[str, Any]
    ) -> None:
        idp.serve(JWKS_URL, jwks_document)
        jwks = await jwks_client.get_jwks(JWKS_URL)
        assert jwks.find("test-key-1") is not None

    @pytest.mark.asyncio
    async def test_second_fetch_hits_cache(
        self, jwks_client: JwksClient, idp: Any, jwks_document: dict[str, Any]
    ) -> None:
        idp.serve(JWKS_URL, jwks_document)
        first = await jwks_client.get_jwks(JWKS_URL)
        second = await jwks_client.get_jwks(JWKS_URL)
        assert first is second
        assert idp.hits(JWKS_URL) == 1

    @pytest.mark.asyncio
    async def test_sends_no_store(self) -> None:
        seen: list[httpx.Request] = []

        def _capture(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"keys": []})

        async with httpx.AsyncClient(transport=httpx.MockTransport(_capture)) as http:
            await JwksClient(http_client=http, cache=JwksCache()).get_jwks(JWKS_URL)
        assert seen[0].headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_missing_keys_is_empty_set(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(JWKS_URL, {"other": 1})
        jwks = await jwks_client.get_jwks(JWKS_URL)
        assert jwks.keys == []

    @pytest.mark.asyncio
    async def test_unparsable_entries_skipped(
        self, jwks_client: JwksClient, idp: Any, jwks_document: dict[str, Any]
    ) -> None:
        document = {"keys": [{"kty": "oct", "kid": 7, "k": "abc"}, "junk", *jwks_document["keys"]]}
        idp.serve(JWKS_URL, document)
        jwks = await jwks_client.get_jwks(JWKS_URL)
        assert len(jwks.keys) == 1
        assert jwks.find("test-key-1") is not None

    @pytest.mark.asyncio
    async def test_non_list_keys_is_empty_set(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(JWKS_URL, {"keys": {"kid": "x"}})
        jwks = await jwks_client.get_jwks(JWKS_URL)
        assert jwks.keys == []

    @pytest.mark.asyncio
    async def test_http_error_status(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(JWKS_URL, {"error": "boom"}, status_code=503)
        with pytest.raises(NetworkFailureError) as exc_info:
            await jwks_client.get_jwks(JWKS_URL)
        assert exc_info.value.status_code == 503
        assert JWKS_URL not in jwks_client.cache

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(_fail)) as http:
            client = JwksClient(http_client=http, cache=JwksCache())
            with pytest.raises(NetworkFailureError):
                await client.get_jwks(JWKS_URL)

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        def _html(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html></html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(_html)) as http:
            client = JwksClient(http_client=http, cache=JwksCache())
            with pytest.raises(MalformedInputError):
                await client.get_jwks(JWKS_URL)

    @pytest.mark.asyncio
    async def test_non_object_body(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(JWKS_URL, [1, 2, 3])
        with pytest.raises(MalformedInputError):
            await jwks_client.get_jwks(JWKS_URL)


class TestGetOpenIdConfiguration:
    """Tests for metadata fetching."""

    @pytest.mark.asyncio
    async def test_parses_document(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(
            METADATA_URL,
            {"issuer": "https://idp.example.com", "jwks_uri": JWKS_URL, "scopes_supported": []},
        )
        config = await jwks_client.get_openid_configuration(METADATA_URL)
        assert config.jwks_uri == JWKS_URL
        assert config.issuer == "https://idp.example.com"

    @pytest.mark.asyncio
    async def test_not_cached(self, jwks_client: JwksClient, idp: Any) -> None:
        idp.serve(METADATA_URL, {"jwks_uri": JWKS_URL})
        await jwks_client.get_openid_configuration(METADATA_URL)
        await jwks_client.get_openid_configuration(METADATA_URL)
        assert idp.hits(METADATA_URL) == 2

    @pytest.mark.asyncio
    async def test_missing_document(self, jwks_client: JwksClient) -> None:
        with pytest.raises(NetworkFailureError):
            await jwks_client.get_openid_configuration(METADATA_URL)
