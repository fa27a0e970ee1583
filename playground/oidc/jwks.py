"""JWKS and OIDC metadata fetching with a URL-keyed cache.

The cache never expires and does not coalesce concurrent fetches: two
verifications racing on the same cold URL each issue a request.
"""

import logging

import httpx
from pydantic import ValidationError

from playground.core.errors import MalformedInputError, NetworkFailureError
from playground.core.settings import HTTP_TIMEOUT_DEFAULT
from playground.crypto.types import JWKEntry, JWKSet
from playground.oidc.types import OpenIDConfiguration

logger = logging.getLogger(__name__)


class JwksCache:
    """Process-lifetime JWKS store keyed by URL."""

    def __init__(self) -> None:
        self._entries: dict[str, JWKSet] = {}

    def get(self, url: str) -> JWKSet | None:
        return self._entries.get(url)

    def put(self, url: str, jwks: JWKSet) -> None:
        self._entries[url] = jwks

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)


default_jwks_cache = JwksCache()


async def _get_json(client: httpx.AsyncClient, url: str, what: str) -> object:
    try:
        response = await client.get(url, headers={"Cache-Control": "no-store"})
    except httpx.HTTPError as exc:
        raise NetworkFailureError(f"Failed to fetch {what}: {exc}") from exc
    if response.status_code != httpx.codes.OK:
        raise NetworkFailureError(
            f"Failed to fetch {what} ({response.status_code})",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedInputError(f"{what} response is not JSON") from exc


def _parse_entries(raw_keys: list[object], jwks_url: str) -> list[JWKEntry]:
    """Validate each raw entry on its own, skipping those that do not parse."""
    entries: list[JWKEntry] = []
    for index, raw in enumerate(raw_keys):
        try:
            entries.append(JWKEntry.model_validate(raw))
        except ValidationError as exc:
            logger.debug(
                "Skipping JWKS entry %d from %s: %s", index, jwks_url, exc.errors()[0]["msg"]
            )
    return entries


class JwksClient:
    """Fetches OIDC metadata and JWKS documents, caching JWKS by URL."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        cache: JwksCache | None = None,
        timeout: float = HTTP_TIMEOUT_DEFAULT,
    ) -> None:
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self.cache = cache if cache is not None else default_jwks_cache

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._http_client is None:
            logger.debug("Creating async HTTP client for JWKS fetches")
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def get_jwks(self, jwks_url: str) -> JWKSet:
        """Return the key set at ``jwks_url``, from cache when present."""
        cached = self.cache.get(jwks_url)
        if cached is not None:
            logger.debug("JWKS cache hit for %s", jwks_url)
            return cached
        logger.debug("JWKS cache miss for %s", jwks_url)
        client = await self._get_client()
        data = await _get_json(client, jwks_url, "JWKS")
        if not isinstance(data, dict):
            raise MalformedInputError("JWKS document is not a JSON object")
        keys = data.get("keys")
        jwks = JWKSet(keys=_parse_entries(keys if isinstance(keys, list) else [], jwks_url))
        self.cache.put(jwks_url, jwks)
        return jwks

    async def get_openid_configuration(self, metadata_url: str) -> OpenIDConfiguration:
        """Fetch an OIDC discovery document; never cached."""
        client = await self._get_client()
        data = await _get_json(client, metadata_url, "OpenID configuration")
        if not isinstance(data, dict):
            raise MalformedInputError("OpenID configuration is not a JSON object")
        try:
            return OpenIDConfiguration.model_validate(data)
        except ValidationError as exc:
            raise MalformedInputError(f"Invalid OpenID configuration: {exc}") from exc
