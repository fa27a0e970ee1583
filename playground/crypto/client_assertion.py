"""RFC 7523 private_key_jwt client assertions signed with RS256."""

import time

import jwt

from playground.core.errors import MalformedInputError
from playground.core.settings import CLIENT_ASSERTION_LIFETIME_DEFAULT
from playground.crypto.entropy import random_guid_like
from playground.crypto.keys import load_private_key
from playground.crypto.types import ClientAssertionClaims

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
CLIENT_ASSERTION_ALG = "RS256"


def build_client_assertion_claims(
    client_id: str,
    token_endpoint: str,
    lifetime_sec: int = CLIENT_ASSERTION_LIFETIME_DEFAULT,
) -> ClientAssertionClaims:
    """Build the claim set without signing, for previews."""
    if not client_id or not client_id.strip():
        raise MalformedInputError("client_id is required")
    if not token_endpoint or not token_endpoint.strip():
        raise MalformedInputError("token_endpoint is required")
    if lifetime_sec <= 0:
        raise MalformedInputError(f"lifetime_sec must be positive, got {lifetime_sec}")
    now = int(time.time())
    return ClientAssertionClaims(
        iss=client_id,
        sub=client_id,
        aud=token_endpoint,
        jti=random_guid_like(),
        iat=now,
        exp=now + lifetime_sec,
    )


def build_client_assertion(
    client_id: str,
    token_endpoint: str,
    private_key_pem: str,
    x5t: str | None = None,
    kid: str | None = None,
    lifetime_sec: int = CLIENT_ASSERTION_LIFETIME_DEFAULT,
) -> str:
    """Sign a client assertion for ``token_endpoint``.

    ``x5t`` is conventionally the certificate's base64url SHA-1 thumbprint
    and ``kid`` its hex SHA-1 thumbprint. Both are taken as given.
    """
    key = load_private_key(private_key_pem)
    claims = build_client_assertion_claims(client_id, token_endpoint, lifetime_sec)
    headers: dict[str, str] = {"typ": "JWT"}
    if x5t:
        headers["x5t"] = x5t
    if kid:
        headers["kid"] = kid
    return jwt.encode(
        claims.model_dump(),
        key,
        algorithm=CLIENT_ASSERTION_ALG,
        headers=headers,
    )
