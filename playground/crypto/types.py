"""Type definitions for key pairs, certificates, JWKs, and JWT payloads."""

from datetime import datetime
from typing import Any

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict, Field


class KeyPair(BaseModel):
    """An RSA keypair with its PKCS#8 and SPKI PEM forms."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    private_key: RSAPrivateKey
    public_key: RSAPublicKey
    private_key_pem: str
    public_key_pem: str


class Certificate(BaseModel):
    """A self-signed X.509v3 certificate and its thumbprints."""

    model_config = ConfigDict(frozen=True)

    der_bytes: bytes
    pem: str
    serial_number: bytes
    subject_dn: str
    not_before: datetime
    not_after: datetime
    thumbprint_sha1: str
    thumbprint_sha256: str
    thumbprint_sha1_base64url: str
    thumbprint_sha256_base64url: str


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS document."""

    model_config = ConfigDict(extra="allow")

    kty: str = "RSA"
    use: str | None = "sig"
    alg: str | None = "RS256"
    kid: str | None = None
    n: str | None = None
    e: str | None = None


class JWKSet(BaseModel):
    """JSON Web Key Set document."""

    keys: list[JWKEntry] = Field(default_factory=list)

    def find(self, kid: str | None) -> JWKEntry | None:
        """Return the entry whose ``kid`` matches, if any."""
        if not kid:
            return None
        return next((k for k in self.keys if k.kid == kid), None)


class ClientAssertionClaims(BaseModel):
    """RFC 7523 claim set for a private_key_jwt client assertion."""

    iss: str
    sub: str
    aud: str
    jti: str
    iat: int
    exp: int


class DecodedToken(BaseModel):
    """Unverified JWT header and payload, for display only."""

    header: dict[str, Any] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)
    header_json: str = ""
    payload_json: str = ""


class CompactToken(BaseModel):
    """Strictly parsed JWS compact serialization."""

    header: dict[str, Any]
    payload: dict[str, Any]
    signing_input: bytes
    signature: bytes
