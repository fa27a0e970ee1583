"""RSA key generation, PEM encoding, and JWK conversion."""

import base64
import binascii
import logging
import textwrap

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from playground.core.errors import (
    CryptoUnavailableError,
    InvalidPrivateKeyError,
    MalformedInputError,
)
from playground.crypto.encoding import int_to_base64url
from playground.crypto.types import JWKEntry, KeyPair

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
PEM_LINE_LENGTH = 64


def generate_rsa_keypair() -> KeyPair:
    """Generate a new RSA-2048 keypair for RS256 signing."""
    try:
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=RSA_KEY_SIZE,
        )
    except UnsupportedAlgorithm as exc:
        raise CryptoUnavailableError("RSA key generation is not available") from exc
    public_key = private_key.public_key()
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    logger.info("Generated RSA-%d keypair", RSA_KEY_SIZE)
    return KeyPair(
        private_key=private_key,
        public_key=public_key,
        private_key_pem=private_pem,
        public_key_pem=public_key_to_pem(public_key),
    )


def pem_encode(der: bytes, label: str) -> str:
    """Wrap DER bytes in a PEM block with 64-character lines."""
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), PEM_LINE_LENGTH))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n"


def pem_decode(pem: str, label: str) -> bytes:
    """Extract the DER bytes of the first ``label`` block in ``pem``."""
    header = f"-----BEGIN {label}-----"
    footer = f"-----END {label}-----"
    start = pem.find(header)
    end = pem.find(footer, start + len(header))
    if start < 0 or end < 0:
        raise MalformedInputError(f"PEM does not contain a {label} block")
    body = "".join(pem[start + len(header) : end].split())
    try:
        der = base64.b64decode(body, validate=True)
    except binascii.Error as exc:
        raise MalformedInputError(f"PEM {label} body is not valid base64") from exc
    if not der:
        raise MalformedInputError(f"PEM {label} block is empty")
    return der


def public_key_to_pem(public_key: RSAPublicKey) -> str:
    """Serialize a public key as SubjectPublicKeyInfo PEM."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def load_private_key(private_key_pem: str) -> RSAPrivateKey:
    """Load an unencrypted PKCS#8 (or PKCS#1) RSA private key."""
    if not private_key_pem or not private_key_pem.strip():
        raise InvalidPrivateKeyError("Private key PEM is empty")
    try:
        loaded = serialization.load_pem_private_key(
            private_key_pem.strip().encode(), password=None
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidPrivateKeyError(f"Invalid private key PEM: {exc}") from exc
    if not isinstance(loaded, RSAPrivateKey):
        raise InvalidPrivateKeyError("Private key is not an RSA key")
    return loaded


def load_public_key(public_key_pem: str) -> RSAPublicKey:
    """Load a SubjectPublicKeyInfo RSA public key."""
    if not public_key_pem or not public_key_pem.strip():
        raise MalformedInputError("Public key PEM is empty")
    try:
        loaded = serialization.load_pem_public_key(public_key_pem.strip().encode())
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise MalformedInputError(f"Invalid public key PEM: {exc}") from exc
    if not isinstance(loaded, RSAPublicKey):
        raise MalformedInputError("Public key is not an RSA key")
    return loaded


def pem_to_jwk_entry(public_key_pem: str, kid: str) -> JWKEntry:
    """Convert a PEM public key to JWK format."""
    numbers = load_public_key(public_key_pem).public_numbers()
    return JWKEntry(
        kid=kid,
        n=int_to_base64url(numbers.n),
        e=int_to_base64url(numbers.e),
    )
