"""PKCE code_verifier and S256 code_challenge generation (RFC 7636)."""

import hashlib
import secrets
import string

from pydantic import BaseModel

from playground.core.errors import MalformedInputError
from playground.crypto.encoding import base64url_encode
from playground.crypto.entropy import random_string

PKCE_ALPHABET = string.ascii_letters + string.digits + "-._~"
VERIFIER_LENGTH_DEFAULT = 96
VERIFIER_LENGTH_MIN = 43
VERIFIER_LENGTH_MAX = 128
CHALLENGE_METHOD = "S256"


class PkcePair(BaseModel):
    """A code_verifier with its derived S256 code_challenge."""

    verifier: str
    challenge: str
    method: str = CHALLENGE_METHOD


def random_code_verifier(length: int = VERIFIER_LENGTH_DEFAULT) -> str:
    """Generate a verifier from the RFC 7636 unreserved characters."""
    if not VERIFIER_LENGTH_MIN <= length <= VERIFIER_LENGTH_MAX:
        raise MalformedInputError(
            f"code_verifier length must be between {VERIFIER_LENGTH_MIN} "
            f"and {VERIFIER_LENGTH_MAX}, got {length}"
        )
    return random_string(length, PKCE_ALPHABET)


def compute_s256_challenge(verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64url_encode(digest)


def generate_pkce_pair(length: int = VERIFIER_LENGTH_DEFAULT) -> PkcePair:
    """Generate a fresh verifier and its challenge."""
    verifier = random_code_verifier(length)
    return PkcePair(verifier=verifier, challenge=compute_s256_challenge(verifier))


def verify_s256_challenge(verifier: str, challenge: str) -> bool:
    """Check a verifier against a challenge in constant time."""
    computed = compute_s256_challenge(verifier)
    return secrets.compare_digest(computed.encode(), challenge.encode("utf-8"))
