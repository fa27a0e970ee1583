"""CSPRNG-backed random bytes, URL-safe strings, and jti identifiers."""

import secrets
import string

import uuid_utils

from playground.core.errors import CryptoUnavailableError, MalformedInputError

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "-_"
DEFAULT_URL_SAFE_LENGTH = 32
GUID_BYTES = 16


def random_bytes(length: int) -> bytes:
    """Read ``length`` bytes from the platform CSPRNG."""
    if length < 0:
        raise MalformedInputError(f"length must be non-negative, got {length}")
    try:
        return secrets.token_bytes(length)
    except NotImplementedError as exc:
        raise CryptoUnavailableError("No CSPRNG available on this host") from exc


def random_string(length: int, alphabet: str) -> str:
    """Map CSPRNG bytes onto ``alphabet`` without modulo bias.

    Bytes at or above the largest multiple of ``len(alphabet)`` are
    discarded, so alphabets that do not divide 256 stay uniform.
    """
    if not alphabet or len(alphabet) > 256:
        raise MalformedInputError("alphabet must hold between 1 and 256 symbols")
    size = len(alphabet)
    limit = 256 - (256 % size)
    out: list[str] = []
    while len(out) < length:
        for byte in random_bytes(length - len(out)):
            if byte < limit:
                out.append(alphabet[byte % size])
    return "".join(out)


def random_url_safe_string(length: int = DEFAULT_URL_SAFE_LENGTH) -> str:
    """Random ``[A-Za-z0-9_-]`` string for OAuth ``state`` and ``nonce``."""
    return random_string(length, URL_SAFE_ALPHABET)


def random_guid_like() -> str:
    """UUID-v4-shaped identifier built from 16 CSPRNG bytes."""
    raw = bytearray(random_bytes(GUID_BYTES))
    raw[6] = (raw[6] & 0x0F) | 0x40
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid_utils.UUID(bytes=bytes(raw)))
