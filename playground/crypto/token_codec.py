"""JWT decoding without signature verification."""

import json
from typing import Any

from playground.core.errors import MalformedInputError
from playground.crypto.encoding import base64url_decode
from playground.crypto.types import CompactToken, DecodedToken

JSON_INDENT = 2


def _decode_segment_text(segment: str) -> str:
    try:
        return base64url_decode(segment).decode("utf-8")
    except (MalformedInputError, UnicodeDecodeError):
        return ""


def _parse_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def decode_token(token: str) -> DecodedToken:
    """Decode header and payload for display; never raises.

    A segment that decodes to text but not to a JSON object keeps its raw
    text and an empty dict. Anything unreadable yields empty values.
    """
    parts = (token or "").strip().split(".")
    if len(parts) < 2:
        return DecodedToken()
    header_text = _decode_segment_text(parts[0])
    payload_text = _decode_segment_text(parts[1])
    header = _parse_object(header_text)
    payload = _parse_object(payload_text)
    return DecodedToken(
        header=header or {},
        payload=payload or {},
        header_json=json.dumps(header, indent=JSON_INDENT) if header is not None else header_text,
        payload_json=json.dumps(payload, indent=JSON_INDENT) if payload is not None else payload_text,
    )


def split_compact_token(token: str) -> CompactToken:
    """Strictly parse a three-part JWS compact token.

    Raises:
        MalformedInputError: The token is not ``header.payload.signature``
            with JSON-object header and payload.
    """
    parts = (token or "").strip().split(".")
    if len(parts) != 3:
        raise MalformedInputError("Not a JWT")
    header_b64, payload_b64, signature_b64 = parts
    header = _parse_object(_strict_text(header_b64, "header"))
    payload = _parse_object(_strict_text(payload_b64, "payload"))
    if header is None:
        raise MalformedInputError("JWT header is not a JSON object")
    if payload is None:
        raise MalformedInputError("JWT payload is not a JSON object")
    return CompactToken(
        header=header,
        payload=payload,
        signing_input=f"{header_b64}.{payload_b64}".encode("ascii"),
        signature=base64url_decode(signature_b64),
    )


def _strict_text(segment: str, name: str) -> str:
    try:
        return base64url_decode(segment).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"JWT {name} is not UTF-8") from exc
