"""Minimal DER encoder for the X.509 structures of a self-signed certificate.

Only the primitives the certificate builder needs are covered: INTEGER,
BIT STRING, NULL, OBJECT IDENTIFIER, UTF8String, UTCTime, GeneralizedTime,
SEQUENCE, SET, and EXPLICIT context-specific tags. Extensions are out of
scope.
"""

from datetime import UTC, datetime

from playground.core.errors import DerEncodingError, MalformedInputError

TAG_INTEGER = 0x02
TAG_BIT_STRING = 0x03
TAG_NULL = 0x05
TAG_OID = 0x06
TAG_UTF8_STRING = 0x0C
TAG_UTC_TIME = 0x17
TAG_GENERALIZED_TIME = 0x18
TAG_SEQUENCE = 0x30
TAG_SET = 0x31
TAG_CONTEXT_CONSTRUCTED = 0xA0

SHORT_FORM_LIMIT = 0x80
MAX_CONTEXT_TAG_NUMBER = 30

OID_COMMON_NAME = "2.5.4.3"
OID_ORGANIZATION_NAME = "2.5.4.10"
OID_COUNTRY_NAME = "2.5.4.6"
OID_SHA256_WITH_RSA = "1.2.840.113549.1.1.11"

DN_ATTRIBUTE_OIDS = {
    "CN": OID_COMMON_NAME,
    "O": OID_ORGANIZATION_NAME,
    "C": OID_COUNTRY_NAME,
}

# RFC 5280 4.1.2.5: UTCTime covers 1950-2049, GeneralizedTime the rest.
UTC_TIME_MIN_YEAR = 1950
UTC_TIME_MAX_YEAR = 2049


def encode_length(length: int) -> bytes:
    """DER length octets: short form below 128, long form otherwise."""
    if length < 0:
        raise DerEncodingError(f"Negative DER length {length}")
    if length < SHORT_FORM_LIMIT:
        return bytes([length])
    raw = length.to_bytes((length.bit_length() + 7) // 8, byteorder="big")
    return bytes([0x80 | len(raw)]) + raw


def encode(tag: int, content: bytes) -> bytes:
    """Encode a single tag-length-value triple."""
    if not 0 <= tag <= 0xFF:
        raise DerEncodingError(f"Tag {tag!r} does not fit in one octet")
    return bytes([tag]) + encode_length(len(content)) + content


def encode_integer(value: int | bytes) -> bytes:
    """INTEGER from an int, or from unsigned big-endian bytes.

    Byte input is read as unsigned, so a leading zero octet is added
    whenever the high bit is set and the value never turns negative.
    """
    if isinstance(value, bytes):
        raw = value.lstrip(b"\x00") or b"\x00"
        if raw[0] & 0x80:
            raw = b"\x00" + raw
        return encode(TAG_INTEGER, raw)
    magnitude = value if value >= 0 else -value - 1
    length = (magnitude.bit_length() + 8) // 8
    return encode(TAG_INTEGER, value.to_bytes(length, byteorder="big", signed=True))


def encode_bit_string(data: bytes, unused_bits: int = 0) -> bytes:
    """BIT STRING with a leading unused-bits octet."""
    if not 0 <= unused_bits <= 7:
        raise DerEncodingError(f"Unused bit count {unused_bits} out of range")
    return encode(TAG_BIT_STRING, bytes([unused_bits]) + data)


def encode_null() -> bytes:
    return encode(TAG_NULL, b"")


def encode_oid(dotted: str) -> bytes:
    """OBJECT IDENTIFIER from dotted-decimal notation."""
    try:
        arcs = [int(arc) for arc in dotted.split(".")]
    except ValueError as exc:
        raise DerEncodingError(f"Invalid OID {dotted!r}") from exc
    if len(arcs) < 2 or arcs[0] > 2 or any(a < 0 for a in arcs):
        raise DerEncodingError(f"Invalid OID {dotted!r}")
    if arcs[0] < 2 and arcs[1] >= 40:
        raise DerEncodingError(f"Invalid OID {dotted!r}")

    body = bytearray()
    for arc in [arcs[0] * 40 + arcs[1], *arcs[2:]]:
        chunk = [arc & 0x7F]
        arc >>= 7
        while arc:
            chunk.append(0x80 | (arc & 0x7F))
            arc >>= 7
        body.extend(reversed(chunk))
    return encode(TAG_OID, bytes(body))


def encode_utf8_string(value: str) -> bytes:
    return encode(TAG_UTF8_STRING, value.encode("utf-8"))


def encode_sequence(*parts: bytes) -> bytes:
    return encode(TAG_SEQUENCE, b"".join(parts))


def encode_set(*parts: bytes) -> bytes:
    return encode(TAG_SET, b"".join(parts))


def encode_explicit(tag_number: int, content: bytes) -> bytes:
    """Wrap ``content`` in an EXPLICIT ``[tag_number]`` context tag."""
    if not 0 <= tag_number <= MAX_CONTEXT_TAG_NUMBER:
        raise DerEncodingError(f"Context tag [{tag_number}] needs the high-tag form")
    return encode(TAG_CONTEXT_CONSTRUCTED | tag_number, content)


def encode_algorithm_identifier(oid: str) -> bytes:
    """AlgorithmIdentifier with NULL parameters."""
    return encode_sequence(encode_oid(oid), encode_null())


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def encode_utc_time(moment: datetime) -> bytes:
    """UTCTime ``YYMMDDHHMMSSZ``.

    Always two-digit years, so dates after 2049 wrap. Use
    :func:`encode_x509_time` where RFC 5280 rules apply.
    """
    text = _as_utc(moment).strftime("%y%m%d%H%M%SZ")
    return encode(TAG_UTC_TIME, text.encode("ascii"))


def encode_generalized_time(moment: datetime) -> bytes:
    """GeneralizedTime ``YYYYMMDDHHMMSSZ``."""
    utc = _as_utc(moment)
    text = f"{utc.year:04d}" + utc.strftime("%m%d%H%M%SZ")
    return encode(TAG_GENERALIZED_TIME, text.encode("ascii"))


def encode_x509_time(moment: datetime) -> bytes:
    """Certificate validity time: UTCTime through 2049, GeneralizedTime after."""
    year = _as_utc(moment).year
    if UTC_TIME_MIN_YEAR <= year <= UTC_TIME_MAX_YEAR:
        return encode_utc_time(moment)
    return encode_generalized_time(moment)


def encode_distinguished_name(dn: str) -> bytes:
    """Encode ``"CN=x,O=y,C=z"`` as an X.509 Name.

    Each ``ATTR=value`` pair becomes its own RelativeDistinguishedName.
    Attributes other than CN, O, and C are encoded as CN.
    """
    rdns: list[bytes] = []
    for part in dn.split(","):
        part = part.strip()
        if not part:
            continue
        attr, sep, value = part.partition("=")
        if not sep:
            raise MalformedInputError(f"Distinguished name part {part!r} lacks '='")
        oid = DN_ATTRIBUTE_OIDS.get(attr.strip().upper(), OID_COMMON_NAME)
        type_and_value = encode_sequence(encode_oid(oid), encode_utf8_string(value.strip()))
        rdns.append(encode_set(type_and_value))
    if not rdns:
        raise MalformedInputError("Distinguished name is empty")
    return encode_sequence(*rdns)
