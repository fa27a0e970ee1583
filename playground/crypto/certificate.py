"""Self-signed X.509v3 certificate assembly and signing."""

import hashlib
import logging
from datetime import UTC, datetime, timedelta

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from playground.core.errors import MalformedInputError
from playground.core.settings import (
    CERTIFICATE_SUBJECT_DEFAULT,
    CERTIFICATE_VALID_DAYS_DEFAULT,
)
from playground.crypto import asn1
from playground.crypto.encoding import base64url_encode
from playground.crypto.entropy import random_bytes
from playground.crypto.keys import load_private_key, load_public_key, pem_decode, pem_encode
from playground.crypto.types import Certificate

logger = logging.getLogger(__name__)

SERIAL_NUMBER_BYTES = 8
X509_VERSION_3 = 2


def build_tbs_certificate(
    *,
    serial_number: bytes,
    subject: str,
    not_before: datetime,
    not_after: datetime,
    subject_public_key_info: bytes,
) -> bytes:
    """DER TBSCertificate with issuer equal to subject."""
    name = asn1.encode_distinguished_name(subject)
    return asn1.encode_sequence(
        asn1.encode_explicit(0, asn1.encode_integer(X509_VERSION_3)),
        asn1.encode_integer(serial_number),
        asn1.encode_algorithm_identifier(asn1.OID_SHA256_WITH_RSA),
        name,
        asn1.encode_sequence(
            asn1.encode_x509_time(not_before),
            asn1.encode_x509_time(not_after),
        ),
        name,
        subject_public_key_info,
    )


def build_certificate(tbs_certificate: bytes, signature: bytes) -> bytes:
    """DER Certificate from a TBSCertificate and its signature."""
    return asn1.encode_sequence(
        tbs_certificate,
        asn1.encode_algorithm_identifier(asn1.OID_SHA256_WITH_RSA),
        asn1.encode_bit_string(signature),
    )


def create_self_signed_certificate(
    public_key_pem: str,
    private_key: RSAPrivateKey | str,
    subject: str = CERTIFICATE_SUBJECT_DEFAULT,
    valid_days: int = CERTIFICATE_VALID_DAYS_DEFAULT,
) -> Certificate:
    """Create a self-signed certificate for ``public_key_pem``.

    The TBSCertificate is signed with RSASSA-PKCS1-v1_5 over SHA-256.
    Thumbprints are hashes of the certificate DER, never of the PEM text.

    Args:
        public_key_pem: SubjectPublicKeyInfo PEM embedded as-is.
        private_key: Signing key, as a key object or PKCS#8 PEM.
        subject: Comma-separated ``ATTR=value`` distinguished name.
        valid_days: Days between notBefore and notAfter.

    Raises:
        MalformedInputError: A key is missing or malformed, the keys do
            not belong together, or ``valid_days`` is not positive.
    """
    if private_key is None:
        raise MalformedInputError("Private key is required")
    if valid_days <= 0:
        raise MalformedInputError(f"valid_days must be positive, got {valid_days}")
    signing_key = (
        load_private_key(private_key) if isinstance(private_key, str) else private_key
    )
    if not isinstance(signing_key, RSAPrivateKey):
        raise MalformedInputError(
            f"Private key must be an RSA key or PEM string, got {type(private_key).__name__}"
        )
    public_key = load_public_key(public_key_pem)
    if public_key.public_numbers() != signing_key.public_key().public_numbers():
        raise MalformedInputError("Public key does not belong to the signing key")
    spki = pem_decode(public_key_pem, "PUBLIC KEY")

    not_before = datetime.now(UTC).replace(microsecond=0)
    not_after = not_before + timedelta(days=valid_days)
    serial_number = random_bytes(SERIAL_NUMBER_BYTES)

    tbs = build_tbs_certificate(
        serial_number=serial_number,
        subject=subject,
        not_before=not_before,
        not_after=not_after,
        subject_public_key_info=spki,
    )
    signature = signing_key.sign(tbs, padding.PKCS1v15(), hashes.SHA256())
    der = build_certificate(tbs, signature)

    sha1 = hashlib.sha1(der).digest()
    sha256 = hashlib.sha256(der).digest()
    logger.info("Created self-signed certificate %s valid for %d days", subject, valid_days)
    return Certificate(
        der_bytes=der,
        pem=pem_encode(der, "CERTIFICATE"),
        serial_number=serial_number,
        subject_dn=subject,
        not_before=not_before,
        not_after=not_after,
        thumbprint_sha1=sha1.hex(),
        thumbprint_sha256=sha256.hex(),
        thumbprint_sha1_base64url=base64url_encode(sha1),
        thumbprint_sha256_base64url=base64url_encode(sha256),
    )
