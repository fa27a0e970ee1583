"""Tests for self-signed certificate creation."""

import base64
import hashlib
from datetime import timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509.oid import NameOID

from playground.core.errors import MalformedInputError
from playground.crypto.certificate import create_self_signed_certificate
from playground.crypto.encoding import base64url_encode
from playground.crypto.types import Certificate, KeyPair


@pytest.fixture(scope="module")
def certificate(keypair: KeyPair) -> Certificate:
    return create_self_signed_certificate(
        keypair.public_key_pem, keypair.private_key, subject="CN=Demo App, O=Acme, C=US"
    )


class TestCertificateStructure:
    """The DER must parse as a standard X.509v3 certificate."""

    def test_parses_with_cryptography(self, certificate: Certificate) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.version == x509.Version.v3
        assert cert.signature_hash_algorithm.name == "sha256"

    def test_subject_equals_issuer(self, certificate: Certificate) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.subject == cert.issuer
        cn = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
        org = cert.subject.get_attributes_for_oid(NameOID.ORGANIZATION_NAME)[0].value
        assert cn == "Demo App"
        assert org == "Acme"

    def test_signature_verifies(self, certificate: Certificate, keypair: KeyPair) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        keypair.public_key.verify(
            cert.signature,
            cert.tbs_certificate_bytes,
            padding.PKCS1v15(),
            hashes.SHA256(),
        )

    def test_embeds_public_key(self, certificate: Certificate, keypair: KeyPair) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.public_key().public_numbers() == keypair.public_key.public_numbers()

    def test_serial_is_positive(self, certificate: Certificate) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.serial_number > 0
        assert cert.serial_number == int.from_bytes(certificate.serial_number, "big")

    def test_validity_window(self, certificate: Certificate) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.not_valid_before_utc == certificate.not_before
        assert cert.not_valid_after_utc - cert.not_valid_before_utc == timedelta(days=365)
        assert certificate.not_before.microsecond == 0

    def test_pem_wraps_der(self, certificate: Certificate) -> None:
        cert = x509.load_pem_x509_certificate(certificate.pem.encode())
        assert cert.tbs_certificate_bytes == x509.load_der_x509_certificate(
            certificate.der_bytes
        ).tbs_certificate_bytes


class TestThumbprints:
    """Thumbprints hash the DER, in hex and base64url forms."""

    def test_sha1(self, certificate: Certificate) -> None:
        digest = hashlib.sha1(certificate.der_bytes).digest()
        assert certificate.thumbprint_sha1 == digest.hex()
        assert certificate.thumbprint_sha1_base64url == base64url_encode(digest)

    def test_sha256(self, certificate: Certificate) -> None:
        digest = hashlib.sha256(certificate.der_bytes).digest()
        assert certificate.thumbprint_sha256 == digest.hex()
        assert certificate.thumbprint_sha256_base64url == base64url_encode(digest)

    def test_matches_cryptography_fingerprint(self, certificate: Certificate) -> None:
        cert = x509.load_der_x509_certificate(certificate.der_bytes)
        assert cert.fingerprint(hashes.SHA1()).hex() == certificate.thumbprint_sha1

    def test_base64url_has_no_padding(self, certificate: Certificate) -> None:
        assert "=" not in certificate.thumbprint_sha1_base64url
        assert base64.urlsafe_b64decode(certificate.thumbprint_sha1_base64url + "=") == (
            bytes.fromhex(certificate.thumbprint_sha1)
        )


class TestCertificateInputs:
    """Input validation."""

    def test_accepts_private_key_pem(self, keypair: KeyPair) -> None:
        cert = create_self_signed_certificate(
            keypair.public_key_pem, keypair.private_key_pem, valid_days=1
        )
        parsed = x509.load_der_x509_certificate(cert.der_bytes)
        assert parsed.not_valid_after_utc - parsed.not_valid_before_utc == timedelta(days=1)
        assert cert.subject_dn == "CN=OAuth Playground Demo"

    def test_mismatched_keys_rejected(self, keypair: KeyPair, other_keypair: KeyPair) -> None:
        with pytest.raises(MalformedInputError):
            create_self_signed_certificate(other_keypair.public_key_pem, keypair.private_key)

    def test_bad_public_key_rejected(self, keypair: KeyPair) -> None:
        with pytest.raises(MalformedInputError):
            create_self_signed_certificate("not a pem", keypair.private_key)

    def test_non_positive_validity_rejected(self, keypair: KeyPair) -> None:
        with pytest.raises(MalformedInputError):
            create_self_signed_certificate(
                keypair.public_key_pem, keypair.private_key, valid_days=0
            )

    def test_missing_private_key_rejected(self, keypair: KeyPair) -> None:
        with pytest.raises(MalformedInputError):
            create_self_signed_certificate(keypair.public_key_pem, None)  # type: ignore[arg-type]

    def test_bytes_private_key_rejected(self, keypair: KeyPair) -> None:
        with pytest.raises(MalformedInputError):
            create_self_signed_certificate(
                keypair.public_key_pem, keypair.private_key_pem.encode()  # type: ignore[arg-type]
            )


class TestCertificateUniqueness:
    """Each call draws a fresh serial number."""

    def test_same_inputs_yield_distinct_certificates(self, keypair: KeyPair) -> None:
        first = create_self_signed_certificate(keypair.public_key_pem, keypair.private_key)
        second = create_self_signed_certificate(keypair.public_key_pem, keypair.private_key)
        assert first.serial_number != second.serial_number
        assert first.der_bytes != second.der_bytes
        assert first.thumbprint_sha256 != second.thumbprint_sha256
