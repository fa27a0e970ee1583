"""Tests for private_key_jwt client assertions."""

import time

import jwt
import pytest

from playground.core.errors import MalformedInputError
from playground.crypto.client_assertion import (
    CLIENT_ASSERTION_TYPE,
    build_client_assertion,
    build_client_assertion_claims,
)
from playground.crypto.types import KeyPair

CLIENT_ID = "11111111-2222-3333-4444-555555555555"
TOKEN_URL = "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"


class TestClaims:
    """Tests for the unsigned claim set."""

    def test_issuer_and_subject_are_client(self) -> None:
        claims = build_client_assertion_claims(CLIENT_ID, TOKEN_URL)
        assert claims.iss == CLIENT_ID
        assert claims.sub == CLIENT_ID
        assert claims.aud == TOKEN_URL

    def test_lifetime(self) -> None:
        before = int(time.time())
        claims = build_client_assertion_claims(CLIENT_ID, TOKEN_URL, lifetime_sec=120)
        assert before <= claims.iat <= int(time.time())
        assert claims.exp - claims.iat == 120

    def test_jti_is_unique(self) -> None:
        first = build_client_assertion_claims(CLIENT_ID, TOKEN_URL)
        second = build_client_assertion_claims(CLIENT_ID, TOKEN_URL)
        assert first.jti != second.jti

    @pytest.mark.parametrize(
        ("client_id", "token_url", "lifetime"),
        [("", TOKEN_URL, 60), (CLIENT_ID, " ", 60), (CLIENT_ID, TOKEN_URL, 0)],
    )
    def test_invalid_inputs(self, client_id: str, token_url: str, lifetime: int) -> None:
        with pytest.raises(MalformedInputError):
            build_client_assertion_claims(client_id, token_url, lifetime)


class TestBuildClientAssertion:
    """Tests for the signed assertion."""

    def test_signature_verifies(self, keypair: KeyPair) -> None:
        token = build_client_assertion(CLIENT_ID, TOKEN_URL, keypair.private_key_pem)
        claims = jwt.decode(
            token, keypair.public_key, algorithms=["RS256"], audience=TOKEN_URL
        )
        assert claims["iss"] == CLIENT_ID
        assert claims["exp"] - claims["iat"] == 60

    def test_header_carries_thumbprints(self, keypair: KeyPair) -> None:
        token = build_client_assertion(
            CLIENT_ID, TOKEN_URL, keypair.private_key_pem, x5t="x5t-value", kid="ABCDEF"
        )
        header = jwt.get_unverified_header(token)
        assert header["alg"] == "RS256"
        assert header["typ"] == "JWT"
        assert header["x5t"] == "x5t-value"
        assert header["kid"] == "ABCDEF"

    def test_header_omits_absent_thumbprints(self, keypair: KeyPair) -> None:
        token = build_client_assertion(CLIENT_ID, TOKEN_URL, keypair.private_key_pem)
        header = jwt.get_unverified_header(token)
        assert "x5t" not in header
        assert "kid" not in header

    def test_bad_private_key(self) -> None:
        with pytest.raises(MalformedInputError):
            build_client_assertion(CLIENT_ID, TOKEN_URL, "garbage")

    def test_assertion_type_constant(self) -> None:
        assert CLIENT_ASSERTION_TYPE == "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
