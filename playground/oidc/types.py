"""Type definitions for OIDC discovery and signature verification."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from playground.core.errors import (
    CryptoUnavailableError,
    KeyNotFoundError,
    MalformedInputError,
    NetworkFailureError,
    UnsupportedAlgorithmError,
    VerificationFailedError,
)


class VerificationStage(StrEnum):
    """How far a signature verification progressed."""

    INIT = "init"
    HEADER_DECODED = "header_decoded"
    METADATA_BUILT = "metadata_built"
    JWKS_URL_RESOLVED = "jwks_url_resolved"
    JWKS_FETCHED = "jwks_fetched"
    KEY_MATCHED = "key_matched"
    VERIFIED = "verified"
    REJECTED = "rejected"


class FailureKind(StrEnum):
    """Why a verification stopped short of ``VERIFIED``."""

    CRYPTO_UNAVAILABLE = "crypto_unavailable"
    MALFORMED_INPUT = "malformed_input"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    KEY_NOT_FOUND = "key_not_found"
    NETWORK_FAILURE = "network_failure"
    VERIFICATION_FAILED = "verification_failed"


class VerificationResult(BaseModel):
    """Diagnostic record, filled as far as verification progressed."""

    ok: bool = False
    key_found: bool = False
    stage: VerificationStage = VerificationStage.INIT
    failure: FailureKind | None = None
    alg: str | None = None
    kid: str | None = None
    expected_kid: str | None = None
    iss: str | None = None
    ver: str | None = None
    reason: str | None = None
    error: str | None = None
    public_key_pem: str | None = None
    metadata_url: str | None = None
    jwks_url: str | None = None
    jwks_fetched: bool = False

    def fail(self, failure: FailureKind, error: str, reason: str | None = None) -> None:
        """Record a terminal failure."""
        self.failure = failure
        self.error = error
        if reason is not None:
            self.reason = reason

    def raise_for_failure(self) -> None:
        """Raise the error matching ``failure`` unless the signature verified."""
        if self.ok:
            return
        message = self.error or self.reason or "Signature not verified"
        match self.failure:
            case FailureKind.CRYPTO_UNAVAILABLE:
                raise CryptoUnavailableError(message)
            case FailureKind.MALFORMED_INPUT:
                raise MalformedInputError(message)
            case FailureKind.UNSUPPORTED_ALGORITHM:
                raise UnsupportedAlgorithmError(self.alg)
            case FailureKind.KEY_NOT_FOUND:
                raise KeyNotFoundError(self.expected_kid or self.kid)
            case FailureKind.NETWORK_FAILURE:
                raise NetworkFailureError(message)
            case _:
                raise VerificationFailedError(message)


class OpenIDConfiguration(BaseModel):
    """Subset of an OIDC .well-known/openid-configuration document."""

    model_config = ConfigDict(extra="allow")

    issuer: str | None = None
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    jwks_uri: str | None = None
