"""JWT signature verification against a dynamically resolved JWKS.

Verification never raises. Each stage writes what it learned into a
:class:`VerificationResult` before moving on, so a failed run still
reports every step it completed along with the reason it stopped.
"""

import logging
from collections.abc import Iterable
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError

from playground.core.errors import MalformedInputError, NetworkFailureError
from playground.crypto.keys import public_key_to_pem
from playground.crypto.token_codec import decode_token, split_compact_token
from playground.crypto.types import CompactToken, JWKEntry
from playground.oidc.discovery import (
    build_metadata_url,
    guess_jwks_url,
    is_deferred_jwks_url,
    jwks_url_candidates,
    metadata_url_from_deferred,
)
from playground.oidc.jwks import JwksClient
from playground.oidc.types import FailureKind, VerificationResult, VerificationStage

logger = logging.getLogger(__name__)

SUPPORTED_RSA_ALGORITHMS = {
    "RS256": RSAAlgorithm.SHA256,
    "RS384": RSAAlgorithm.SHA384,
    "RS512": RSAAlgorithm.SHA512,
}


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _import_public_key(entry: JWKEntry) -> RSAPublicKey:
    key = RSAAlgorithm.from_jwk(entry.model_dump(exclude_none=True))
    if isinstance(key, RSAPrivateKey):
        return key.public_key()
    return key


def _export_pem(public_key: RSAPublicKey) -> str | None:
    try:
        return public_key_to_pem(public_key)
    except (ValueError, UnsupportedAlgorithm):
        logger.warning("Could not export matched JWKS key as PEM", exc_info=True)
        return None


class SignatureVerifier:
    """Resolves, fetches, and matches JWKS keys, then checks signatures."""

    def __init__(self, jwks_client: JwksClient | None = None) -> None:
        self._owns_client = jwks_client is None
        self.jwks_client = jwks_client or JwksClient()

    async def __aenter__(self) -> "SignatureVerifier":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the JWKS client if this verifier created it."""
        if self._owns_client:
            await self.jwks_client.aclose()

    async def verify(
        self, token: str, jwks_url: str, expected_kid: str | None = None
    ) -> VerificationResult:
        """Verify ``token`` against the key set at ``jwks_url``.

        ``jwks_url`` may be the ``"{metadata} -> jwks_uri"`` marker from
        :func:`guess_jwks_url`, in which case metadata is fetched first.
        The key is matched on ``expected_kid`` when given, else on the
        token's own ``kid``.
        """
        result = VerificationResult(jwks_url=jwks_url or None, expected_kid=expected_kid)
        try:
            await self._run(result, token, jwks_url, expected_kid)
        except Exception as exc:
            logger.exception("Unexpected error while verifying token signature")
            result.ok = False
            result.error = str(exc)
            result.reason = "exception during verify"
        return result

    async def verify_candidates(
        self,
        token: str,
        jwks_urls: Iterable[str],
        expected_kid: str | None = None,
    ) -> VerificationResult:
        """Try each JWKS URL in order; stop at the first that verifies."""
        result: VerificationResult | None = None
        for url in jwks_urls:
            result = await self.verify(token, url, expected_kid)
            if result.ok:
                return result
            logger.debug("JWKS candidate %s did not verify: %s", url, result.error)
        if result is None:
            return await self.verify(token, "", expected_kid)
        return result

    async def resolve_and_verify(
        self, token: str, expected_kid: str | None = None
    ) -> VerificationResult:
        """Resolve the JWKS location from the token's own claims and verify."""
        payload = decode_token(token).payload
        iss = _optional_str(payload.get("iss"))
        tid = _optional_str(payload.get("tid"))
        ver = _optional_str(payload.get("ver"))
        candidates = jwks_url_candidates(iss, tid, ver)
        if candidates:
            return await self.verify_candidates(token, candidates, expected_kid)
        return await self.verify(token, guess_jwks_url(iss, tid, ver), expected_kid)

    async def _run(
        self,
        result: VerificationResult,
        token: str,
        jwks_url: str,
        expected_kid: str | None,
    ) -> None:
        try:
            compact = split_compact_token(token)
        except MalformedInputError as exc:
            result.fail(FailureKind.MALFORMED_INPUT, str(exc), "Invalid JWT format")
            return
        self._record_token_fields(result, compact)
        result.stage = VerificationStage.HEADER_DECODED

        hash_alg = SUPPORTED_RSA_ALGORITHMS.get(result.alg or "")
        if hash_alg is None:
            result.fail(
                FailureKind.UNSUPPORTED_ALGORITHM,
                f"Unsupported alg {result.alg}",
                "Only RS256, RS384, and RS512 signatures can be verified",
            )
            return

        result.metadata_url = build_metadata_url(result.iss) or None
        result.stage = VerificationStage.METADATA_BUILT

        resolved_url = await self._resolve_jwks_url(result, jwks_url)
        if resolved_url is None:
            return
        result.jwks_url = resolved_url
        result.stage = VerificationStage.JWKS_URL_RESOLVED

        try:
            jwks = await self.jwks_client.get_jwks(resolved_url)
        except NetworkFailureError as exc:
            logger.warning("JWKS fetch from %s failed: %s", resolved_url, exc)
            result.fail(FailureKind.NETWORK_FAILURE, str(exc), "JWKS could not be fetched")
            return
        except MalformedInputError as exc:
            result.fail(FailureKind.MALFORMED_INPUT, str(exc), "JWKS document is malformed")
            return
        result.jwks_fetched = True
        result.stage = VerificationStage.JWKS_FETCHED

        lookup_kid = expected_kid or result.kid
        entry = jwks.find(lookup_kid)
        if entry is None:
            result.fail(
                FailureKind.KEY_NOT_FOUND,
                "Key not found in JWKS",
                f"kid {lookup_kid or '(none)'} not present",
            )
            return
        result.key_found = True
        result.stage = VerificationStage.KEY_MATCHED

        try:
            public_key = _import_public_key(entry)
        except InvalidKeyError as exc:
            result.fail(
                FailureKind.MALFORMED_INPUT,
                str(exc),
                f"JWKS key {lookup_kid} is not a usable RSA key",
            )
            return
        except UnsupportedAlgorithm as exc:
            result.fail(FailureKind.CRYPTO_UNAVAILABLE, str(exc), "RSA backend unavailable")
            return
        result.public_key_pem = _export_pem(public_key)

        if RSAAlgorithm(hash_alg).verify(compact.signing_input, public_key, compact.signature):
            result.ok = True
            result.stage = VerificationStage.VERIFIED
            logger.info("Verified %s signature with kid %s", result.alg, lookup_kid)
            return
        result.stage = VerificationStage.REJECTED
        result.fail(
            FailureKind.VERIFICATION_FAILED,
            "Signature mismatch",
            f"Signature does not match the key published for kid {lookup_kid}",
        )
        logger.warning("Signature rejected for kid %s at %s", lookup_kid, resolved_url)

    @staticmethod
    def _record_token_fields(result: VerificationResult, compact: CompactToken) -> None:
        result.alg = _optional_str(compact.header.get("alg"))
        result.kid = _optional_str(compact.header.get("kid"))
        result.iss = _optional_str(compact.payload.get("iss"))
        result.ver = _optional_str(compact.payload.get("ver"))

    async def _resolve_jwks_url(self, result: VerificationResult, jwks_url: str) -> str | None:
        if not jwks_url:
            result.fail(
                FailureKind.MALFORMED_INPUT,
                "No JWKS URL to fetch",
                "JWKS URL could not be resolved",
            )
            return None
        if not is_deferred_jwks_url(jwks_url):
            return jwks_url

        metadata_url = metadata_url_from_deferred(jwks_url)
        result.metadata_url = metadata_url
        try:
            config = await self.jwks_client.get_openid_configuration(metadata_url)
        except NetworkFailureError as exc:
            logger.warning("Metadata fetch from %s failed: %s", metadata_url, exc)
            result.fail(
                FailureKind.NETWORK_FAILURE, str(exc), "OpenID configuration could not be fetched"
            )
            return None
        except MalformedInputError as exc:
            result.fail(FailureKind.MALFORMED_INPUT, str(exc), "OpenID configuration is malformed")
            return None
        if not config.jwks_uri:
            result.fail(
                FailureKind.MALFORMED_INPUT,
                "OpenID configuration has no jwks_uri",
                "JWKS URL could not be resolved",
            )
            return None
        return config.jwks_uri


async def verify_jwt_signature(
    token: str,
    jwks_url: str,
    expected_kid: str | None = None,
    *,
    jwks_client: JwksClient | None = None,
) -> VerificationResult:
    """Verify with a one-off :class:`SignatureVerifier`."""
    async with SignatureVerifier(jwks_client) as verifier:
        return await verifier.verify(token, jwks_url, expected_kid)
