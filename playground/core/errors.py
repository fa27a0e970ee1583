"""Exception hierarchy shared by key generation, signing, and verification."""


class PlaygroundError(Exception):
    """Base class for all playground core errors."""


class CryptoUnavailableError(PlaygroundError):
    """The host lacks a CSPRNG or an RSA-capable crypto backend."""


class MalformedInputError(PlaygroundError, ValueError):
    """Caller supplied a bad PEM, JWT, URL, or argument."""


class InvalidPrivateKeyError(MalformedInputError):
    """A private key PEM is empty, unparsable, or not RSA."""


class DerEncodingError(PlaygroundError, ValueError):
    """A DER encoding contract was violated (programmer error)."""


class UnsupportedAlgorithmError(PlaygroundError):
    """The JWT ``alg`` is outside the RSA family."""

    def __init__(self, alg: str | None) -> None:
        super().__init__(f"Unsupported alg {alg}")
        self.alg = alg


class KeyNotFoundError(PlaygroundError):
    """No JWKS entry carries the requested ``kid``."""

    def __init__(self, kid: str | None) -> None:
        super().__init__(f"kid {kid or '(none)'} not present")
        self.kid = kid


class NetworkFailureError(PlaygroundError):
    """A metadata, JWKS, or token endpoint request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VerificationFailedError(PlaygroundError):
    """A key was found but the signature does not match it."""
