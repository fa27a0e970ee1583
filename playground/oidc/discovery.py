"""OIDC metadata URL building and JWKS URL resolution rules."""

from collections.abc import Callable
from typing import NamedTuple
from urllib.parse import urlsplit

METADATA_PATH = "/.well-known/openid-configuration"
DEFERRED_JWKS_SUFFIX = " -> jwks_uri"
DEFAULT_TENANT = "common"
MICROSOFT_LOGIN_HOST = "login.microsoftonline.com"
MICROSOFT_IDENTITY_HOSTS = (MICROSOFT_LOGIN_HOST, "sts.windows.net")


class JwksUrlRule(NamedTuple):
    """Issuer host predicate paired with an ordered JWKS URL builder."""

    name: str
    matches: Callable[[str], bool]
    build: Callable[[str, str | None], list[str]]


def is_host_or_subdomain(host: str, domain: str) -> bool:
    """True when ``host`` is ``domain`` or one of its subdomains."""
    return host == domain or host.endswith("." + domain)


def _is_microsoft_identity_host(host: str) -> bool:
    return any(is_host_or_subdomain(host, d) for d in MICROSOFT_IDENTITY_HOSTS)


def _microsoft_jwks_urls(tenant: str, _version: str | None) -> list[str]:
    # v1 and v2 discovery publish the same signing keys; v2 is tried first.
    base = f"https://{MICROSOFT_LOGIN_HOST}/{tenant}/discovery"
    return [f"{base}/v2.0/keys", f"{base}/keys"]


JWKS_URL_RULES: tuple[JwksUrlRule, ...] = (
    JwksUrlRule(
        name="microsoft-identity-platform",
        matches=_is_microsoft_identity_host,
        build=_microsoft_jwks_urls,
    ),
)


def build_metadata_url(iss: str | None) -> str:
    """``{iss}/.well-known/openid-configuration``, or ``""`` without issuer."""
    if not iss:
        return ""
    return f"{iss.rstrip('/')}{METADATA_PATH}"


def _issuer_host(iss: str) -> str:
    try:
        return (urlsplit(iss).hostname or "").lower()
    except ValueError:
        return ""


def jwks_url_candidates(
    iss: str | None, tid: str | None = None, ver: str | None = None
) -> list[str]:
    """Ordered JWKS URLs from the first rule matching the issuer host."""
    if not iss:
        return []
    host = _issuer_host(iss)
    tenant = (tid or "").strip() or DEFAULT_TENANT
    for rule in JWKS_URL_RULES:
        if host and rule.matches(host):
            return rule.build(tenant, ver)
    return []


def guess_jwks_url(iss: str | None, tid: str | None = None, ver: str | None = None) -> str:
    """Best-guess JWKS URL for an issuer.

    Recognised identity-platform hosts get a direct key URL. Any other
    issuer yields ``"{metadata_url} -> jwks_uri"``, meaning the metadata
    document must be fetched and its ``jwks_uri`` read.
    """
    if not iss:
        return ""
    candidates = jwks_url_candidates(iss, tid, ver)
    if candidates:
        return candidates[0]
    return f"{build_metadata_url(iss)}{DEFERRED_JWKS_SUFFIX}"


def is_deferred_jwks_url(url: str | None) -> bool:
    return bool(url) and url.endswith(DEFERRED_JWKS_SUFFIX)


def metadata_url_from_deferred(url: str) -> str:
    """Strip the deferred marker, leaving the metadata URL."""
    return url[: -len(DEFERRED_JWKS_SUFFIX)] if is_deferred_jwks_url(url) else url
