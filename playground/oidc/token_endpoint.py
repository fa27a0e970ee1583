"""Token endpoint validation, request forms, and submission."""

import json
import logging
from collections.abc import Iterable
from enum import StrEnum

import httpx
from pydantic import BaseModel

from playground.core.errors import MalformedInputError, NetworkFailureError
from playground.core.settings import CLIENT_ASSERTION_LIFETIME_DEFAULT
from playground.crypto.client_assertion import CLIENT_ASSERTION_TYPE, build_client_assertion
from playground.oidc.authorize import TENANT_PLACEHOLDER
from playground.oidc.discovery import MICROSOFT_IDENTITY_HOSTS, is_host_or_subdomain

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ClientAuthMethod(StrEnum):
    """How a confidential client authenticates at the token endpoint."""

    SECRET = "secret"
    CERTIFICATE = "certificate"


class ClientAuthentication(BaseModel):
    """Client credentials for either auth method."""

    method: str
    client_secret: str | None = None
    private_key_pem: str | None = None
    assertion_kid: str | None = None
    assertion_x5t: str | None = None
    assertion_lifetime: int = CLIENT_ASSERTION_LIFETIME_DEFAULT


class TokenEndpointResponse(BaseModel):
    """Raw token endpoint reply, passed through to the caller."""

    status_code: int
    content_type: str
    body: str

    @property
    def is_json(self) -> bool:
        return "application/json" in self.content_type


def resolve_and_validate_token_endpoint(
    token_endpoint: str | None,
    tenant_id: str | None,
    allowed_host_suffixes: Iterable[str] = MICROSOFT_IDENTITY_HOSTS,
) -> str | None:
    """Resolve ``{tenant}`` and allow only https URLs on known hosts.

    Returns the normalized URL, or ``None`` when the endpoint must not be
    contacted.
    """
    raw = (token_endpoint or "").strip()
    tenant = (tenant_id or "").strip()
    if not raw or not tenant:
        return None
    try:
        url = httpx.URL(raw.replace(TENANT_PLACEHOLDER, tenant))
    except httpx.InvalidURL:
        return None
    if url.scheme != "https":
        return None
    host = url.host.lower()
    if not host or not any(is_host_or_subdomain(host, s.lower()) for s in allowed_host_suffixes):
        return None
    return str(url)


def build_client_auth_params(
    client_id: str, token_url: str, auth: ClientAuthentication
) -> dict[str, str]:
    """Form fields that authenticate the client.

    Raises:
        MalformedInputError: With ``missing_client_secret``,
            ``missing_private_key``, or ``invalid_client_auth_method``.
    """
    if auth.method == ClientAuthMethod.SECRET:
        if not auth.client_secret:
            raise MalformedInputError("missing_client_secret")
        return {"client_secret": auth.client_secret}
    if auth.method == ClientAuthMethod.CERTIFICATE:
        if not auth.private_key_pem:
            raise MalformedInputError("missing_private_key")
        assertion = build_client_assertion(
            client_id=client_id,
            token_endpoint=token_url,
            private_key_pem=auth.private_key_pem,
            x5t=auth.assertion_x5t or None,
            kid=auth.assertion_kid or None,
            lifetime_sec=auth.assertion_lifetime,
        )
        return {
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
            "client_assertion": assertion,
        }
    raise MalformedInputError("invalid_client_auth_method")


def build_authorization_code_form(
    *,
    client_id: str,
    token_url: str,
    code: str,
    redirect_uri: str,
    auth: ClientAuthentication,
    scope: str | None = None,
    code_verifier: str | None = None,
) -> dict[str, str]:
    """grant_type=authorization_code form, with PKCE when a verifier is given."""
    form = {
        "grant_type": "authorization_code",
        "client_id": client_id,
        "code": code,
        "redirect_uri": redirect_uri,
    }
    if code_verifier:
        form["code_verifier"] = code_verifier
    if scope and scope.strip():
        form["scope"] = scope.strip()
    form.update(build_client_auth_params(client_id, token_url, auth))
    return form


def build_client_credentials_form(
    *, client_id: str, token_url: str, scope: str, auth: ClientAuthentication
) -> dict[str, str]:
    """grant_type=client_credentials form."""
    form = {
        "grant_type": "client_credentials",
        "client_id": client_id,
        "scope": scope.strip(),
    }
    form.update(build_client_auth_params(client_id, token_url, auth))
    return form


async def post_token_request(
    client: httpx.AsyncClient, token_url: str, form: dict[str, str]
) -> TokenEndpointResponse:
    """POST a token request form and capture the reply verbatim."""
    logger.debug("POST %s grant_type=%s", token_url, form.get("grant_type"))
    try:
        response = await client.post(
            token_url,
            data=form,
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
    except httpx.HTTPError as exc:
        raise NetworkFailureError(f"Token endpoint request failed: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    body = response.text
    if "application/json" in content_type:
        try:
            body = json.dumps(response.json(), indent=2)
        except ValueError:
            logger.warning("Token endpoint declared JSON but sent %d unparsable bytes", len(body))
    if response.is_error:
        logger.warning("Token endpoint %s returned %d", token_url, response.status_code)
    return TokenEndpointResponse(
        status_code=response.status_code,
        content_type=content_type,
        body=body,
    )
