"""Token proxy endpoints for authorization-code and client-credentials grants."""

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse, Response

from playground.api.deps import get_http_client, load_settings
from playground.api.schemas import ExchangeTokenRequest, TokenProxyRequest
from playground.core.errors import (
    InvalidPrivateKeyError,
    MalformedInputError,
    NetworkFailureError,
)
from playground.core.settings import PlaygroundSettings
from playground.oidc.token_endpoint import (
    TokenEndpointResponse,
    build_authorization_code_form,
    build_client_credentials_form,
    post_token_request,
    resolve_and_validate_token_endpoint,
)

router = APIRouter(prefix="/api/oauth")

HTTP_BAD_REQUEST = 400
HTTP_BAD_GATEWAY = 502
NO_STORE = {"cache-control": "no-store"}
CLIENT_AUTH_ERRORS = frozenset(
    {"missing_client_secret", "missing_private_key", "invalid_client_auth_method"}
)


def _error(code: str, status_code: int = HTTP_BAD_REQUEST, message: str | None = None) -> JSONResponse:
    body = {"error": code}
    if message is not None:
        body["message"] = message
    return JSONResponse(body, status_code=status_code, headers=NO_STORE)


def _client_auth_error(exc: MalformedInputError) -> JSONResponse:
    code = str(exc)
    if code in CLIENT_AUTH_ERRORS:
        return _error(code)
    if isinstance(exc, InvalidPrivateKeyError):
        return _error("invalid_private_key", message=code)
    return _error("invalid_request", message=code)


def _passthrough(reply: TokenEndpointResponse) -> Response:
    media_type = (
        "application/json; charset=utf-8" if reply.is_json else "text/plain; charset=utf-8"
    )
    return Response(
        content=reply.body,
        status_code=reply.status_code,
        media_type=media_type,
        headers=NO_STORE,
    )


async def _forward(http: httpx.AsyncClient, token_url: str, form: dict[str, str]) -> Response:
    try:
        reply = await post_token_request(http, token_url, form)
    except NetworkFailureError as exc:
        return _error("network_failure", HTTP_BAD_GATEWAY, str(exc))
    return _passthrough(reply)


@router.post("/exchange-token", response_model=None)
async def exchange_token(
    body: ExchangeTokenRequest,
    settings: Annotated[PlaygroundSettings, Depends(load_settings)],
    http: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> Response:
    """POST /api/oauth/exchange-token -- redeem an authorization code."""
    required = (body.tenant_id, body.client_id, body.redirect_uri, body.auth_code, body.token_endpoint)
    if not all(required):
        return _error("missing_parameters")

    token_url = resolve_and_validate_token_endpoint(
        body.token_endpoint, body.tenant_id, settings.get_allowed_token_host_list()
    )
    if token_url is None:
        return _error("invalid_token_endpoint")

    try:
        form = build_authorization_code_form(
            client_id=body.client_id,
            token_url=token_url,
            code=body.auth_code,
            redirect_uri=body.redirect_uri,
            auth=body.client_authentication(settings.client_assertion_lifetime),
            scope=body.scopes,
            code_verifier=body.code_verifier if body.pkce_enabled else None,
        )
    except MalformedInputError as exc:
        return _client_auth_error(exc)
    return await _forward(http, token_url, form)


@router.post("/client-credentials", response_model=None)
async def client_credentials(
    body: TokenProxyRequest,
    settings: Annotated[PlaygroundSettings, Depends(load_settings)],
    http: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> Response:
    """POST /api/oauth/client-credentials -- app-only token request."""
    if not all((body.tenant_id, body.client_id, body.scopes, body.token_endpoint)):
        return _error("missing_parameters")

    token_url = resolve_and_validate_token_endpoint(
        body.token_endpoint, body.tenant_id, settings.get_allowed_token_host_list()
    )
    if token_url is None:
        return _error("invalid_token_endpoint")

    try:
        form = build_client_credentials_form(
            client_id=body.client_id,
            token_url=token_url,
            scope=body.scopes,
            auth=body.client_authentication(settings.client_assertion_lifetime),
        )
    except MalformedInputError as exc:
        return _client_auth_error(exc)
    return await _forward(http, token_url, form)
