"""Authorization request URL building."""

import httpx
from pydantic import BaseModel

from playground.crypto.pkce import CHALLENGE_METHOD

TENANT_PLACEHOLDER = "{tenant}"


class AuthorizationRequest(BaseModel):
    """Inputs for an authorization-code request URL."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    response_type: str = "code"
    scope: str = ""
    state: str | None = None
    nonce: str | None = None
    response_mode: str | None = None
    prompt: str | None = None
    login_hint: str | None = None
    code_challenge: str | None = None


def resolve_tenant(template: str, tenant_id: str) -> str:
    """Substitute the ``{tenant}`` placeholder in an endpoint template."""
    return template.replace(TENANT_PLACEHOLDER, tenant_id.strip())


def build_authorization_url(request: AuthorizationRequest) -> str:
    """Authorize URL with state, nonce, and PKCE parameters applied."""
    params: dict[str, str] = {
        "client_id": request.client_id,
        "response_type": request.response_type,
        "redirect_uri": request.redirect_uri,
    }
    if request.scope.strip():
        params["scope"] = request.scope.strip()
    optional = {
        "state": request.state,
        "nonce": request.nonce,
        "response_mode": request.response_mode,
        "prompt": request.prompt,
        "login_hint": request.login_hint,
    }
    params.update({k: v for k, v in optional.items() if v})
    if request.code_challenge:
        params["code_challenge"] = request.code_challenge
        params["code_challenge_method"] = CHALLENGE_METHOD
    return str(httpx.URL(request.authorization_endpoint).copy_merge_params(params))
