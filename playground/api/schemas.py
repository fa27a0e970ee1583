"""Pydantic schemas matching the browser client's camelCase JSON contract."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from playground.core.settings import CLIENT_ASSERTION_LIFETIME_DEFAULT
from playground.oidc.token_endpoint import ClientAuthentication


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)


class TokenProxyRequest(_CamelModel):
    """Fields shared by both token proxy routes."""

    tenant_id: str | None = None
    client_id: str | None = None
    scopes: str | None = None
    token_endpoint: str | None = None
    client_auth_method: str | None = None
    client_secret: str | None = None
    private_key_pem: str | None = None
    client_assertion_kid: str | None = None
    client_assertion_x5t: str | None = None

    def client_authentication(
        self, assertion_lifetime: int = CLIENT_ASSERTION_LIFETIME_DEFAULT
    ) -> ClientAuthentication:
        return ClientAuthentication(
            method=self.client_auth_method or "",
            client_secret=self.client_secret,
            private_key_pem=self.private_key_pem,
            assertion_kid=self.client_assertion_kid,
            assertion_x5t=self.client_assertion_x5t,
            assertion_lifetime=assertion_lifetime,
        )


class ExchangeTokenRequest(TokenProxyRequest):
    """Authorization code exchange request."""

    redirect_uri: str | None = None
    auth_code: str | None = None
    pkce_enabled: bool = False
    code_verifier: str | None = None


class ClientErrorReport(_CamelModel):
    """Error report posted by the browser client."""

    message: str | None = None
    stack: str | None = None
    digest: str | None = None
    url: str | None = None
    locale: str | None = None
    user_agent: str | None = None
    additional: dict[str, Any] | None = None
