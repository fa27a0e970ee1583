"""Claim checks for ID and access tokens, with clock-skew tolerance."""

import time
from typing import Any

from pydantic import BaseModel

CLOCK_SKEW_SECONDS = 300
GRAPH_APP_ID = "00000003-0000-0000-c000-000000000000"
GRAPH_RESOURCE_URL = "https://graph.microsoft.com"


class ClaimChecks(BaseModel):
    """Per-claim pass/fail checklist."""

    aud_ok: bool
    iss_ok: bool
    nonce_ok: bool = True
    exp_ok: bool
    nbf_ok: bool
    iat_ok: bool

    @property
    def all_ok(self) -> bool:
        return all(
            (self.aud_ok, self.iss_ok, self.nonce_ok, self.exp_ok, self.nbf_ok, self.iat_ok)
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _issuer_ok(payload: dict[str, Any], tenant_id: str | None) -> bool:
    iss = payload.get("iss")
    if tenant_id:
        return payload.get("tid") == tenant_id or (isinstance(iss, str) and tenant_id in iss)
    return bool(iss)


def _time_checks(payload: dict[str, Any], now: int, skew: int) -> dict[str, bool]:
    exp, nbf, iat = payload.get("exp"), payload.get("nbf"), payload.get("iat")
    return {
        "exp_ok": _is_number(exp) and exp > now - skew,
        "nbf_ok": nbf <= now + skew if _is_number(nbf) else True,
        "iat_ok": iat <= now + skew if _is_number(iat) else True,
    }


def check_id_token_claims(
    payload: dict[str, Any],
    client_id: str | None = None,
    tenant_id: str | None = None,
    expected_nonce: str | None = None,
    now: int | None = None,
    skew: int = CLOCK_SKEW_SECONDS,
) -> ClaimChecks:
    """Check aud, iss, nonce, exp, nbf, and iat of an ID token payload.

    ``nonce`` only fails when one was sent; missing ``nbf``/``iat`` pass,
    a missing ``exp`` fails.
    """
    current = int(time.time()) if now is None else now
    aud = payload.get("aud")
    aud_text = "" if aud is None else str(aud)
    return ClaimChecks(
        aud_ok=aud_text == client_id if client_id else bool(aud_text),
        iss_ok=_issuer_ok(payload, tenant_id),
        nonce_ok=payload.get("nonce") == expected_nonce if expected_nonce else True,
        **_time_checks(payload, current, skew),
    )


def check_access_token_claims(
    payload: dict[str, Any],
    tenant_id: str | None = None,
    now: int | None = None,
    skew: int = CLOCK_SKEW_SECONDS,
) -> ClaimChecks:
    """Check an access token payload; ``aud`` need only be present."""
    current = int(time.time()) if now is None else now
    return ClaimChecks(
        aud_ok=bool(payload.get("aud")),
        iss_ok=_issuer_ok(payload, tenant_id),
        **_time_checks(payload, current, skew),
    )


def is_graph_access_token(payload: dict[str, Any]) -> bool:
    """Microsoft Graph tokens can only be verified by Graph itself."""
    aud = payload.get("aud")
    audiences = aud if isinstance(aud, list) else [aud] if isinstance(aud, str) else []
    for value in audiences:
        normalized = str(value or "").strip().rstrip("/")
        if normalized in (GRAPH_APP_ID, GRAPH_RESOURCE_URL):
            return True
    return False
