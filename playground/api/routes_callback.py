"""Authorization-code redirect landing page for popup sign-in flows."""

import html
import json
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.responses import HTMLResponse, PlainTextResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/callback")

HTTP_BAD_REQUEST = 400
NO_STORE = {"cache-control": "no-store"}
CODE_PREVIEW_CHARS = 8
BODY_PREVIEW_CHARS = 64

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>OAuth Callback</title>
  <style>
    body{{font-family: system-ui, sans-serif; padding: 2rem; color: #e5e7eb; background: #111827;}}
    code{{background: #1f2937; padding: .25rem .375rem; border-radius: .25rem;}}
    .muted{{opacity:.8}}
  </style>
</head>
<body>
  <h1>Processing sign-in…</h1>
  <p class="muted">If this window does not close automatically, you can close it.</p>
  <p class="muted">{summary}</p>
  <script>
    (function(){{
      try {{
        var url = {url_expr};
        var body = {body};
        var payload = {{ type: 'oauth_callback', url: url, body: body }};
        payload.href = body ? (url + '?' + body) : url;
        if (window.opener && !window.opener.closed) {{
          window.opener.postMessage(payload, window.location.origin);
        }}
        setTimeout(function(){{ window.close(); }}, 100);
      }} catch (e) {{}}
    }})();
  </script>
</body>
</html>
"""


def _preview(value: str, limit: int) -> str:
    return value[:limit] + "…" if len(value) > limit else value


def _js_string(value: str) -> str:
    """JSON-encode ``value`` for inline script use; ``<`` cannot close the tag."""
    return json.dumps(value).replace("<", "\\u003c")


def _render(summary: str, url_expr: str, body: str) -> HTMLResponse:
    page = _PAGE.format(summary=summary, url_expr=url_expr, body=_js_string(body))
    return HTMLResponse(page, headers=NO_STORE)


@router.get("/auth-code")
async def auth_code_redirect(request: Request) -> HTMLResponse:
    """Landing page for ``response_mode=query``; hands the URL to the opener."""
    code = request.query_params.get("code", "")
    state = request.query_params.get("state", "")
    safe_code = html.escape(code[:CODE_PREVIEW_CHARS] + "…") if code else "(none)"
    safe_state = html.escape(state) if state else "(none)"
    summary = f"code: <code>{safe_code}</code>, state: <code>{safe_state}</code>"
    return _render(summary, "window.location.href", "")


@router.post("/auth-code", response_model=None)
async def auth_code_form_post(request: Request) -> HTMLResponse | PlainTextResponse:
    """Landing page for ``response_mode=form_post``; forwards the posted body."""
    try:
        form = await request.form()
    except (HTTPException, MultiPartException) as exc:
        logger.debug("Rejected callback form post: %s", exc)
        return PlainTextResponse("Invalid request", status_code=HTTP_BAD_REQUEST)
    body = urlencode([(key, str(value)) for key, value in form.multi_items()])
    summary = f"Body posted: <code>{html.escape(_preview(body, BODY_PREVIEW_CHARS))}</code>"
    return _render(summary, "window.location.origin + window.location.pathname", body)
