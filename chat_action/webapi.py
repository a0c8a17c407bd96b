"""FastAPI surface for the action hub host and the OAuth browser leg."""

import json
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from .actions import load_actions
from .config import Settings
from .errors import AuthExchangeError, ConfigurationError, DecryptionError, PreconditionError
from .hub.contracts import ActionRequest
from .hub.registry import get_action, list_actions
from .telemetry import init_telemetry
from .telemetry.middleware import TelemetryMiddleware
from .telemetry.prom import generate_metrics_text

app = FastAPI(
    title="Google Hangouts Chat Action",
    version="0.1.0",
    openapi_tags=[
        {"name": "actions", "description": "Host-facing form/execute/oauth_check endpoints"},
        {"name": "oauth", "description": "Browser OAuth round trip"},
        {"name": "health", "description": "Health and status endpoints"},
    ],
)

init_telemetry()
app.add_middleware(TelemetryMiddleware)
load_actions()


def _action_or_404(name: str) -> Any:
    action = get_action(name)
    if action is None:
        raise HTTPException(status_code=404, detail=f"No action named '{name}'")
    return action


async def _action_request(request: Request) -> ActionRequest:
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
        if not isinstance(body, dict):
            raise ValueError("request body must be a JSON object")
        return ActionRequest.from_http(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid action request: {e}") from e


@app.get("/", tags=["actions"])
async def list_integrations():
    """List registered actions with the URLs the host should call."""
    base_url = Settings.from_env().base_url
    integrations = []
    for action in list_actions():
        descriptor = action.describe().model_dump(mode="json")
        descriptor["url"] = f"{base_url}/actions/{action.name}/execute"
        descriptor["form_url"] = f"{base_url}/actions/{action.name}/form"
        integrations.append(descriptor)
    return {"label": app.title, "integrations": integrations}


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}


@app.get("/metrics", tags=["health"])
async def metrics():
    """Prometheus text exposition (empty when telemetry is disabled)."""
    return PlainTextResponse(generate_metrics_text(), media_type="text/plain; version=0.0.4")


@app.post("/actions/{name}/form", tags=["actions"])
async def action_form(name: str, request: Request):
    """Render the action form (login link or space picker)."""
    action = _action_or_404(name)
    action_request = await _action_request(request)
    try:
        form = await action.form(action_request)
    except ConfigurationError as e:
        raise HTTPException(status_code=501, detail=str(e)) from e
    return form.as_json()


@app.post("/actions/{name}/execute", tags=["actions"])
async def action_execute(name: str, request: Request):
    """
    Execute the action.

    Returns:
        success, plus message on remote failure or state.data="reset" when
        the host must restart the login flow

    Errors:
        400 - attachment, space, or report URL missing
        501 - OAuth client not configured
    """
    action = _action_or_404(name)
    action_request = await _action_request(request)
    try:
        response = await action.execute(action_request)
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ConfigurationError as e:
        raise HTTPException(status_code=501, detail=str(e)) from e
    return response.as_json()


@app.post("/actions/{name}/oauth_check", tags=["actions"])
async def action_oauth_check(name: str, request: Request):
    """Report whether the host's stored session still authenticates."""
    action = _action_or_404(name)
    action_request = await _action_request(request)
    return {"authenticated": await action.oauth_check(action_request)}


@app.get("/actions/{name}/oauth", tags=["oauth"])
async def action_oauth(name: str, state: str):
    """Send the browser to the provider consent screen."""
    action = _action_or_404(name)
    if not getattr(action, "uses_oauth", False):
        raise HTTPException(status_code=404, detail=f"Action '{name}' does not use OAuth")

    try:
        url = await action.oauth_url(action.oauth_redirect_uri(), state)
    except ConfigurationError as e:
        raise HTTPException(status_code=501, detail=str(e)) from e
    return RedirectResponse(url, status_code=302)


@app.get("/actions/{name}/oauth_redirect", tags=["oauth"])
async def action_oauth_redirect(name: str, request: Request):
    """
    Provider redirect target.

    Exchanges the code, posts the session back to the host, and returns an
    empty page.

    Errors:
        400 - state envelope invalid or tampered
        501 - cipher key or OAuth client not configured
        502 - provider rejected the authorization code
    """
    action = _action_or_404(name)
    if not getattr(action, "uses_oauth", False):
        raise HTTPException(status_code=404, detail=f"Action '{name}' does not use OAuth")

    try:
        await action.oauth_fetch_info(dict(request.query_params), action.oauth_redirect_uri())
    except DecryptionError as e:
        raise HTTPException(status_code=400, detail="Invalid or tampered state") from e
    except AuthExchangeError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ConfigurationError as e:
        raise HTTPException(status_code=501, detail=str(e)) from e
    return Response(status_code=200)
