"""Google Chat REST client bound to one user's OAuth token set.

Instances are cheap and built per call from host-supplied tokens; nothing
is cached between calls.
"""

import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from ..errors import AuthExchangeError, RemoteCallFailure
from ..telemetry.prom import record_external_api_call

CHAT_API_BASE = "https://chat.googleapis.com/v1"

# Refresh a little before the recorded expiry
EXPIRY_SKEW_MS = 60_000

TokenRefresher = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def _error_detail(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.text[:200]


class GoogleChatClient:
    """Authenticated handle on the Google Chat API."""

    def __init__(
        self,
        tokens: dict[str, Any],
        redirect_uri: str,
        refresher: Optional[TokenRefresher] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """Initialize client.

        Args:
            tokens: OAuth token set (access_token, refresh_token, expiry_date, ...)
            redirect_uri: Redirect URI the tokens were issued for
            refresher: Coroutine exchanging a token set for a refreshed one
            transport: Optional httpx transport (tests inject MockTransport)
            timeout: Per-request timeout in seconds
        """
        self.tokens = dict(tokens)
        self.redirect_uri = redirect_uri
        self._refresher = refresher
        self._transport = transport
        self._timeout = timeout

    def _needs_refresh(self) -> bool:
        if not self.tokens.get("refresh_token") or self._refresher is None:
            return False
        if not self.tokens.get("access_token"):
            return True
        expiry_date = self.tokens.get("expiry_date")
        if not expiry_date:
            return False
        try:
            expires_at = int(expiry_date)
        except (TypeError, ValueError):
            # Host-held token sets are opaque; an unreadable expiry counts as unknown
            return False
        return expires_at - EXPIRY_SKEW_MS <= int(time.time() * 1000)

    async def _ensure_fresh(self) -> None:
        if not self._needs_refresh():
            return
        try:
            refreshed = await self._refresher(self.tokens)
        except AuthExchangeError as e:
            raise RemoteCallFailure(f"Token refresh failed: {e}", status_code=401) from e
        # Google omits refresh_token on refresh responses
        self.tokens = {**self.tokens, **refreshed}

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        await self._ensure_fresh()

        access_token = self.tokens.get("access_token")
        if not access_token:
            raise RemoteCallFailure("No access token available", status_code=401)

        headers = {"Authorization": f"Bearer {access_token}"}
        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                base_url=CHAT_API_BASE, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteCallFailure(f"Google Chat API request timed out after {self._timeout:g}s") from e
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"Network error connecting to Google Chat API: {e}") from e
        finally:
            record_external_api_call("google_chat", operation, time.perf_counter() - start_time)

        if response.status_code >= 400:
            raise RemoteCallFailure(_error_detail(response), status_code=response.status_code)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteCallFailure(
                "Google Chat API returned non-JSON body", status_code=response.status_code
            ) from e
        if not isinstance(body, dict):
            raise RemoteCallFailure(
                f"Google Chat API returned unexpected {type(body).__name__} body", status_code=response.status_code
            )
        return body

    async def list_spaces(self, page_size: int, page_token: Optional[str] = None) -> dict[str, Any]:
        """List spaces visible to the user.

        Returns:
            Raw page dict with "spaces" and optional "nextPageToken"

        Raises:
            RemoteCallFailure: If the call fails or the page is malformed
        """
        params: dict[str, Any] = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token
        page = await self._request("list_spaces", "GET", "/spaces", params=params)

        spaces = page.get("spaces")
        if spaces is not None and not isinstance(spaces, list):
            raise RemoteCallFailure("Google Chat API returned malformed spaces page")
        return page

    async def create_message(self, space: str, body: dict[str, Any]) -> dict[str, Any]:
        """Post a message into a space (space is the resource name, e.g. "spaces/AAA")."""
        return await self._request("create_message", "POST", f"/{space}/messages", json=body)
