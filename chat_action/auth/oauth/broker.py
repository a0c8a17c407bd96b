"""Google OAuth 2.0 credential broker.

Builds consent URLs, exchanges authorization codes, and rebuilds an
authenticated Chat client from a token set handed back by the host.
The broker keeps no state between calls.
"""

import logging
import time
import urllib.parse
from typing import Any, Optional, Sequence

import httpx

from ...config import Settings
from ...connectors.google_chat import GoogleChatClient
from ...errors import AuthExchangeError
from ...telemetry.prom import record_oauth_event

_LOG = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"

CHAT_SCOPES = ["https://www.googleapis.com/auth/chat.bot"]


def _with_expiry_date(token_response: dict[str, Any]) -> dict[str, Any]:
    """Convert relative expires_in into an absolute expiry_date (epoch ms).

    Raises:
        AuthExchangeError: If expires_in is not a whole number of seconds
    """
    tokens = dict(token_response)
    expires_in = tokens.pop("expires_in", None)
    if expires_in:
        try:
            lifetime_seconds = int(expires_in)
        except (TypeError, ValueError) as e:
            record_oauth_event("google", "invalid_expires_in")
            raise AuthExchangeError(f"Token endpoint returned invalid expires_in: {expires_in!r}") from e
        tokens["expiry_date"] = int(time.time() * 1000) + lifetime_seconds * 1000
    return tokens


class CredentialBroker:
    """OAuth broker for one Google client registration."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self._transport = transport
        self._timeout = timeout

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CredentialBroker":
        """Build a broker from GOOGLE_HANGOUTS_CHAT_CLIENT_ID / _SECRET.

        Raises:
            ConfigurationError: If either credential is missing
        """
        client_id, client_secret = Settings.from_env().require_oauth_client()
        return cls(client_id, client_secret, transport=transport)

    def build_authorization_url(self, redirect_uri: str, scopes: Sequence[str], state: str) -> str:
        """Build the Google consent URL.

        Requests offline access with forced consent so a refresh token is
        always issued. The state string is passed through verbatim.
        """
        auth_params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "access_type": "offline",  # Request refresh token
            "prompt": "consent",  # Force consent screen to get refresh token
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urllib.parse.urlencode(auth_params)}"

    async def _post_token_endpoint(self, form: dict[str, str], event_prefix: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(TOKEN_URL, data=form)
        except httpx.TimeoutException as e:
            record_oauth_event("google", f"{event_prefix}_timeout")
            raise AuthExchangeError("Token endpoint timeout") from e
        except httpx.HTTPError as e:
            record_oauth_event("google", f"{event_prefix}_failed")
            raise AuthExchangeError(f"Token endpoint unreachable: {e}") from e

        if response.status_code != 200:
            record_oauth_event("google", f"{event_prefix}_failed")
            raise AuthExchangeError(f"Token exchange failed: {response.status_code} {response.text[:200]}")

        try:
            token_response = response.json()
        except ValueError as e:
            record_oauth_event("google", f"{event_prefix}_failed")
            raise AuthExchangeError("Token endpoint returned non-JSON body") from e

        if not isinstance(token_response, dict) or not token_response.get("access_token"):
            record_oauth_event("google", "missing_access_token")
            raise AuthExchangeError("No access token in response")

        return token_response

    async def exchange_code_for_tokens(self, redirect_uri: str, code: str) -> dict[str, Any]:
        """Exchange a single-use authorization code for a token set.

        Raises:
            AuthExchangeError: On any non-success response (never retried)
        """
        token_data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        token_response = await self._post_token_endpoint(token_data, "token_exchange")
        record_oauth_event("google", "tokens_issued")

        if not token_response.get("refresh_token"):
            _LOG.warning("Google token response carried no refresh_token")

        return _with_expiry_date(token_response)

    async def refresh_tokens(self, tokens: dict[str, Any]) -> dict[str, Any]:
        """Trade a refresh token for a new access token.

        Raises:
            AuthExchangeError: If no refresh token is present or Google rejects it
        """
        refresh_token = tokens.get("refresh_token")
        if not refresh_token:
            raise AuthExchangeError("No refresh token available")

        refresh_data = {
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }
        token_response = await self._post_token_endpoint(refresh_data, "token_refresh")
        record_oauth_event("google", "tokens_refreshed")
        return _with_expiry_date(token_response)

    def reconstruct_client(self, redirect_uri: str, tokens: dict[str, Any]) -> GoogleChatClient:
        """Assemble a Chat client from previously issued tokens. No network call."""
        return GoogleChatClient(
            tokens=tokens,
            redirect_uri=redirect_uri,
            refresher=self.refresh_tokens,
            transport=self._transport,
        )
