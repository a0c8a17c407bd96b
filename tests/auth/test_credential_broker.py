"""Tests for the Google OAuth credential broker."""

import time
import urllib.parse

import httpx
import pytest

from chat_action.auth.oauth.broker import CHAT_SCOPES, TOKEN_URL, CredentialBroker
from chat_action.connectors.google_chat import GoogleChatClient
from chat_action.errors import AuthExchangeError, ConfigurationError

REDIRECT = "https://hub.example.com/actions/google_hangouts_chat/oauth_redirect"


def _broker(handler) -> CredentialBroker:
    return CredentialBroker("client-123", "secret-456", transport=httpx.MockTransport(handler))


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected network call: {request.url}")


class TestAuthorizationUrl:
    def test_requests_offline_access_with_forced_consent(self):
        url = _broker(_no_network).build_authorization_url(REDIRECT, CHAT_SCOPES, "opaque-state")
        query = urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)

        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["response_type"] == ["code"]
        assert query["client_id"] == ["client-123"]
        assert query["redirect_uri"] == [REDIRECT]
        assert query["scope"] == ["https://www.googleapis.com/auth/chat.bot"]

    def test_state_survives_verbatim(self):
        state = "eyJ2IjoxLCJub25jZSI6Ik_-abc== &weird/chars?"
        url = _broker(_no_network).build_authorization_url(REDIRECT, CHAT_SCOPES, state)
        query = urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)

        assert query["state"] == [state]

    def test_deterministic(self):
        broker = _broker(_no_network)
        assert broker.build_authorization_url(REDIRECT, ["a", "b"], "s") == broker.build_authorization_url(
            REDIRECT, ["a", "b"], "s"
        )


class TestCodeExchange:
    @pytest.mark.anyio
    async def test_successful_exchange(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "access_token": "ya29.new",
                    "refresh_token": "1//refresh",
                    "expires_in": 3599,
                    "scope": "https://www.googleapis.com/auth/chat.bot",
                    "token_type": "Bearer",
                },
            )

        before_ms = int(time.time() * 1000)
        tokens = await _broker(handler).exchange_code_for_tokens(REDIRECT, "auth-code")

        assert len(seen) == 1
        assert str(seen[0].url) == TOKEN_URL
        form = urllib.parse.parse_qs(seen[0].content.decode("utf-8"))
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["auth-code"]
        assert form["redirect_uri"] == [REDIRECT]
        assert form["client_secret"] == ["secret-456"]

        assert tokens["access_token"] == "ya29.new"
        assert tokens["refresh_token"] == "1//refresh"
        assert "expires_in" not in tokens
        assert tokens["expiry_date"] >= before_ms + 3599 * 1000

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [400, 401, 500])
    async def test_non_success_raises_without_retry(self, status):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status, json={"error": "invalid_grant"})

        with pytest.raises(AuthExchangeError, match=str(status)):
            await _broker(handler).exchange_code_for_tokens(REDIRECT, "used-code")

        assert len(calls) == 1

    @pytest.mark.anyio
    async def test_missing_access_token_raises(self):
        broker = _broker(lambda request: httpx.Response(200, json={"token_type": "Bearer"}))
        with pytest.raises(AuthExchangeError, match="No access token"):
            await broker.exchange_code_for_tokens(REDIRECT, "code")

    @pytest.mark.anyio
    @pytest.mark.parametrize("expires_in", ["an hour", [3600]])
    async def test_unreadable_expires_in_raises(self, expires_in):
        body = {"access_token": "ya29.a", "expires_in": expires_in}
        broker = _broker(lambda request: httpx.Response(200, json=body))
        with pytest.raises(AuthExchangeError, match="expires_in"):
            await broker.exchange_code_for_tokens(REDIRECT, "code")

    @pytest.mark.anyio
    async def test_transport_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthExchangeError, match="unreachable"):
            await _broker(handler).exchange_code_for_tokens(REDIRECT, "code")


class TestRefresh:
    @pytest.mark.anyio
    async def test_refresh_uses_refresh_grant(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(urllib.parse.parse_qs(request.content.decode("utf-8")))
            return httpx.Response(200, json={"access_token": "ya29.fresh", "expires_in": 3600})

        tokens = await _broker(handler).refresh_tokens({"access_token": "old", "refresh_token": "1//r"})

        assert seen[0]["grant_type"] == ["refresh_token"]
        assert seen[0]["refresh_token"] == ["1//r"]
        assert tokens["access_token"] == "ya29.fresh"

    @pytest.mark.anyio
    async def test_refresh_without_refresh_token(self):
        with pytest.raises(AuthExchangeError):
            await _broker(_no_network).refresh_tokens({"access_token": "old"})


class TestReconstructClient:
    def test_reconstruct_is_local(self):
        tokens = {"access_token": "ya29.x", "refresh_token": "1//r"}
        client = _broker(_no_network).reconstruct_client(REDIRECT, tokens)

        assert isinstance(client, GoogleChatClient)
        assert client.redirect_uri == REDIRECT
        assert client.tokens == tokens

    def test_each_call_builds_a_new_client(self):
        broker = _broker(_no_network)
        tokens = {"access_token": "ya29.x"}
        assert broker.reconstruct_client(REDIRECT, tokens) is not broker.reconstruct_client(REDIRECT, tokens)

    def test_from_env_requires_client_credentials(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_HANGOUTS_CHAT_CLIENT_SECRET")
        with pytest.raises(ConfigurationError):
            CredentialBroker.from_env()
