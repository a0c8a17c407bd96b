"""Global pytest configuration and fixtures."""

import base64
import json
import os
from unittest.mock import MagicMock

import pytest
from _utils import BASE_URL, FakeChatClient

from chat_action.errors import RemoteCallFailure


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _action_env(monkeypatch):
    """
    Configure a fully set-up action for every test.

    - OAuth client credentials present (action registers)
    - Fresh AES-256 key per test (CIPHER_MASTER)
    - Telemetry off so no global metric registry is touched
    """
    monkeypatch.setenv("GOOGLE_HANGOUTS_CHAT_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("GOOGLE_HANGOUTS_CHAT_CLIENT_SECRET", "test-secret")
    monkeypatch.setenv("ACTION_HUB_BASE_URL", BASE_URL)
    monkeypatch.setenv("CIPHER_MASTER", base64.b64encode(os.urandom(32)).decode("ascii"))
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")


@pytest.fixture
def fake_chat():
    return FakeChatClient(
        pages={
            None: {
                "spaces": [
                    {"name": "spaces/AAA", "displayName": "Analytics"},
                    {"name": "spaces/BBB", "displayName": "Ops"},
                ],
                "nextPageToken": "page-2",
            },
            "page-2": {"spaces": [{"name": "spaces/CCC"}]},
        }
    )


@pytest.fixture
def fake_broker(fake_chat):
    """Broker double handing out fake_chat and recording reconstruction calls."""
    broker = MagicMock()
    broker.reconstruct_client.return_value = fake_chat
    return broker


@pytest.fixture
def session_json():
    return json.dumps(
        {
            "tokens": {"access_token": "ya29.test", "refresh_token": "1//refresh", "token_type": "Bearer"},
            "redirect": f"{BASE_URL}/actions/google_hangouts_chat/oauth_redirect",
        }
    )


@pytest.fixture
def remote_failure():
    return RemoteCallFailure("Permission denied on space", status_code=403)
