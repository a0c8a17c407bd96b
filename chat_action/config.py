"""Environment-sourced settings.

Settings are read fresh on every call so no process caches stale values.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

DEFAULT_BASE_URL = "http://localhost:8000"


@dataclass(frozen=True)
class Settings:
    client_id: Optional[str]
    client_secret: Optional[str]
    base_url: str
    cipher_master: Optional[str]

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the process environment."""
        base_url = os.getenv("ACTION_HUB_BASE_URL") or DEFAULT_BASE_URL
        return cls(
            client_id=os.getenv("GOOGLE_HANGOUTS_CHAT_CLIENT_ID") or None,
            client_secret=os.getenv("GOOGLE_HANGOUTS_CHAT_CLIENT_SECRET") or None,
            base_url=base_url.rstrip("/"),
            cipher_master=os.getenv("CIPHER_MASTER") or None,
        )

    @property
    def oauth_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def require_oauth_client(self) -> tuple[str, str]:
        """Return (client_id, client_secret) or raise ConfigurationError."""
        if not self.oauth_configured:
            raise ConfigurationError(
                "Google Hangouts Chat OAuth not configured "
                "(GOOGLE_HANGOUTS_CHAT_CLIENT_ID / GOOGLE_HANGOUTS_CHAT_CLIENT_SECRET missing)"
            )
        return self.client_id, self.client_secret
