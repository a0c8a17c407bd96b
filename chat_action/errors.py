"""Error taxonomy for the chat action.

Errors fall into three channels:
- raised and fatal: ConfigurationError, PreconditionError
- raised and aborting an OAuth round trip: DecryptionError, AuthExchangeError
- converted to a structured response at the action boundary: SessionInvalid
  (reset or login form), RemoteCallFailure (failure message or login form)
"""

from typing import Optional


class ActionHubError(Exception):
    """Base class for all chat action errors."""


class ConfigurationError(ActionHubError):
    """Required configuration (client credentials, cipher key) is missing or invalid."""


class DecryptionError(ActionHubError):
    """An encrypted state payload could not be authenticated or decoded."""


class AuthExchangeError(ActionHubError):
    """The identity provider rejected an authorization code exchange."""


class PreconditionError(ActionHubError):
    """The caller omitted a field the action cannot run without."""


class SessionInvalid(ActionHubError):
    """The host-supplied session state is absent or malformed."""


class RemoteCallFailure(ActionHubError):
    """The remote chat service rejected or failed a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
