"""Actions exposed to the host."""

import logging

from ..config import Settings
from ..hub.registry import register_action
from .google_chat import GoogleHangoutsChatAction

_LOG = logging.getLogger(__name__)


def load_actions() -> None:
    """Register every action whose credentials are configured."""
    if Settings.from_env().oauth_configured:
        register_action(GoogleHangoutsChatAction())
    else:
        _LOG.info("Google Hangouts Chat client credentials not set, action not registered")


__all__ = ["GoogleHangoutsChatAction", "load_actions"]
