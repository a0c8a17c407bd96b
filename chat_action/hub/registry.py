"""In-process registry of actions exposed to the host."""

import logging
from typing import Any, Optional

_LOG = logging.getLogger(__name__)

_ACTIONS: dict[str, Any] = {}


def register_action(action: Any) -> None:
    """Expose an action to the host. Re-registering a name replaces it."""
    if action.name in _ACTIONS:
        _LOG.warning("Action '%s' registered twice, replacing", action.name)
    _ACTIONS[action.name] = action
    _LOG.info("Registered action: %s", action.name)


def get_action(name: str) -> Optional[Any]:
    return _ACTIONS.get(name)


def list_actions() -> list[Any]:
    return sorted(_ACTIONS.values(), key=lambda a: a.name)


def clear_actions() -> None:
    _ACTIONS.clear()
