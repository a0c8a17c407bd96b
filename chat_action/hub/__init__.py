"""Host action runtime contract and registry."""

from .contracts import (
    ActionAttachment,
    ActionDefinition,
    ActionForm,
    ActionFormat,
    ActionFormField,
    ActionFormFieldOption,
    ActionRequest,
    ActionResponse,
    ActionScheduledPlan,
    ActionState,
    ActionType,
)
from .registry import clear_actions, get_action, list_actions, register_action

__all__ = [
    "ActionAttachment",
    "ActionDefinition",
    "ActionForm",
    "ActionFormat",
    "ActionFormField",
    "ActionFormFieldOption",
    "ActionRequest",
    "ActionResponse",
    "ActionScheduledPlan",
    "ActionState",
    "ActionType",
    "clear_actions",
    "get_action",
    "list_actions",
    "register_action",
]
