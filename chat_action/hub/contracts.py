"""Host action runtime contract.

Request/response shapes exchanged with the action hub host. The host sends
JSON; attachment data arrives base64-encoded.
"""

import base64
import binascii
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    CELL = "cell"
    QUERY = "query"
    DASHBOARD = "dashboard"


class ActionFormat(str, Enum):
    ASSEMBLED_PDF = "assembled_pdf"
    CSV = "csv"
    JSON = "json"
    WYSIWYG_PDF = "wysiwyg_pdf"
    WYSIWYG_PNG = "wysiwyg_png"


class ActionState(BaseModel):
    """Opaque state the host stores and hands back on the next call."""

    data: Optional[str] = None


class ActionAttachment(BaseModel):
    data_buffer: Optional[bytes] = None
    mime: Optional[str] = None
    file_extension: Optional[str] = None


class ActionScheduledPlan(BaseModel):
    scheduled_plan_id: Optional[int] = None
    title: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None


class ActionRequest(BaseModel):
    """One host invocation (form, execute, or oauth_check)."""

    params: dict[str, Any] = Field(default_factory=dict)
    form_params: dict[str, Any] = Field(default_factory=dict)
    attachment: Optional[ActionAttachment] = None
    scheduled_plan: Optional[ActionScheduledPlan] = None
    type: Optional[ActionType] = None

    @classmethod
    def from_http(cls, body: Optional[dict[str, Any]]) -> "ActionRequest":
        """Build a request from the host's JSON body.

        The host nests action params under "data" and ships attachment bytes
        as base64 under "attachment.data".

        Raises:
            ValueError: If attachment data is not valid base64
        """
        body = body or {}

        attachment = None
        raw_attachment = body.get("attachment")
        if isinstance(raw_attachment, dict):
            data_buffer = None
            if raw_attachment.get("data"):
                try:
                    data_buffer = base64.b64decode(raw_attachment["data"], validate=True)
                except (binascii.Error, ValueError) as e:
                    raise ValueError(f"Attachment data is not valid base64: {e}") from e
            attachment = ActionAttachment(
                data_buffer=data_buffer,
                mime=raw_attachment.get("mimetype"),
                file_extension=raw_attachment.get("extension"),
            )

        scheduled_plan = None
        raw_plan = body.get("scheduled_plan")
        if isinstance(raw_plan, dict):
            scheduled_plan = ActionScheduledPlan(
                scheduled_plan_id=raw_plan.get("scheduled_plan_id"),
                title=raw_plan.get("title"),
                url=raw_plan.get("url"),
                type=raw_plan.get("type"),
            )

        return cls(
            params=body.get("data") or {},
            form_params=body.get("form_params") or {},
            attachment=attachment,
            scheduled_plan=scheduled_plan,
            type=body.get("type"),
        )


class ActionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    state: Optional[ActionState] = None

    def as_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ActionFormFieldOption(BaseModel):
    name: str
    label: str


class ActionFormField(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    default: Optional[str] = None
    required: bool = False
    options: Optional[list[ActionFormFieldOption]] = None
    oauth_url: Optional[str] = None


class ActionForm(BaseModel):
    fields: list[ActionFormField] = Field(default_factory=list)
    state: Optional[ActionState] = None

    def as_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ActionDefinition(BaseModel):
    """Capability descriptor registered with the host."""

    name: str
    label: str
    icon_name: str
    description: str
    supported_action_types: list[ActionType]
    supported_formats: list[ActionFormat]
    uses_oauth: bool = False
    uses_streaming: bool = False
    minimum_supported_looker_version: str
    required_fields: list[dict[str, Any]] = Field(default_factory=list)
    params: list[dict[str, Any]] = Field(default_factory=list)
