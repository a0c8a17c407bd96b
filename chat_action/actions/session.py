"""Session state handed to the host after OAuth and returned on every call."""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from ..errors import SessionInvalid

_LOG = logging.getLogger(__name__)


class SessionState(BaseModel):
    """Token set plus the redirect URI it was issued for.

    Serialized as {"tokens": {...}, "redirect": "..."}; that is the shape the
    host stores, so the key name stays "redirect".
    """

    tokens: dict[str, Any]
    redirect: str

    @field_validator("tokens")
    @classmethod
    def tokens_not_empty(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("tokens must not be empty")
        return v

    @field_validator("redirect")
    @classmethod
    def redirect_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("redirect must not be empty")
        return v

    @classmethod
    def load(cls, raw: Optional[str]) -> "SessionState":
        """Parse host state.

        Raises:
            SessionInvalid: If the state is absent or malformed
        """
        if not raw:
            raise SessionInvalid("No session state")

        try:
            return cls.model_validate(json.loads(raw))
        except (TypeError, ValueError, ValidationError) as e:
            _LOG.warning("Ignoring malformed session state: %s", type(e).__name__)
            raise SessionInvalid(f"Malformed session state: {type(e).__name__}") from e

    def dumps(self) -> str:
        return json.dumps({"tokens": self.tokens, "redirect": self.redirect})
