"""Google Hangouts Chat action.

Posts a report card into a Google Chat space chosen by the user. The host
keeps no session affinity, so every call rebuilds its OAuth client from the
state blob the host hands back:

- form: login link when there is no usable session, otherwise the space
  picker plus a message field
- execute: one card post; remote failures come back as a structured
  failure, a missing session as a "reset" signal
- oauth / oauth_redirect: browser round trip through Google consent; the
  host callback URL rides along inside an encrypted state envelope
- oauth_check: cheap listing call to confirm the tokens still work
"""

import json
import logging
import re
import time
from typing import Any, Optional

import httpx

from ..auth.oauth.broker import CHAT_SCOPES, CredentialBroker
from ..config import Settings
from ..crypto.envelope import StateCodec
from ..errors import (
    ActionHubError,
    AuthExchangeError,
    ConfigurationError,
    DecryptionError,
    PreconditionError,
    RemoteCallFailure,
    SessionInvalid,
)
from ..hub.contracts import (
    ActionDefinition,
    ActionForm,
    ActionFormat,
    ActionFormField,
    ActionFormFieldOption,
    ActionRequest,
    ActionResponse,
    ActionState,
    ActionType,
)
from ..telemetry.otel import start_span
from ..telemetry.prom import record_action_error, record_action_execution, record_oauth_event
from .cards import DEFAULT_TITLE, build_report_card
from .paginator import list_all
from .session import SessionState

_LOG = logging.getLogger(__name__)

FORM_PAGE_SIZE = 1000
CHECK_PAGE_SIZE = 10
RESET_STATE = "reset"

# Resource names only; anything else would address another API path
SPACE_NAME = re.compile(r"spaces/[A-Za-z0-9_-]+")


def reset_response() -> ActionResponse:
    """Tell the host to drop its stored session and start over at the form."""
    return ActionResponse(success=False, state=ActionState(data=RESET_STATE))


class GoogleHangoutsChatAction:
    """Send a report link to Google Hangouts Chat."""

    name = "google_hangouts_chat"
    label = "Google Hangouts Chat"
    icon_name = "google/chat/google_hangouts_chat.svg"
    description = "Send data to Google Hangouts Chat."
    supported_action_types = [ActionType.DASHBOARD, ActionType.QUERY]
    supported_formats = [
        ActionFormat.WYSIWYG_PDF,
        ActionFormat.ASSEMBLED_PDF,
        ActionFormat.WYSIWYG_PNG,
    ]
    uses_oauth = True
    uses_streaming = False
    minimum_supported_looker_version = "6.8.0"

    def __init__(
        self,
        broker: Optional[CredentialBroker] = None,
        codec: Optional[StateCodec] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize action.

        Args:
            broker: Fixed broker (default: built from env on each call)
            codec: Fixed state codec (default: built from env on each call)
            transport: Optional httpx transport for the host callback post
        """
        self._broker = broker
        self._codec = codec
        self._transport = transport

    def broker(self) -> CredentialBroker:
        return self._broker or CredentialBroker.from_env(transport=self._transport)

    def codec(self) -> StateCodec:
        return self._codec or StateCodec.from_env()

    def describe(self) -> ActionDefinition:
        return ActionDefinition(
            name=self.name,
            label=self.label,
            icon_name=self.icon_name,
            description=self.description,
            supported_action_types=self.supported_action_types,
            supported_formats=self.supported_formats,
            uses_oauth=self.uses_oauth,
            uses_streaming=self.uses_streaming,
            minimum_supported_looker_version=self.minimum_supported_looker_version,
        )

    def oauth_redirect_uri(self) -> str:
        return f"{Settings.from_env().base_url}/actions/{self.name}/oauth_redirect"

    # ------------------------------------------------------------------
    # form
    # ------------------------------------------------------------------

    def _login_form(self, request: ActionRequest) -> ActionForm:
        state_plaintext = json.dumps({"stateurl": request.params.get("state_url")})
        try:
            ciphertext = self.codec().encrypt(state_plaintext)
        except ConfigurationError:
            _LOG.error("Encryption not correctly configured")
            raise

        oauth_url = f"{Settings.from_env().base_url}/actions/{self.name}/oauth?state={ciphertext}"
        return ActionForm(
            fields=[
                ActionFormField(
                    name="login",
                    type="oauth_link",
                    label="Log in",
                    description="In order to send to Google Hangouts Chat, you will need to log in"
                    " to your Google account.",
                    oauth_url=oauth_url,
                )
            ],
            state=ActionState(),
        )

    async def form(self, request: ActionRequest) -> ActionForm:
        """Render the login link or, with a live session, the space picker.

        Session problems never raise here; they fall back to the login form.

        Raises:
            ConfigurationError: If the login link cannot be encrypted
        """
        try:
            session = SessionState.load(request.params.get("state_json"))
        except SessionInvalid:
            return self._login_form(request)

        with start_span("action.form", {"action.name": self.name}) as span:
            try:
                client = self.broker().reconstruct_client(session.redirect, session.tokens)
                spaces = await list_all(client, page_size=FORM_PAGE_SIZE)
            except RemoteCallFailure as e:
                _LOG.warning("Log in fail: %s", e)
                return self._login_form(request)
            span.set_attribute("action.space_count", len(spaces))

        return ActionForm(
            fields=[
                ActionFormField(
                    name="space",
                    type="select",
                    label="Select Space to send message",
                    description="Google Hangouts Chat space",
                    required=True,
                    options=[ActionFormFieldOption(name=space.id, label=space.label) for space in spaces],
                ),
                ActionFormField(
                    name="message",
                    type="string",
                    label="Enter a message to display",
                    required=True,
                ),
            ],
            state=ActionState(data=session.dumps()),
        )

    # ------------------------------------------------------------------
    # execute
    # ------------------------------------------------------------------

    async def execute(self, request: ActionRequest) -> ActionResponse:
        """Post the report card to the selected space.

        Raises:
            PreconditionError: If the attachment, space, or report URL is missing or invalid
        """
        start_time = time.perf_counter()

        if not request.params.get("state_json"):
            record_action_error(self.name, "session_invalid")
            record_action_execution(self.name, "reset", time.perf_counter() - start_time)
            return reset_response()

        if not request.attachment or not request.attachment.data_buffer:
            record_action_error(self.name, "precondition")
            raise PreconditionError("Couldn't get data from attachment.")

        space = request.form_params.get("space")
        if not space:
            record_action_error(self.name, "precondition")
            raise PreconditionError("Missing space.")
        if not isinstance(space, str) or not SPACE_NAME.fullmatch(space):
            record_action_error(self.name, "precondition")
            raise PreconditionError("Invalid space.")

        plan = request.scheduled_plan
        if not plan or not plan.url:
            record_action_error(self.name, "precondition")
            raise PreconditionError("Missing url.")

        try:
            session = SessionState.load(request.params["state_json"])
        except SessionInvalid:
            record_action_error(self.name, "session_invalid")
            record_action_execution(self.name, "reset", time.perf_counter() - start_time)
            return reset_response()

        card = build_report_card(
            title=plan.title or DEFAULT_TITLE,
            message=request.form_params.get("message") or "",
            url=plan.url,
        )

        with start_span("action.execute", {"action.name": self.name}) as span:
            client = self.broker().reconstruct_client(session.redirect, session.tokens)
            try:
                await client.create_message(space, card)
            except RemoteCallFailure as e:
                _LOG.warning("Google Chat message create failed: %s", e)
                span.set_attribute("action.success", False)
                record_action_error(self.name, "remote_error")
                record_action_execution(self.name, "failed", time.perf_counter() - start_time)
                return ActionResponse(success=False, message=str(e))
            span.set_attribute("action.success", True)

        record_action_execution(self.name, "ok", time.perf_counter() - start_time)
        return ActionResponse(success=True)

    # ------------------------------------------------------------------
    # oauth
    # ------------------------------------------------------------------

    async def oauth_url(self, redirect_uri: str, encrypted_state: str) -> str:
        """Consent URL for the browser; the encrypted state passes through untouched."""
        url = self.broker().build_authorization_url(redirect_uri, CHAT_SCOPES, encrypted_state)
        record_oauth_event("google", "authorize_started")
        return url

    async def oauth_fetch_info(self, url_params: dict[str, str], redirect_uri: str) -> None:
        """Finish the OAuth round trip and hand the session back to the host.

        Raises:
            ConfigurationError: If the cipher key is not configured
            DecryptionError: If the state envelope is tampered or carries no callback
            AuthExchangeError: If Google rejects the authorization code
        """
        try:
            plaintext = self.codec().decrypt(url_params.get("state") or "")
        except ConfigurationError:
            _LOG.error("Encryption not correctly configured")
            raise
        except DecryptionError as e:
            _LOG.error("Rejected OAuth state: %s", e)
            record_oauth_event("google", "invalid_state")
            raise

        try:
            state_url = json.loads(plaintext).get("stateurl")
        except (ValueError, AttributeError) as e:
            raise DecryptionError("State payload is not a JSON object") from e
        if not state_url:
            record_oauth_event("google", "invalid_state")
            raise DecryptionError("State payload carries no callback URL")

        if url_params.get("error"):
            record_oauth_event("google", "callback_error")
            raise AuthExchangeError(f"OAuth error: {url_params['error']}")
        code = url_params.get("code")
        if not code:
            raise AuthExchangeError("Missing authorization code")

        tokens = await self.broker().exchange_code_for_tokens(redirect_uri, code)

        # Callback failures are logged, never retried
        session = SessionState(tokens=tokens, redirect=redirect_uri)
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(
                    state_url,
                    content=session.dumps(),
                    headers={"Content-Type": "application/json"},
                )
            if response.status_code >= 400:
                _LOG.error("Host state callback rejected: %s", response.status_code)
                record_oauth_event("google", "callback_post_failed")
                return
        except httpx.HTTPError as e:
            _LOG.error("Host state callback failed: %s", e)
            record_oauth_event("google", "callback_post_failed")
            return

        record_oauth_event("google", "tokens_delivered")

    async def oauth_check(self, request: ActionRequest) -> bool:
        """True when the host's session still authenticates against Google Chat."""
        try:
            session = SessionState.load(request.params.get("state_json"))
        except SessionInvalid:
            return False

        try:
            client = self.broker().reconstruct_client(session.redirect, session.tokens)
            await client.list_spaces(page_size=CHECK_PAGE_SIZE)
        except ActionHubError as e:
            _LOG.info("OAuth check failed: %s", e)
            return False
        return True
