"""Test doubles and constants shared across the suite."""

BASE_URL = "https://hub.example.com"
HOST_CALLBACK = "https://looker.example.com/action_hub_state/abc123"


class FakeChatClient:
    """Stand-in for GoogleChatClient driven by canned pages.

    pages maps an incoming page token (None for the first call) to the
    response dict returned for it.
    """

    def __init__(self, pages=None, send_error=None, list_error=None):
        self.pages = pages if pages is not None else {None: {"spaces": []}}
        self.send_error = send_error
        self.list_error = list_error
        self.list_calls = []
        self.sent = []

    async def list_spaces(self, page_size, page_token=None):
        self.list_calls.append({"page_size": page_size, "page_token": page_token})
        if self.list_error:
            raise self.list_error
        return self.pages[page_token]

    async def create_message(self, space, body):
        if self.send_error:
            raise self.send_error
        self.sent.append({"space": space, "body": body})
        return {"name": f"{space}/messages/1"}
