"""Cursor pagination over Google Chat spaces."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class RemoteResource:
    id: str
    label: str


class SpaceLister(Protocol):
    async def list_spaces(self, page_size: int, page_token: Any = None) -> dict[str, Any]: ...


async def list_all(client: SpaceLister, page_size: int = 1000) -> list[RemoteResource]:
    """Fetch every space, following nextPageToken until it runs out.

    Pages are requested one after another since each cursor comes from the
    previous response. Server order is kept. Entries that are not objects
    or carry no name are dropped, a missing displayName falls back to the name, and repeated
    names keep their first occurrence.

    Raises:
        RemoteCallFailure: If any page request fails
    """
    resources: list[RemoteResource] = []
    seen: set[str] = set()

    page_token = None
    while True:
        response = await client.list_spaces(page_size=page_size, page_token=page_token)

        for space in response.get("spaces") or []:
            if not isinstance(space, dict):
                continue
            space_id = space.get("name")
            if not space_id or space_id in seen:
                continue
            seen.add(space_id)
            resources.append(RemoteResource(id=space_id, label=space.get("displayName") or space_id))

        page_token = response.get("nextPageToken")
        if not page_token:
            return resources
