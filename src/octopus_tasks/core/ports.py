# src/octopus_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task core.

The core depends on Protocols instead of concrete implementations.
This keeps the HTTP transport swappable and makes testing easier:
tests plug in an in-memory LinkClient and a fixed space context.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from .spaces import SpaceContext

JsonObject = dict[str, Any]
QueryParams = Mapping[str, Any]


class LinkClient(Protocol):
    """
    Link-following HTTP client.

    Links are the raw values found in a resource's "Links" map. Payloads are
    decoded JSON; turning them into typed models is the caller's job.
    Failures surface as whatever the transport raises and are not retried.
    """

    async def get(self, link: str, params: QueryParams | None = None) -> Any: ...

    async def get_text(self, link: str, params: QueryParams | None = None) -> str: ...

    async def post(self, link: str, body: Any = None) -> Any: ...

    async def create(self, collection_link: str, body: JsonObject) -> Any: ...

    async def list_all(self, link: str, params: QueryParams | None = None) -> list[Any]: ...

    async def collection_link(self, name: str, *, space_id: str | None = None) -> str:
        """
        Resolve a collection link ("Tasks", ...) independently of any resource.

        space_id=None resolves the system level (unscoped) link.
        """
        ...


class SpaceContextProvider(Protocol):
    """Who is asking, and which spaces are they looking at right now."""

    def current_context(self) -> SpaceContext: ...
