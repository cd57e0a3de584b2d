# src/octopus_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes the settings loaded once by the entrypoint,
- turns the configured space list into a SpaceContext,
- wires HttpLinkClient + TaskRepository together.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..config import Settings, get_settings
from ..core.spaces import SpaceContext, StaticSpaceContextProvider, context_from_ids
from ..http.link_client import HttpLinkClient
from ..tasks.task_repository import TaskRepository
from ..tasks.task_waiter import WaitOptions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CliRuntime:
    settings: Settings
    client: HttpLinkClient
    repository: TaskRepository

    async def aclose(self) -> None:
        await self.client.aclose()


def space_context_for(settings: Settings, override: Sequence[str] | None = None) -> SpaceContext:
    """Spaces given on the command line win over OCTOPUS_SPACES."""
    ids = list(override) if override else list(settings.spaces)
    return context_from_ids(ids, include_system=settings.include_system)


def wait_options_for(
    settings: Settings,
    *,
    timeout_minutes: float | None = None,
    poll_interval_seconds: float | None = None,
) -> WaitOptions:
    return WaitOptions.from_minutes(
        settings.wait_timeout_minutes if timeout_minutes is None else timeout_minutes,
        poll_interval_seconds=(
            settings.poll_interval_seconds if poll_interval_seconds is None else poll_interval_seconds
        ),
    )


def create_runtime(*, settings: Settings | None = None, spaces: Sequence[str] | None = None) -> CliRuntime:
    """
    Build the client and repository from settings.

    Keeping settings injectable makes the CLI easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    context = space_context_for(settings, spaces)
    client = HttpLinkClient(
        settings.server_url,
        settings.api_key,
        timeout_seconds=settings.http_timeout_seconds,
    )
    repository = TaskRepository(client, StaticSpaceContextProvider(context))
    logger.debug("Runtime ready server=%s spaces=%s", settings.server_url, context.describe())
    return CliRuntime(settings=settings, client=client, repository=repository)
