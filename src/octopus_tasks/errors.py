# src/octopus_tasks/errors.py

"""
Exception types raised by the task client.

Everything derives from OctopusTasksError so callers (and the CLI) can catch
the whole family at once. Built-in bases are mixed in where a caller would
naturally expect them (ValueError, TimeoutError, KeyError).
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .core.spaces import SpaceContext


class OctopusTasksError(Exception):
    """Base class for all errors raised by octopus_tasks."""


class OutOfScopeError(OctopusTasksError):
    """A space scoped task was acted upon outside the current space context."""

    def __init__(self, space_id: str, context: SpaceContext) -> None:
        self.space_id = space_id
        self.context = context
        super().__init__(
            f"Attempted to perform a space scoped operation within space {space_id}, "
            "but your current space context does not contain that space id. "
            f"Current Space Context: {context.describe()}"
        )


class AmbiguousSpaceError(OctopusTasksError):
    """An operation needs exactly one space but the context names zero or several."""


class InvalidArgumentError(OctopusTasksError, ValueError):
    """Caller input rejected before any request was sent."""


class MissingLinkError(OctopusTasksError, KeyError):
    """A resource does not expose the requested link."""

    def __init__(self, resource: str, link_name: str) -> None:
        self.resource = resource
        self.link_name = link_name
        super().__init__(f"{resource} has no link named {link_name!r}")

    def __str__(self) -> str:
        # KeyError repr()s its argument; keep the plain message.
        return str(self.args[0])


class TaskWaitTimeoutError(OctopusTasksError, TimeoutError):
    """Polling gave up before every task completed. The tasks keep running server-side."""

    def __init__(self, elapsed: timedelta) -> None:
        self.elapsed = elapsed
        super().__init__(
            "One or more tasks did not complete before the timeout was reached. "
            f"We waited {format_duration(elapsed)} for the tasks to complete."
        )


class TransportError(OctopusTasksError):
    """HTTP or network failure reported by the transport."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


def format_duration(value: timedelta) -> str:
    """Render a duration as HH:MM:SS (hours may exceed 24)."""
    total = int(value.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
