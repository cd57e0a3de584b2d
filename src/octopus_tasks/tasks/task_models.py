# src/octopus_tasks/tasks/task_models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from typing import Any

from ..errors import MissingLinkError

logger = logging.getLogger(__name__)


class TaskState(StrEnum):
    """
    Server task lifecycle state.

    Terminal states: SUCCESS, FAILED, CANCELED, TIMED_OUT.
    """

    QUEUED = "Queued"
    EXECUTING = "Executing"
    CANCELLING = "Cancelling"
    SUCCESS = "Success"
    FAILED = "Failed"
    CANCELED = "Canceled"
    TIMED_OUT = "TimedOut"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @classmethod
    def from_wire(cls, raw: str | None) -> TaskState:
        """
        Parse a wire state. Unknown states map to EXECUTING (non-terminal);
        completion is then decided by the payload's IsCompleted flag.
        """
        if not raw:
            return cls.QUEUED
        try:
            return cls(raw)
        except ValueError:
            # Server may send a different casing.
            for member in cls:
                if member.value.lower() == raw.lower():
                    return member
            logger.debug("Unknown task state %r, treating it as %s", raw, cls.EXECUTING)
            return cls.EXECUTING


_TERMINAL_STATES = frozenset(
    {TaskState.SUCCESS, TaskState.FAILED, TaskState.CANCELED, TaskState.TIMED_OUT}
)


@dataclass(slots=True)
class Task:
    id: str | None
    name: str
    description: str
    state: TaskState = TaskState.QUEUED
    space_id: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    links: dict[str, str] = field(default_factory=dict)
    is_completed: bool = False

    error_message: str | None = None
    queue_time: str | None = None
    start_time: str | None = None
    completed_time: str | None = None
    duration: str | None = None
    finished_successfully: bool = False
    has_warnings_or_errors: bool = False
    can_rerun: bool = False

    def link(self, name: str) -> str:
        try:
            return self.links[name]
        except KeyError:
            raise MissingLinkError(f"Task {self.id or '<new>'}", name) from None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Task:
        state = TaskState.from_wire(data.get("State"))
        completed = data.get("IsCompleted")
        return cls(
            id=data.get("Id"),
            name=data.get("Name") or "",
            description=data.get("Description") or "",
            state=state,
            space_id=data.get("SpaceId") or None,
            arguments=dict(data.get("Arguments") or {}),
            links=dict(data.get("Links") or {}),
            is_completed=state.is_terminal if completed is None else bool(completed),
            error_message=data.get("ErrorMessage"),
            queue_time=data.get("QueueTime"),
            start_time=data.get("StartTime"),
            completed_time=data.get("CompletedTime"),
            duration=data.get("Duration"),
            finished_successfully=bool(data.get("FinishedSuccessfully", state is TaskState.SUCCESS)),
            has_warnings_or_errors=bool(data.get("HasWarningsOrErrors", False)),
            can_rerun=bool(data.get("CanRerun", False)),
        )

    def to_payload(self) -> dict[str, Any]:
        """Body for a create request. Server owned fields are left out."""
        out: dict[str, Any] = {
            "Name": self.name,
            "Description": self.description,
            "Arguments": {k: _argument_to_wire(v) for k, v in self.arguments.items()},
        }
        if self.space_id:
            out["SpaceId"] = self.space_id
        return out


@dataclass(frozen=True, slots=True)
class ActionTemplate:
    """The bits of a step (action) template needed to run it as an ad-hoc task."""

    id: str | None
    name: str
    space_id: str | None = None


@dataclass(frozen=True, slots=True)
class PropertyValue:
    value: str | None
    is_sensitive: bool = False

    def to_payload(self) -> Any:
        if self.is_sensitive:
            return {"HasValue": self.value is not None, "NewValue": self.value}
        return self.value


@dataclass(slots=True)
class TaskDetails:
    task: Task
    activity_logs: list[dict[str, Any]] = field(default_factory=list)
    progress_percentage: int = 0
    physical_log_size: int = 0
    links: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> TaskDetails:
        progress = data.get("Progress") or {}
        return cls(
            task=Task.from_payload(data.get("Task") or {}),
            activity_logs=list(data.get("ActivityLogs") or []),
            progress_percentage=int(progress.get("ProgressPercentage") or 0),
            physical_log_size=int(data.get("PhysicalLogSize") or 0),
            links=dict(data.get("Links") or {}),
        )


def format_timespan(value: timedelta) -> str:
    """Render a duration the way the server parses TimeSpan values ([d.]hh:mm:ss)."""
    total = int(value.total_seconds())
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    hms = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{days}.{hms}" if days else hms


def _argument_to_wire(value: Any) -> Any:
    if isinstance(value, timedelta):
        return format_timespan(value)
    if isinstance(value, PropertyValue):
        return value.to_payload()
    if isinstance(value, dict):
        return {k: _argument_to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_argument_to_wire(v) for v in value]
    return value
