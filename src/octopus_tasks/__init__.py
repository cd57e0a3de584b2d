"""
Async client for the deployment server's task subsystem.

Typical use:

    async with HttpLinkClient(url, api_key) as client:
        repo = TaskRepository(client, StaticSpaceContextProvider(SpaceContext.specific("Spaces-1")))
        task = await repo.execute_health_check(machine_ids=["Machines-1"])
        await repo.wait_for_completion(task, WaitOptions.from_minutes(10))
"""

from .core.spaces import SpaceContext, StaticSpaceContextProvider
from .errors import (
    AmbiguousSpaceError,
    InvalidArgumentError,
    MissingLinkError,
    OctopusTasksError,
    OutOfScopeError,
    TaskWaitTimeoutError,
    TransportError,
)
from .http.link_client import HttpLinkClient
from .tasks.task_models import ActionTemplate, PropertyValue, Task, TaskDetails, TaskState
from .tasks.task_repository import TaskRepository
from .tasks.task_waiter import WaitOptions, wait_for_completion

__all__ = [
    "ActionTemplate",
    "AmbiguousSpaceError",
    "HttpLinkClient",
    "InvalidArgumentError",
    "MissingLinkError",
    "OctopusTasksError",
    "OutOfScopeError",
    "PropertyValue",
    "SpaceContext",
    "StaticSpaceContextProvider",
    "Task",
    "TaskDetails",
    "TaskRepository",
    "TaskState",
    "TaskWaitTimeoutError",
    "TransportError",
    "WaitOptions",
    "wait_for_completion",
]
