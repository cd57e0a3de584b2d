# src/octopus_tasks/tasks/task_actions.py

from __future__ import annotations

import logging
from typing import Any

from ..core.ports import LinkClient, SpaceContextProvider
from ..core.spaces import authorize
from .task_models import Task, TaskDetails, TaskState

logger = logging.getLogger(__name__)


class TaskActions:
    """
    Operations on an existing task, driven by the task's own links.

    Mutating calls (rerun, cancel, modify_state) are checked against the current
    space context first. Reads are not; they only add the space query arguments.
    """

    def __init__(self, client: LinkClient, spaces: SpaceContextProvider) -> None:
        self._client = client
        self._spaces = spaces

    def _read_params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params = self._spaces.current_context().query_parameters()
        if extra:
            params.update(extra)
        return params

    async def get_details(
        self,
        task: Task,
        include_verbose_output: bool | None = None,
        tail: int | None = None,
    ) -> TaskDetails:
        args: dict[str, Any] = {}
        if include_verbose_output is not None:
            args["verbose"] = include_verbose_output
        if tail is not None:
            args["tail"] = tail
        data = await self._client.get(task.link("Details"), self._read_params(args))
        return TaskDetails.from_payload(data)

    async def get_raw_output_log(self, task: Task) -> str:
        return await self._client.get_text(task.link("Raw"), self._read_params())

    async def get_queued_behind_tasks(self, task: Task) -> list[Task]:
        items = await self._client.list_all(task.link("QueuedBehind"), self._read_params())
        return [Task.from_payload(item) for item in items]

    async def rerun(self, task: Task) -> None:
        authorize(task, self._spaces.current_context())
        await self._client.post(task.link("Rerun"))
        logger.info("Rerun requested for task %s", task.id)

    async def cancel(self, task: Task) -> None:
        authorize(task, self._spaces.current_context())
        await self._client.post(task.link("Cancel"))
        logger.info("Cancel requested for task %s", task.id)

    async def modify_state(self, task: Task, new_state: TaskState, reason: str) -> None:
        authorize(task, self._spaces.current_context())
        await self._client.post(task.link("State"), {"state": str(new_state), "reason": reason})
        logger.info("Task %s state set to %s", task.id, new_state)
