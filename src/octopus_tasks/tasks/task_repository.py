# src/octopus_tasks/tasks/task_repository.py

"""
One entry point for everything task related.

TaskRepository wires the factory, the action executor and the completion
poller to a single LinkClient and space context, and adds the plain reads
(get by id, list active). using_context() returns a sibling repository pinned
to a different space context; nothing is shared between the two but the client.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..core.ports import LinkClient, SpaceContextProvider
from ..core.spaces import SpaceContext, StaticSpaceContextProvider
from .builtin_tasks import DEFAULT_SCRIPT_SYNTAX
from .task_actions import TaskActions
from .task_factory import TASKS_COLLECTION, TaskFactory
from .task_models import ActionTemplate, PropertyValue, Task, TaskDetails, TaskState
from .task_waiter import ProgressCallback, WaitOptions, wait_for_completion

logger = logging.getLogger(__name__)


class TaskRepository:
    def __init__(self, client: LinkClient, spaces: SpaceContextProvider) -> None:
        self.client = client
        self.spaces = spaces
        self.factory = TaskFactory(client, spaces)
        self.actions = TaskActions(client, spaces)

    def using_context(self, context: SpaceContext) -> TaskRepository:
        return TaskRepository(self.client, StaticSpaceContextProvider(context))

    def _read_params(self) -> dict[str, Any]:
        return self.spaces.current_context().query_parameters()

    # ---- reads ----

    async def get(self, task_id: str) -> Task:
        base = await self.client.collection_link(TASKS_COLLECTION)
        data = await self.client.get(f"{base.rstrip('/')}/{task_id}", self._read_params())
        return Task.from_payload(data)

    async def get_all_active(self, page_size: int | None = None) -> list[Task]:
        """
        All queued/executing tasks visible in the current context.

        page_size only changes how many items each request returns; every page
        is still fetched.
        """
        params = self._read_params()
        params["active"] = True
        if page_size is not None:
            params["take"] = int(page_size)
        link = await self.client.collection_link(TASKS_COLLECTION)
        active = [Task.from_payload(item) for item in await self.client.list_all(link, params)]
        logger.debug("Found %d active task(s) in %s", len(active), self.spaces.current_context().describe())
        return active

    # ---- creation (delegates) ----

    async def execute_health_check(
        self,
        description: str | None = None,
        timeout_after_minutes: int = 5,
        machine_timeout_after_minutes: int = 1,
        environment_id: str | None = None,
        machine_ids: Sequence[str] | None = None,
        restrict_to: str | None = None,
        workerpool_id: str | None = None,
        worker_ids: Sequence[str] | None = None,
    ) -> Task:
        return await self.factory.execute_health_check(
            description=description,
            timeout_after_minutes=timeout_after_minutes,
            machine_timeout_after_minutes=machine_timeout_after_minutes,
            environment_id=environment_id,
            machine_ids=machine_ids,
            restrict_to=restrict_to,
            workerpool_id=workerpool_id,
            worker_ids=worker_ids,
        )

    async def execute_calamari_update(
        self,
        description: str | None = None,
        machine_ids: Sequence[str] | None = None,
    ) -> Task:
        return await self.factory.execute_calamari_update(description=description, machine_ids=machine_ids)

    async def execute_tentacle_upgrade(
        self,
        description: str | None = None,
        environment_id: str | None = None,
        machine_ids: Sequence[str] | None = None,
        restrict_to: str | None = None,
        workerpool_id: str | None = None,
        worker_ids: Sequence[str] | None = None,
    ) -> Task:
        return await self.factory.execute_tentacle_upgrade(
            description=description,
            environment_id=environment_id,
            machine_ids=machine_ids,
            restrict_to=restrict_to,
            workerpool_id=workerpool_id,
            worker_ids=worker_ids,
        )

    async def execute_adhoc_script(
        self,
        script_body: str,
        machine_ids: Sequence[str] | None = None,
        environment_ids: Sequence[str] | None = None,
        target_roles: Sequence[str] | None = None,
        description: str | None = None,
        syntax: str = DEFAULT_SCRIPT_SYNTAX,
    ) -> Task:
        return await self.factory.execute_adhoc_script(
            script_body,
            machine_ids=machine_ids,
            environment_ids=environment_ids,
            target_roles=target_roles,
            description=description,
            syntax=syntax,
        )

    async def execute_action_template(
        self,
        template: ActionTemplate | None,
        properties: Mapping[str, PropertyValue] | None,
        machine_ids: Sequence[str] | None = None,
        environment_ids: Sequence[str] | None = None,
        target_roles: Sequence[str] | None = None,
        description: str | None = None,
    ) -> Task:
        return await self.factory.execute_action_template(
            template,
            properties,
            machine_ids=machine_ids,
            environment_ids=environment_ids,
            target_roles=target_roles,
            description=description,
        )

    async def execute_backup(self, description: str | None = None) -> Task:
        return await self.factory.execute_backup(description)

    async def execute_community_action_templates_synchronisation(
        self, description: str | None = None
    ) -> Task:
        return await self.factory.execute_community_action_templates_synchronisation(description)

    # ---- actions (delegates) ----

    async def get_details(
        self,
        task: Task,
        include_verbose_output: bool | None = None,
        tail: int | None = None,
    ) -> TaskDetails:
        return await self.actions.get_details(task, include_verbose_output, tail)

    async def get_raw_output_log(self, task: Task) -> str:
        return await self.actions.get_raw_output_log(task)

    async def get_queued_behind_tasks(self, task: Task) -> list[Task]:
        return await self.actions.get_queued_behind_tasks(task)

    async def rerun(self, task: Task) -> None:
        await self.actions.rerun(task)

    async def cancel(self, task: Task) -> None:
        await self.actions.cancel(task)

    async def modify_state(self, task: Task, new_state: TaskState, reason: str) -> None:
        await self.actions.modify_state(task, new_state, reason)

    # ---- waiting ----

    async def wait_for_completion(
        self,
        tasks: Task | Sequence[Task],
        options: WaitOptions | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if isinstance(tasks, Task):
            tasks = [tasks]
        await wait_for_completion(
            self.client,
            list(tasks),
            options,
            on_progress=on_progress,
            query=self._read_params(),
        )
