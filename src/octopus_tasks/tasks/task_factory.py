# src/octopus_tasks/tasks/task_factory.py

from __future__ import annotations

"""
Task factory.

Builds creation requests for the server's built-in task kinds:
- picks the catalog name and default description,
- assembles the argument map,
- checks the space context,
- submits the task to the right "Tasks" collection.

Space scoped kinds (health, Calamari update, upgrade, ad-hoc script,
step template) need the context to narrow to exactly one space and fail
before any request otherwise. System kinds (backup, community template
sync) always go to the unscoped collection.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import timedelta

from ..core.ports import LinkClient, SpaceContextProvider
from ..core.spaces import authorize, require_single_space
from ..errors import InvalidArgumentError
from .builtin_tasks import (
    ACTION_TEMPLATE_DESCRIPTION,
    DEFAULT_SCRIPT_SYNTAX,
    Arg,
    TaskKind,
    builtin_task,
)
from .task_models import ActionTemplate, PropertyValue, Task

logger = logging.getLogger(__name__)

TASKS_COLLECTION = "Tasks"


def combine_machine_ids(
    machine_ids: Sequence[str] | None,
    worker_ids: Sequence[str] | None,
) -> list[str] | None:
    """
    Machines followed by workers.

    Either side may be absent; both absent gives None rather than an empty list,
    so the server applies its own default (all machines).
    """
    if machine_ids is None and worker_ids is None:
        return None
    return [*(machine_ids or ()), *(worker_ids or ())]


def _as_list(values: Sequence[str] | None) -> list[str] | None:
    return None if values is None else list(values)


class TaskFactory:
    def __init__(self, client: LinkClient, spaces: SpaceContextProvider) -> None:
        self._client = client
        self._spaces = spaces

    # ---- space scoped kinds ----

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
        space_id = require_single_space(self._spaces.current_context())
        spec = builtin_task(TaskKind.HEALTH)
        task = Task(
            id=None,
            name=spec.name,
            description=spec.describe(description),
            space_id=space_id,
            arguments={
                Arg.TIMEOUT: timedelta(minutes=timeout_after_minutes),
                Arg.MACHINE_TIMEOUT: timedelta(minutes=machine_timeout_after_minutes),
                Arg.ENVIRONMENT_ID: environment_id,
                Arg.WORKERPOOL_ID: workerpool_id,
                Arg.RESTRICTED_TO: restrict_to,
                Arg.MACHINE_IDS: combine_machine_ids(machine_ids, worker_ids),
            },
        )
        return await self._create(task, space_id)

    async def execute_calamari_update(
        self,
        description: str | None = None,
        machine_ids: Sequence[str] | None = None,
    ) -> Task:
        space_id = require_single_space(self._spaces.current_context())
        spec = builtin_task(TaskKind.UPDATE_CALAMARI)
        task = Task(
            id=None,
            name=spec.name,
            description=spec.describe(description),
            space_id=space_id,
            arguments={Arg.MACHINE_IDS: _as_list(machine_ids)},
        )
        return await self._create(task, space_id)

    async def execute_tentacle_upgrade(
        self,
        description: str | None = None,
        environment_id: str | None = None,
        machine_ids: Sequence[str] | None = None,
        restrict_to: str | None = None,
        workerpool_id: str | None = None,
        worker_ids: Sequence[str] | None = None,
    ) -> Task:
        space_id = require_single_space(self._spaces.current_context())
        spec = builtin_task(TaskKind.UPGRADE)
        task = Task(
            id=None,
            name=spec.name,
            description=spec.describe(description),
            space_id=space_id,
            arguments={
                Arg.ENVIRONMENT_ID: environment_id,
                Arg.WORKERPOOL_ID: workerpool_id,
                Arg.RESTRICTED_TO: restrict_to,
                Arg.MACHINE_IDS: combine_machine_ids(machine_ids, worker_ids),
            },
        )
        return await self._create(task, space_id)

    async def execute_adhoc_script(
        self,
        script_body: str,
        machine_ids: Sequence[str] | None = None,
        environment_ids: Sequence[str] | None = None,
        target_roles: Sequence[str] | None = None,
        description: str | None = None,
        syntax: str = DEFAULT_SCRIPT_SYNTAX,
    ) -> Task:
        if not script_body or not script_body.strip():
            raise InvalidArgumentError("An ad-hoc script needs a non-empty script body")
        syntax = syntax or DEFAULT_SCRIPT_SYNTAX

        space_id = require_single_space(self._spaces.current_context())
        spec = builtin_task(TaskKind.ADHOC_SCRIPT)
        task = Task(
            id=None,
            name=spec.name,
            description=spec.describe(description, syntax=syntax),
            space_id=space_id,
            arguments={
                Arg.ENVIRONMENT_IDS: _as_list(environment_ids),
                Arg.TARGET_ROLES: _as_list(target_roles),
                Arg.MACHINE_IDS: _as_list(machine_ids),
                Arg.SCRIPT_BODY: script_body,
                Arg.SYNTAX: syntax,
            },
        )
        return await self._create(task, space_id)

    async def execute_action_template(
        self,
        template: ActionTemplate | None,
        properties: Mapping[str, PropertyValue] | None,
        machine_ids: Sequence[str] | None = None,
        environment_ids: Sequence[str] | None = None,
        target_roles: Sequence[str] | None = None,
        description: str | None = None,
    ) -> Task:
        if template is None or not template.id:
            raise InvalidArgumentError("The step template was either null, or has no ID")

        context = self._spaces.current_context()
        space_id = require_single_space(context)
        spec = builtin_task(TaskKind.ADHOC_SCRIPT)
        if description is None or not description.strip():
            description = ACTION_TEMPLATE_DESCRIPTION.format(name=template.name)
        task = Task(
            id=None,
            name=spec.name,
            description=description,
            space_id=template.space_id,
            arguments={
                Arg.ENVIRONMENT_IDS: _as_list(environment_ids),
                Arg.TARGET_ROLES: _as_list(target_roles),
                Arg.MACHINE_IDS: _as_list(machine_ids),
                Arg.ACTION_TEMPLATE_ID: template.id,
                Arg.PROPERTIES: dict(properties or {}),
            },
        )
        # A template from another space cannot be run from this one.
        authorize(task, context)
        return await self._create(task, space_id)

    # ---- system kinds ----

    async def execute_backup(self, description: str | None = None) -> Task:
        spec = builtin_task(TaskKind.BACKUP)
        task = Task(id=None, name=spec.name, description=spec.describe(description))
        return await self._create_system_task(task)

    async def execute_community_action_templates_synchronisation(
        self,
        description: str | None = None,
    ) -> Task:
        spec = builtin_task(TaskKind.SYNC_COMMUNITY_ACTION_TEMPLATES)
        task = Task(id=None, name=spec.name, description=spec.describe(description))
        return await self._create_system_task(task)

    # ---- submit ----

    async def _create(self, task: Task, space_id: str) -> Task:
        link = await self._client.collection_link(TASKS_COLLECTION, space_id=space_id)
        created = Task.from_payload(await self._client.create(link, task.to_payload()))
        logger.info("Created task %s (%s) in %s", created.id, task.name, space_id)
        return created

    async def _create_system_task(self, task: Task) -> Task:
        # System tasks never carry a space id and bypass space scoped URLs.
        task.space_id = None
        link = await self._client.collection_link(TASKS_COLLECTION)
        created = Task.from_payload(await self._client.create(link, task.to_payload()))
        logger.info("Created system task %s (%s)", created.id, task.name)
        return created
