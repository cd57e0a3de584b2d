# tests/test_task_repository.py

from __future__ import annotations

import inspect

import pytest

from octopus_tasks.core.spaces import SpaceContext
from octopus_tasks.errors import AmbiguousSpaceError, OutOfScopeError
from octopus_tasks.tasks.task_factory import TaskFactory
from octopus_tasks.tasks.task_models import ActionTemplate, PropertyValue, Task
from octopus_tasks.tasks.task_repository import TaskRepository
from octopus_tasks.tasks.task_waiter import WaitOptions

from .fakes import FakeLinkClient, task_payload


@pytest.mark.asyncio
async def test_get_fetches_by_id_with_space_params(repo: TaskRepository, client: FakeLinkClient) -> None:
    client.responses["/api/tasks/ServerTasks-9"] = [task_payload("ServerTasks-9", space_id="Spaces-1")]

    task = await repo.get("ServerTasks-9")

    assert task.id == "ServerTasks-9"
    get = client.calls_for("GET")[0]
    assert get.params == {"spaces": "Spaces-1", "includeSystem": False}


@pytest.mark.asyncio
async def test_get_all_active_lists_every_page(repo: TaskRepository, client: FakeLinkClient) -> None:
    client.lists["/api/tasks"] = [
        task_payload("ServerTasks-1", state="Executing"),
        task_payload("ServerTasks-2", state="Queued"),
    ]

    active = await repo.get_all_active(page_size=50)

    assert [t.id for t in active] == ["ServerTasks-1", "ServerTasks-2"]
    listed = client.calls_for("LIST")[0]
    assert listed.params == {"spaces": "Spaces-1", "includeSystem": False, "active": True, "take": 50}


@pytest.mark.asyncio
async def test_using_context_switches_space_rules(repo: TaskRepository, client: FakeLinkClient) -> None:
    other = repo.using_context(SpaceContext.specific("Spaces-2"))
    task = Task.from_payload(task_payload("ServerTasks-1", space_id="Spaces-1"))

    with pytest.raises(OutOfScopeError):
        await other.cancel(task)
    await repo.cancel(task)

    everywhere = repo.using_context(SpaceContext.all_spaces())
    with pytest.raises(AmbiguousSpaceError):
        await everywhere.execute_health_check()

    assert other.client is repo.client
    assert len(client.calls_for("POST")) == 1


@pytest.mark.asyncio
async def test_create_then_wait(repo: TaskRepository, client: FakeLinkClient) -> None:
    created = await repo.execute_health_check(machine_ids=["m1"], worker_ids=["w1"])
    client.responses[created.link("Self")] = [
        task_payload(created.id, state="Executing", space_id="Spaces-1"),
        task_payload(created.id, state="Success", space_id="Spaces-1"),
    ]
    states = []

    async def on_progress(latest):
        states.append(latest[0].state.value)

    await repo.wait_for_completion(created, WaitOptions(poll_interval_seconds=0), on_progress=on_progress)

    assert states == ["Executing", "Success"]
    assert created.arguments["MachineIds"] == ["m1", "w1"]
    for get in client.calls_for("GET"):
        assert get.params == {"spaces": "Spaces-1", "includeSystem": False}


@pytest.mark.asyncio
async def test_wait_for_empty_list_is_a_no_op(repo: TaskRepository, client: FakeLinkClient) -> None:
    await repo.wait_for_completion([])
    assert client.calls == []


@pytest.mark.parametrize(
    "name",
    [
        "execute_health_check",
        "execute_calamari_update",
        "execute_tentacle_upgrade",
        "execute_adhoc_script",
        "execute_action_template",
        "execute_backup",
        "execute_community_action_templates_synchronisation",
    ],
)
def test_creation_methods_mirror_factory_signatures(name: str) -> None:
    assert inspect.signature(getattr(TaskRepository, name)) == inspect.signature(getattr(TaskFactory, name))


@pytest.mark.asyncio
async def test_creation_methods_forward_positional_arguments(repo: TaskRepository, client: FakeLinkClient) -> None:
    await repo.execute_adhoc_script("echo hi", ["m1"], ["Environments-1"], ["web"], "deploy check", "Bash")
    template = ActionTemplate(id="ActionTemplates-1", name="Restart", space_id="Spaces-1")
    await repo.execute_action_template(template, {"Pool": PropertyValue("web")}, ["m2"])

    script_body = client.created[0][1]
    assert script_body["Description"] == "deploy check"
    assert script_body["Arguments"] == {
        "EnvironmentIds": ["Environments-1"],
        "TargetRoles": ["web"],
        "MachineIds": ["m1"],
        "ScriptBody": "echo hi",
        "Syntax": "Bash",
    }
    template_args = client.created[1][1]["Arguments"]
    assert template_args["MachineIds"] == ["m2"]
    assert template_args["Properties"] == {"Pool": "web"}
