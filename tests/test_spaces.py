# tests/test_spaces.py

from __future__ import annotations

import pytest

from octopus_tasks.core.spaces import (
    SpaceContext,
    authorize,
    context_from_ids,
    require_single_space,
)
from octopus_tasks.errors import AmbiguousSpaceError, OutOfScopeError
from octopus_tasks.tasks.task_models import Task


def _task(space_id: str | None) -> Task:
    return Task(id="ServerTasks-1", name="Health", description="d", space_id=space_id)


def test_authorize_allows_system_task_in_any_context() -> None:
    authorize(_task(None), SpaceContext.specific("Spaces-2"))
    authorize(_task(""), SpaceContext.specific())
    authorize(_task(None), SpaceContext.all_spaces())


def test_authorize_allows_any_task_when_unrestricted() -> None:
    authorize(_task("Spaces-9"), SpaceContext.all_spaces())


def test_authorize_allows_member_space() -> None:
    authorize(_task("Spaces-2"), SpaceContext.specific("Spaces-1", "Spaces-2"))


def test_authorize_rejects_task_outside_context() -> None:
    with pytest.raises(OutOfScopeError) as exc_info:
        authorize(_task("S1"), SpaceContext.specific("S2"))

    err = exc_info.value
    assert err.space_id == "S1"
    assert "within space S1" in str(err)
    assert str(err).endswith("Current Space Context: S2")


def test_out_of_scope_message_lists_every_space() -> None:
    with pytest.raises(OutOfScopeError, match="Current Space Context: S2, S3"):
        authorize(_task("S1"), SpaceContext.specific("S2", "S3"))


@pytest.mark.parametrize("count", [0, 2, 3, 7])
def test_require_single_space_fails_unless_exactly_one(count: int) -> None:
    ctx = SpaceContext.specific(*[f"Spaces-{i}" for i in range(count)])
    with pytest.raises(AmbiguousSpaceError):
        require_single_space(ctx)


def test_require_single_space_fails_for_all_spaces() -> None:
    with pytest.raises(AmbiguousSpaceError, match="all spaces"):
        require_single_space(SpaceContext.all_spaces())


def test_require_single_space_returns_the_space() -> None:
    assert require_single_space(SpaceContext.specific("Spaces-4")) == "Spaces-4"


def test_specific_drops_blanks_and_duplicates_keeping_order() -> None:
    ctx = SpaceContext.specific("b", " ", "a", "b")
    assert ctx.space_ids == ("b", "a")
    assert ctx.describe() == "b, a"


def test_describe_all_spaces() -> None:
    assert SpaceContext.all_spaces().describe() == "all spaces"


def test_query_parameters() -> None:
    assert SpaceContext.all_spaces().query_parameters() == {"spaces": "all", "includeSystem": True}
    assert SpaceContext.specific("S1", "S2").query_parameters() == {
        "spaces": "S1,S2",
        "includeSystem": False,
    }


@pytest.mark.parametrize("ids", [[], ["all"], ["ALL"], ["  "]])
def test_context_from_ids_unrestricted(ids: list[str]) -> None:
    assert context_from_ids(ids, include_system=True).is_unrestricted


def test_context_from_ids_specific() -> None:
    ctx = context_from_ids(["Spaces-1", "Spaces-2"], include_system=False)
    assert ctx.space_ids == ("Spaces-1", "Spaces-2")
    assert ctx.include_system is False
