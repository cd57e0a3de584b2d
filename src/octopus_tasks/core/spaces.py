# src/octopus_tasks/core/spaces.py

"""
Space context and the guards built on it.

Two checks live here:
- authorize(): may an existing task be acted upon in the current context?
  Used before mutating calls (rerun, cancel, state change).
- require_single_space(): does the context narrow to exactly one space?
  Used before creating space scoped tasks, which need a determinate target.

Read-only navigation (details, raw log, queued-behind) is deliberately not
gated by authorize(). That mirrors the server client's existing policy; if
reads ever need the same check, add it in TaskActions, not here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from ..errors import AmbiguousSpaceError, OutOfScopeError

if TYPE_CHECKING:
    from ..tasks.task_models import Task

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SpaceContext:
    """
    Either "all spaces" (space_ids is None) or an explicit ordered set of ids.

    include_system controls whether system level tasks (no space) are
    included when listing or fetching through this context.
    """

    space_ids: tuple[str, ...] | None = None
    include_system: bool = True

    @classmethod
    def all_spaces(cls, *, include_system: bool = True) -> SpaceContext:
        return cls(space_ids=None, include_system=include_system)

    @classmethod
    def specific(cls, *space_ids: str, include_system: bool = False) -> SpaceContext:
        # Keep order, drop blanks and duplicates.
        seen: dict[str, None] = {}
        for sid in space_ids:
            sid = (sid or "").strip()
            if sid:
                seen.setdefault(sid, None)
        return cls(space_ids=tuple(seen), include_system=include_system)

    @property
    def is_unrestricted(self) -> bool:
        return self.space_ids is None

    def apply_space_selection(
        self,
        when_specific: Callable[[tuple[str, ...]], T],
        when_all: Callable[[], T],
    ) -> T:
        if self.space_ids is None:
            return when_all()
        return when_specific(self.space_ids)

    def contains(self, space_id: str) -> bool:
        return self.apply_space_selection(lambda ids: space_id in ids, lambda: True)

    def describe(self) -> str:
        return self.apply_space_selection(lambda ids: ", ".join(ids), lambda: "all spaces")

    def query_parameters(self) -> dict[str, Any]:
        """Query arguments that scope read requests to this context."""
        spaces = self.apply_space_selection(lambda ids: ",".join(ids), lambda: "all")
        return {"spaces": spaces, "includeSystem": self.include_system}


class StaticSpaceContextProvider:
    """SpaceContextProvider that always answers with the same context."""

    def __init__(self, context: SpaceContext) -> None:
        self._context = context

    def current_context(self) -> SpaceContext:
        return self._context


def context_from_ids(space_ids: Iterable[str], *, include_system: bool) -> SpaceContext:
    """Build a context from a configured id list; empty or ["all"] means unrestricted."""
    ids = [s.strip() for s in space_ids if s and s.strip()]
    if not ids or (len(ids) == 1 and ids[0].lower() == "all"):
        return SpaceContext.all_spaces(include_system=include_system)
    return SpaceContext.specific(*ids, include_system=include_system)


def authorize(task: Task, context: SpaceContext) -> None:
    """Raise OutOfScopeError if task may not be acted upon in context."""
    space_id = task.space_id
    if not space_id:
        return
    if not context.contains(space_id):
        raise OutOfScopeError(space_id, context)


def require_single_space(context: SpaceContext) -> str:
    """Return the only space in context, or raise AmbiguousSpaceError."""
    ids = context.space_ids
    if ids is None:
        raise AmbiguousSpaceError(
            "This operation must target a single space, but the current space context "
            "covers all spaces. Select one space first."
        )
    if len(ids) != 1:
        shown = ", ".join(ids) if ids else "no spaces"
        raise AmbiguousSpaceError(
            "This operation must target a single space, but the current space context "
            f"contains {len(ids)} ({shown})."
        )
    return ids[0]
