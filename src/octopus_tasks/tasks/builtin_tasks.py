# src/octopus_tasks/tasks/builtin_tasks.py

"""
Catalog of the server's built-in task kinds.

Names and argument keys are part of the server contract, so they are
defined once here and looked up by kind; nothing builds them at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class TaskKind(str, Enum):
    HEALTH = "health"
    UPDATE_CALAMARI = "update_calamari"
    BACKUP = "backup"
    UPGRADE = "upgrade"
    ADHOC_SCRIPT = "adhoc_script"
    SYNC_COMMUNITY_ACTION_TEMPLATES = "sync_community_action_templates"


class Arg:
    """Argument keys as the server spells them."""

    TIMEOUT = "Timeout"
    MACHINE_TIMEOUT = "MachineTimeout"
    ENVIRONMENT_ID = "EnvironmentId"
    ENVIRONMENT_IDS = "EnvironmentIds"
    WORKERPOOL_ID = "WorkerpoolId"
    RESTRICTED_TO = "RestrictedTo"
    MACHINE_IDS = "MachineIds"
    TARGET_ROLES = "TargetRoles"
    SCRIPT_BODY = "ScriptBody"
    SYNTAX = "Syntax"
    ACTION_TEMPLATE_ID = "ActionTemplateId"
    PROPERTIES = "Properties"


@dataclass(frozen=True, slots=True)
class BuiltInTaskSpec:
    name: str
    default_description: str
    arguments: tuple[str, ...] = ()

    def describe(self, description: str | None, **fmt: str) -> str:
        """Caller's description, or the default when it is None/blank."""
        if description is not None and description.strip():
            return description
        return self.default_description.format(**fmt) if fmt else self.default_description


DEFAULT_SCRIPT_SYNTAX = "PowerShell"
ACTION_TEMPLATE_DESCRIPTION = "Run step template: {name}"

BUILTIN_TASKS: MappingProxyType[TaskKind, BuiltInTaskSpec] = MappingProxyType(
    {
        TaskKind.HEALTH: BuiltInTaskSpec(
            name="Health",
            default_description="Manual health check",
            arguments=(
                Arg.TIMEOUT,
                Arg.MACHINE_TIMEOUT,
                Arg.ENVIRONMENT_ID,
                Arg.WORKERPOOL_ID,
                Arg.RESTRICTED_TO,
                Arg.MACHINE_IDS,
            ),
        ),
        TaskKind.UPDATE_CALAMARI: BuiltInTaskSpec(
            name="UpdateCalamari",
            default_description="Manual Calamari update",
            arguments=(Arg.MACHINE_IDS,),
        ),
        TaskKind.BACKUP: BuiltInTaskSpec(
            name="Backup",
            default_description="Manual backup",
        ),
        TaskKind.UPGRADE: BuiltInTaskSpec(
            name="Upgrade",
            default_description="Manual upgrade",
            arguments=(
                Arg.ENVIRONMENT_ID,
                Arg.WORKERPOOL_ID,
                Arg.RESTRICTED_TO,
                Arg.MACHINE_IDS,
            ),
        ),
        TaskKind.ADHOC_SCRIPT: BuiltInTaskSpec(
            name="AdHocScript",
            default_description="Run ad-hoc {syntax} script",
            arguments=(
                Arg.ENVIRONMENT_IDS,
                Arg.TARGET_ROLES,
                Arg.MACHINE_IDS,
                Arg.SCRIPT_BODY,
                Arg.SYNTAX,
                Arg.ACTION_TEMPLATE_ID,
                Arg.PROPERTIES,
            ),
        ),
        TaskKind.SYNC_COMMUNITY_ACTION_TEMPLATES: BuiltInTaskSpec(
            name="SyncCommunityActionTemplates",
            default_description="Run SyncCommunityActionTemplates",
        ),
    }
)


def builtin_task(kind: TaskKind) -> BuiltInTaskSpec:
    return BUILTIN_TASKS[kind]
