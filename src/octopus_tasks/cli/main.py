# src/octopus_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the runtime (HTTP client + task repository),
then runs one subcommand:
- health-check / upgrade / script / backup create a task (optionally --wait),
- cancel / rerun act on an existing task,
- log prints a task's raw output,
- wait blocks until the given tasks finish.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ..config import Settings, get_settings
from ..errors import InvalidArgumentError, OctopusTasksError
from ..logging_setup import setup_logging
from ..tasks.task_models import Task
from .bootstrap import CliRuntime, create_runtime, wait_options_for

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="octopus-tasks", description="Create and track server tasks.")
    parser.add_argument(
        "--space",
        action="append",
        dest="spaces",
        default=None,
        help="Space id to act in (repeatable). Overrides OCTOPUS_SPACES.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_wait_flags(p: argparse.ArgumentParser, *, flag: bool = True) -> None:
        if flag:
            p.add_argument("--wait", action="store_true", help="Wait for the task to finish.")
        p.add_argument("--timeout-minutes", type=float, default=None, help="Give up waiting after N minutes.")
        p.add_argument("--poll-interval", type=float, default=None, help="Seconds between status checks.")

    hc = sub.add_parser("health-check", help="Run a health check.")
    hc.add_argument("--description")
    hc.add_argument("--environment")
    hc.add_argument("--workerpool")
    hc.add_argument("--restrict-to")
    hc.add_argument("--machine", action="append", dest="machines")
    hc.add_argument("--worker", action="append", dest="workers")
    hc.add_argument("--check-timeout", type=int, default=5, help="Health check timeout in minutes.")
    hc.add_argument("--machine-timeout", type=int, default=1, help="Per-machine timeout in minutes.")
    add_wait_flags(hc)

    up = sub.add_parser("upgrade", help="Upgrade agents.")
    up.add_argument("--description")
    up.add_argument("--environment")
    up.add_argument("--workerpool")
    up.add_argument("--restrict-to")
    up.add_argument("--machine", action="append", dest="machines")
    up.add_argument("--worker", action="append", dest="workers")
    add_wait_flags(up)

    sc = sub.add_parser("script", help="Run an ad-hoc script.")
    body = sc.add_mutually_exclusive_group(required=True)
    body.add_argument("--body")
    body.add_argument("--file", type=Path)
    sc.add_argument("--syntax", default="PowerShell")
    sc.add_argument("--description")
    sc.add_argument("--machine", action="append", dest="machines")
    sc.add_argument("--environment", action="append", dest="environments")
    sc.add_argument("--role", action="append", dest="roles")
    add_wait_flags(sc)

    bk = sub.add_parser("backup", help="Run a system backup.")
    bk.add_argument("--description")
    add_wait_flags(bk)

    for name, help_text in (("cancel", "Cancel a task."), ("rerun", "Rerun a task."), ("log", "Print the raw log.")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("task_id")

    wt = sub.add_parser("wait", help="Wait for tasks to finish.")
    wt.add_argument("task_ids", nargs="+")
    add_wait_flags(wt, flag=False)

    return parser


def _print_progress_line(tasks: list[Task]) -> None:
    summary = ", ".join(f"{t.id}={t.state}" for t in tasks)
    print(summary, flush=True)


async def _wait(runtime: CliRuntime, args: argparse.Namespace, tasks: list[Task]) -> int:
    options = wait_options_for(
        runtime.settings,
        timeout_minutes=args.timeout_minutes,
        poll_interval_seconds=args.poll_interval,
    )

    async def on_progress(latest: list[Task]) -> None:
        _print_progress_line(latest)
        tasks[:] = latest

    await runtime.repository.wait_for_completion(tasks, options, on_progress=on_progress)
    return 0 if all(t.finished_successfully for t in tasks) else 2


async def run_command(runtime: CliRuntime, args: argparse.Namespace) -> int:
    repo = runtime.repository
    cmd = args.command

    created: Task | None = None
    if cmd == "health-check":
        created = await repo.execute_health_check(
            description=args.description,
            timeout_after_minutes=args.check_timeout,
            machine_timeout_after_minutes=args.machine_timeout,
            environment_id=args.environment,
            machine_ids=args.machines,
            restrict_to=args.restrict_to,
            workerpool_id=args.workerpool,
            worker_ids=args.workers,
        )
    elif cmd == "upgrade":
        created = await repo.execute_tentacle_upgrade(
            description=args.description,
            environment_id=args.environment,
            machine_ids=args.machines,
            restrict_to=args.restrict_to,
            workerpool_id=args.workerpool,
            worker_ids=args.workers,
        )
    elif cmd == "script":
        if args.body is not None:
            script_body = args.body
        else:
            try:
                script_body = args.file.read_text("utf-8")
            except OSError as exc:
                raise InvalidArgumentError(f"Cannot read script file {args.file}: {exc}") from exc
        created = await repo.execute_adhoc_script(
            script_body,
            machine_ids=args.machines,
            environment_ids=args.environments,
            target_roles=args.roles,
            description=args.description,
            syntax=args.syntax,
        )
    elif cmd == "backup":
        created = await repo.execute_backup(args.description)
    elif cmd in ("cancel", "rerun", "log"):
        task = await repo.get(args.task_id)
        if cmd == "cancel":
            await repo.cancel(task)
        elif cmd == "rerun":
            await repo.rerun(task)
        else:
            sys.stdout.write(await repo.get_raw_output_log(task))
        return 0
    elif cmd == "wait":
        tasks = [await repo.get(task_id) for task_id in args.task_ids]
        return await _wait(runtime, args, tasks)

    assert created is not None
    print(f"{created.id} {created.name}: {created.description}")
    if args.wait:
        return await _wait(runtime, args, [created])
    return 0


async def _amain(settings: Settings, args: argparse.Namespace) -> int:
    runtime = create_runtime(settings=settings, spaces=args.spaces)
    try:
        return await run_command(runtime, args)
    finally:
        await runtime.aclose()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    args = build_parser().parse_args(argv)

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    try:
        return asyncio.run(_amain(settings, args))
    except OctopusTasksError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
