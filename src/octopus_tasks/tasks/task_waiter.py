# src/octopus_tasks/tasks/task_waiter.py

from __future__ import annotations

"""
Completion poller.

Repeatedly re-fetches a set of tasks until every one of them reports
IsCompleted, or until the configured timeout passes.

Per cycle:
- fetch the "Self" link of every task concurrently (TaskGroup, fail fast),
- hand the fresh tasks to on_progress (awaited, in original order),
- stop if all are completed,
- raise TaskWaitTimeoutError if a deadline is set and has passed,
- otherwise sleep poll_interval_seconds.

To stop waiting early, cancel the awaiting coroutine; that interrupts both
the sleep and any in-flight fetches. Tasks keep running server-side either way.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ..core.ports import LinkClient
from ..errors import TaskWaitTimeoutError
from .task_models import Task

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[list[Task]], Awaitable[None]]

DEFAULT_POLL_INTERVAL_SECONDS = 4.0


@dataclass(frozen=True, slots=True)
class WaitOptions:
    """
    poll_interval_seconds: pause between cycles (default 4s).
    timeout: overall limit; None or a non-positive value waits forever.
    """

    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    timeout: timedelta | None = None

    @classmethod
    def from_minutes(
        cls,
        timeout_after_minutes: float = 0,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> WaitOptions:
        return cls(
            poll_interval_seconds=poll_interval_seconds,
            timeout=timedelta(minutes=timeout_after_minutes) if timeout_after_minutes else None,
        )

    @property
    def deadline_seconds(self) -> float | None:
        if self.timeout is None:
            return None
        seconds = self.timeout.total_seconds()
        return seconds if seconds > 0 else None


async def _fetch_all(
    client: LinkClient,
    tasks: Sequence[Task],
    params: Mapping[str, Any] | None,
) -> list[Task]:
    links = [t.link("Self") for t in tasks]
    try:
        async with asyncio.TaskGroup() as tg:
            pending = [tg.create_task(client.get(link, params)) for link in links]
    except BaseExceptionGroup as eg:
        # Surface the first failure itself; the group only adds noise for callers.
        raise eg.exceptions[0] from eg
    return [Task.from_payload(p.result()) for p in pending]


async def wait_for_completion(
    client: LinkClient,
    tasks: Sequence[Task],
    options: WaitOptions | None = None,
    *,
    on_progress: ProgressCallback | None = None,
    query: Mapping[str, Any] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> None:
    """
    Block (asynchronously) until every task in `tasks` is completed.

    `query` is appended to every fetch (space scoping). `clock` and `sleep` are
    injectable so tests can drive the loop without real time passing.
    """
    if not tasks:
        return

    options = options or WaitOptions()
    started = clock()
    deadline = options.deadline_seconds
    interval = max(0.0, float(options.poll_interval_seconds))
    cycle = 0

    while True:
        cycle += 1
        latest = await _fetch_all(client, tasks, query)

        if on_progress is not None:
            await on_progress(latest)

        if all(t.is_completed for t in latest):
            logger.debug("All %d task(s) completed after %d cycle(s)", len(latest), cycle)
            return

        elapsed = clock() - started
        if deadline is not None and elapsed > deadline:
            raise TaskWaitTimeoutError(timedelta(seconds=elapsed))

        running = sum(1 for t in latest if not t.is_completed)
        logger.debug("Cycle %d: %d of %d task(s) still running", cycle, running, len(latest))
        await sleep(interval)
