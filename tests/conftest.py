# tests/conftest.py

from __future__ import annotations

import pytest

from octopus_tasks.core.spaces import SpaceContext, StaticSpaceContextProvider
from octopus_tasks.tasks.task_repository import TaskRepository

from .fakes import FakeClock, FakeLinkClient


@pytest.fixture()
def client() -> FakeLinkClient:
    return FakeLinkClient()


@pytest.fixture()
def single_space() -> StaticSpaceContextProvider:
    """Context narrowed to exactly one space, the common case for creation."""
    return StaticSpaceContextProvider(SpaceContext.specific("Spaces-1"))


@pytest.fixture()
def repo(client: FakeLinkClient, single_space: StaticSpaceContextProvider) -> TaskRepository:
    return TaskRepository(client, single_space)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
