# tests/test_link_client.py

from __future__ import annotations

import json

import httpx
import pytest

from octopus_tasks.errors import InvalidArgumentError, MissingLinkError, TransportError
from octopus_tasks.http.link_client import API_KEY_HEADER, HttpLinkClient, strip_link_template

BASE = "http://octopus.local"


def _client(handler) -> HttpLinkClient:
    http = httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(handler))
    return HttpLinkClient(BASE, "API-KEY", client=http)


def test_strip_link_template() -> None:
    assert strip_link_template("/api/tasks{/id}{?skip,take,active}") == "/api/tasks"
    assert strip_link_template("/api/tasks/ServerTasks-1") == "/api/tasks/ServerTasks-1"


def test_requires_server_url() -> None:
    with pytest.raises(InvalidArgumentError, match="OCTOPUS_SERVER_URL"):
        HttpLinkClient("  ")


@pytest.mark.asyncio
async def test_get_sends_api_key_and_encodes_params() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Id": "ServerTasks-1"})

    client = _client(handler)
    data = await client.get("/api/tasks/ServerTasks-1", {"verbose": True, "tail": 5, "skip": None})

    assert data == {"Id": "ServerTasks-1"}
    req = seen[0]
    assert req.headers[API_KEY_HEADER] == "API-KEY"
    assert req.url.path == "/api/tasks/ServerTasks-1"
    assert dict(req.url.params) == {"verbose": "true", "tail": "5"}


@pytest.mark.asyncio
async def test_collection_link_reads_root_document() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api":
            return httpx.Response(200, json={"Links": {"Tasks": "/api/tasks{/id}{?skip,take}"}})
        if request.url.path == "/api/Spaces-1":
            return httpx.Response(200, json={"Links": {"Tasks": "/api/Spaces-1/tasks{/id}{?skip}"}})
        return httpx.Response(404)

    client = _client(handler)
    assert await client.collection_link("Tasks") == "/api/tasks"
    assert await client.collection_link("Tasks", space_id="Spaces-1") == "/api/Spaces-1/tasks"
    with pytest.raises(MissingLinkError):
        await client.collection_link("Nope")


@pytest.mark.asyncio
async def test_create_posts_json() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"Id": "ServerTasks-3", "State": "Queued"})

    client = _client(handler)
    created = await client.create("/api/Spaces-1/tasks", {"Name": "Health"})

    assert created["Id"] == "ServerTasks-3"
    assert bodies == [{"Name": "Health"}]


@pytest.mark.asyncio
async def test_post_without_body_and_empty_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.content == b""
        return httpx.Response(200)

    client = _client(handler)
    assert await client.post("/api/tasks/ServerTasks-1/cancel") is None


@pytest.mark.asyncio
async def test_list_all_follows_next_page() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("skip") == "2":
            return httpx.Response(200, json={"Items": [{"Id": "c"}], "Links": {}})
        return httpx.Response(
            200,
            json={"Items": [{"Id": "a"}, {"Id": "b"}], "Links": {"Page.Next": "/api/tasks?skip=2&take=2"}},
        )

    client = _client(handler)
    items = await client.list_all("/api/tasks", {"take": 2})
    assert [i["Id"] for i in items] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_get_text_returns_raw_body() -> None:
    client = _client(lambda request: httpx.Response(200, text="raw log\n"))
    assert await client.get_text("/api/tasks/ServerTasks-1/raw") == "raw log\n"


@pytest.mark.asyncio
async def test_http_error_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"ErrorMessage": "You do not have permission"})

    client = _client(handler)
    with pytest.raises(TransportError, match="HTTP 403: You do not have permission") as exc_info:
        await client.get("/api/tasks/ServerTasks-1")
    assert exc_info.value.status_code == 403
    assert exc_info.value.body == {"ErrorMessage": "You do not have permission"}


@pytest.mark.asyncio
async def test_network_error_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(TransportError, match="connection refused") as exc_info:
        await client.get("/api/tasks/ServerTasks-1")
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
