# src/octopus_tasks/http/link_client.py

"""Async link-following HTTP client for the deployment server's REST API."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import InvalidArgumentError, MissingLinkError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
API_KEY_HEADER = "X-Octopus-ApiKey"

# "/api/tasks{/id}{?skip,take}" -> "/api/tasks"
_TEMPLATE_RE = re.compile(r"\{[^}]*\}")


def strip_link_template(link: str) -> str:
    """Drop RFC 6570 template sections; values are sent as query parameters instead."""
    return _TEMPLATE_RE.sub("", link)


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    out: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = value
    return out


class HttpLinkClient:
    """
    LinkClient implementation over httpx.AsyncClient.

    - No retries: a failed request raises TransportError straight away.
    - Root documents (/api, /api/{space}) are fetched on demand; they are small
      and the server may change them, so nothing is cached.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        base_url = (base_url or "").strip().rstrip("/")
        if not base_url:
            raise InvalidArgumentError("Server URL is not set. Set OCTOPUS_SERVER_URL in your .env.")

        headers = {"Accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            follow_redirects=True,
        )
        if not self._owns_client:
            self._client.headers.update(headers)

    async def __aenter__(self) -> HttpLinkClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ---- low-level ----

    async def _request(
        self,
        method: str,
        link: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        url = strip_link_template(link)
        try:
            response = await self._client.request(
                method,
                url,
                params=_encode_params(params),
                json=json,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            body: Any
            try:
                body = response.json()
            except ValueError:
                body = response.text
            message = body.get("ErrorMessage") if isinstance(body, dict) else None
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}"
                + (f": {message}" if message else ""),
                status_code=response.status_code,
                body=body,
            )

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"Expected JSON from {response.request.url}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    # ---- LinkClient ----

    async def get(self, link: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._json(await self._request("GET", link, params=params))

    async def get_text(self, link: str, params: Mapping[str, Any] | None = None) -> str:
        return (await self._request("GET", link, params=params)).text

    async def post(self, link: str, body: Any = None) -> Any:
        return self._json(await self._request("POST", link, json=body))

    async def create(self, collection_link: str, body: dict[str, Any]) -> Any:
        return self._json(await self._request("POST", collection_link, json=body))

    async def list_all(self, link: str, params: Mapping[str, Any] | None = None) -> list[Any]:
        """Follow "Page.Next" links until the collection is exhausted."""
        items: list[Any] = []
        next_link: str | None = link
        next_params: Mapping[str, Any] | None = params
        while next_link:
            page = self._json(await self._request("GET", next_link, params=next_params))
            if isinstance(page, list):
                # Some endpoints return a bare array instead of a collection resource.
                items.extend(page)
                break
            page = page or {}
            items.extend(page.get("Items") or [])
            next_link = (page.get("Links") or {}).get("Page.Next")
            # Next-page links already carry the query string.
            next_params = None
        return items

    async def collection_link(self, name: str, *, space_id: str | None = None) -> str:
        root_path = f"/api/{space_id}" if space_id else "/api"
        root = self._json(await self._request("GET", root_path)) or {}
        links = root.get("Links") or {}
        try:
            return strip_link_template(links[name])
        except KeyError:
            raise MissingLinkError(f"API root {root_path}", name) from None
