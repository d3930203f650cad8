"""HTTP transport - JSON requests against ProofService / KVService via httpx."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import httpx

from nextid_sdk import __version__
from nextid_sdk.errors import NetworkError, NotFound, ParsingError, ServerRejected
from nextid_sdk.models.config import Endpoint

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"nextid-sdk-python/{__version__}"
SUCCESS_STATUSES = (200, 201)


class HttpTransport:
    """Sends JSON requests with an explicit timeout and typed error mapping.

    Each request opens its own AsyncClient, so concurrent procedures share
    no connection state. ``mock_transport`` lets tests swap the network layer
    (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "",
        mock_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
        }
        self._mock_transport = mock_transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 10)),
            headers=self._headers,
            transport=self._mock_transport,
        )

    async def request(
        self,
        method: str,
        endpoint: Endpoint,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = endpoint.url(path)
        log.debug("%s %s params=%s", method, url, params or {})
        start = time.monotonic()

        try:
            async with self._client() as client:
                resp = await client.request(
                    method,
                    url,
                    params=params,
                    content=json.dumps(body).encode("utf-8") if body is not None else None,
                )
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{method} {url} timed out after {self._timeout}s") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        duration = int((time.monotonic() - start) * 1000)
        log.debug("%s %s -> HTTP %d in %dms", method, url, resp.status_code, duration)

        if resp.status_code not in SUCCESS_STATUSES:
            detail = _error_message(resp)
            if resp.status_code == 404:
                raise NotFound(f"{path}: {detail}", status=404, body=resp.text)
            log.warning("%s %s rejected: HTTP %d %s", method, url, resp.status_code, detail)
            raise ServerRejected(
                f"HTTP {resp.status_code}: {detail}",
                status=resp.status_code,
                body=resp.text,
            )

        # ProofService answers 201 with an empty body on upload
        if not resp.content.strip():
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise ParsingError(f"{path}: response is not JSON: {resp.text[:200]!r}") from exc


def _error_message(resp: httpx.Response) -> str:
    """Pull the ``message`` field out of a NextID error body, if there is one."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text[:200]
