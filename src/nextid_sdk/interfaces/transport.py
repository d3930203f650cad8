"""Transport protocol - JSON request/response against a service endpoint."""

from __future__ import annotations

from typing import Any, Protocol

from nextid_sdk.models.config import Endpoint


class Transport(Protocol):
    """Sends one JSON request and returns the decoded response body."""

    async def request(
        self,
        method: str,
        endpoint: Endpoint,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Raise NetworkError, ServerRejected/NotFound or ParsingError on failure."""
        ...
