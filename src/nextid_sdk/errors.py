"""Exception hierarchy shared by lookups, transport and submission procedures."""

from __future__ import annotations


class NextIDError(Exception):
    """Base class for every error raised by nextid_sdk."""


class NetworkError(NextIDError):
    """Connection failure or timeout. Safe to retry."""


class ServerRejected(NextIDError):
    """The service answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class NotFound(ServerRejected):
    """Lookup yielded no records (HTTP 404 or an empty result set)."""


class PayloadExpired(ServerRejected):
    """Pending payload outlived its validity window; request a new one."""


class SigningError(NextIDError):
    """Local signing failed or a signature does not match the expected key."""


class ParsingError(NextIDError):
    """Malformed hex, base64, key material or response body."""


class ProcedureStateError(NextIDError):
    """A procedure step was called out of order."""
