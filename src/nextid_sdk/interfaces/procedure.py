"""SubmissionProcedure protocol - challenge, sign, submit."""

from __future__ import annotations

from typing import Any, Protocol

from nextid_sdk.interfaces.signer import Signer
from nextid_sdk.models.procedure import (
    PendingPayload,
    ProcedureState,
    Signature,
    SubmissionResult,
)


class SubmissionProcedure(Protocol):
    """Three-step signed modification of a remote record."""

    @property
    def state(self) -> ProcedureState:
        ...

    @property
    def sign_payload(self) -> str | None:
        """Canonical text to sign, once begin() succeeded."""
        ...

    async def begin(self) -> PendingPayload:
        """Request a pending payload from the service."""
        ...

    def sign(self, signer: Signer) -> Signature:
        """Sign the pending payload locally."""
        ...

    def attach_signature(self, raw: bytes) -> Signature:
        """Accept a signature produced elsewhere (e.g. a browser wallet)."""
        ...

    async def submit(self, *args: Any, **kwargs: Any) -> SubmissionResult:
        """Send the signed payload for validation and persistence."""
        ...
