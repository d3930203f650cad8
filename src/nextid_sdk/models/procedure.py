"""Submission procedure state and the values passed between its steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from nextid_sdk.crypto.encoding import base64_decode, base64_encode
from nextid_sdk.crypto.keypair import ALGORITHM
from nextid_sdk.models.identity import Action, Platform


class ProcedureState(str, Enum):
    IDLE = "idle"
    AWAITING_SIGNATURE = "awaiting_signature"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"  # terminal
    REJECTED = "rejected"  # terminal; begin() again to restart


@dataclass(frozen=True)
class PendingPayload:
    """Server-issued canonical data the avatar has to sign."""

    uuid: str
    sign_payload: str
    created_at: datetime
    ttl: int = 3600  # seconds
    post_content: dict[str, str] = field(default_factory=dict)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.ttl)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


@dataclass(frozen=True)
class Signature:
    """Raw 65-byte recoverable signature (r + s + v) plus algorithm tag."""

    raw: bytes
    algorithm: str = ALGORITHM

    def base64(self) -> str:
        return base64_encode(self.raw)

    @classmethod
    def from_base64(cls, value: str, algorithm: str = ALGORITHM) -> Signature:
        return cls(base64_decode(value), algorithm)


@dataclass
class SubmissionResult:
    """Outcome of a submit() call."""

    success: bool
    action: Action
    platform: Platform
    identity: str
    uuid: str
    confirmed_at: str | None = None  # ISO 8601
    detail: str = ""
