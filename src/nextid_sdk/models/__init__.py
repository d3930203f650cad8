"""Data models for nextid_sdk."""

from nextid_sdk.models.config import (
    BASE_URLS,
    ClientConfig,
    Endpoint,
    Environment,
    ServiceKind,
)
from nextid_sdk.models.identity import Action, Identity, Platform
from nextid_sdk.models.procedure import (
    PendingPayload,
    ProcedureState,
    Signature,
    SubmissionResult,
)
from nextid_sdk.models.records import Avatar, KVAvatar, KVProof, Pagination, Proof

__all__ = [
    "BASE_URLS", "ClientConfig", "Endpoint", "Environment", "ServiceKind",
    "Action", "Identity", "Platform",
    "PendingPayload", "ProcedureState", "Signature", "SubmissionResult",
    "Avatar", "KVAvatar", "KVProof", "Pagination", "Proof",
]
