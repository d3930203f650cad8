"""Lookup records returned by ProofService and KVService."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from nextid_sdk.crypto.encoding import hex_decode, timestamp_to_datetime
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import ParsingError
from nextid_sdk.models.identity import Platform


@dataclass
class Pagination:
    total: int
    per: int
    current: int
    next: int  # 0 when this is the last page


@dataclass
class Proof:
    """Single proof record under an avatar."""

    platform: Platform
    identity: str
    created_at: datetime
    last_checked_at: datetime
    is_valid: bool
    invalid_reason: str | None = None  # set only when is_valid is False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Proof:
        try:
            return cls(
                platform=Platform.parse(raw["platform"]),
                identity=str(raw["identity"]),
                created_at=timestamp_to_datetime(raw["created_at"]),
                last_checked_at=timestamp_to_datetime(raw["last_checked_at"]),
                is_valid=bool(raw["is_valid"]),
                invalid_reason=raw.get("invalid_reason") or None,
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed proof record: {exc}") from exc


@dataclass
class Avatar:
    """Avatar with every proof bound to it."""

    avatar: bytes  # secp256k1 public key, raw bytes as returned by the service
    last_arweave_id: str
    proofs: list[Proof] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Avatar:
        try:
            return cls(
                avatar=hex_decode(raw["avatar"]),
                last_arweave_id=raw.get("last_arweave_id", ""),
                proofs=[Proof.from_dict(p) for p in raw.get("proofs") or []],
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed avatar record: {exc}") from exc

    def key_pair(self) -> Secp256k1KeyPair:
        return Secp256k1KeyPair.from_pk_bytes(self.avatar)

    def has_identity(self, platform: Platform, identity: str) -> bool:
        return any(
            p.platform == platform and p.identity.lower() == identity.lower()
            for p in self.proofs
        )


@dataclass
class KVProof:
    """KV content stored under one (platform, identity) of an avatar."""

    platform: Platform
    identity: str
    content: Any  # arbitrary JSON

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> KVProof:
        try:
            return cls(
                platform=Platform.parse(raw["platform"]),
                identity=str(raw["identity"]),
                content=raw.get("content"),
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed KV record: {exc}") from exc


@dataclass
class KVAvatar:
    """KV content of one avatar, as found by platform/identity."""

    avatar: Secp256k1KeyPair
    content: Any

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> KVAvatar:
        try:
            return cls(
                avatar=Secp256k1KeyPair.from_pk_hex(raw["avatar"]),
                content=raw.get("content"),
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed KV record: {exc}") from exc
