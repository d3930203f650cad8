"""Read-only KVService queries plus the KVProcedure factory."""

from __future__ import annotations

import logging
from typing import Any

from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import ParsingError
from nextid_sdk.interfaces.transport import Transport
from nextid_sdk.models.config import ClientConfig, Endpoint, ServiceKind
from nextid_sdk.models.identity import Action, Platform
from nextid_sdk.models.records import KVAvatar, KVProof
from nextid_sdk.kv_service.procedure import KVProcedure
from nextid_sdk.transport import HttpTransport

log = logging.getLogger(__name__)


class KVServiceClient:
    """Queries against one KVService deployment."""

    def __init__(
        self,
        endpoint: Endpoint,
        transport: Transport | None = None,
        payload_ttl: int = 3600,
    ) -> None:
        if endpoint.service is not ServiceKind.KV:
            raise ValueError(f"expected a KVService endpoint, got {endpoint.service.value}")
        self.endpoint = endpoint
        self._transport = transport or HttpTransport()
        self._payload_ttl = payload_ttl

    @classmethod
    def from_config(cls, cfg: ClientConfig, transport: Transport | None = None) -> KVServiceClient:
        return cls(
            cfg.kv_endpoint(),
            transport or HttpTransport(cfg.timeout, cfg.user_agent),
            cfg.payload_ttl,
        )

    async def find_by_avatar(self, avatar: Secp256k1KeyPair | str | bytes) -> list[KVProof]:
        """All KV records under an avatar.

        A malformed key raises ParsingError before any request is made.
        """
        key = Secp256k1KeyPair.parse(avatar)
        resp = await self._transport.request(
            "GET", self.endpoint, "v1/kv", params={"avatar": key.pk_hex(compressed=True)},
        )
        if not isinstance(resp, dict):
            raise ParsingError("KV query response is not an object")
        return [KVProof.from_dict(p) for p in resp.get("proofs") or []]

    async def find_by_platform_identity(
        self, platform: Platform | str, identity: str
    ) -> list[KVAvatar]:
        """All KV records stored under ``platform``/``identity``, one per avatar."""
        platform = Platform.parse(platform)
        resp = await self._transport.request(
            "GET",
            self.endpoint,
            "v1/kv/by_identity",
            params={"platform": platform.value, "identity": identity},
        )
        if not isinstance(resp, dict):
            raise ParsingError("KV identity query response is not an object")
        values = [KVAvatar.from_dict(v) for v in resp.get("values") or []]
        log.debug("find_by_platform_identity %s:%s -> %d", platform.value, identity, len(values))
        return values

    def procedure(
        self,
        avatar: Secp256k1KeyPair | str | bytes,
        platform: Platform | str,
        identity: str,
        patch: dict[str, Any],
        action: Action | str = Action.CREATE,
    ) -> KVProcedure:
        """Start a new KV modification against this endpoint."""
        return KVProcedure(
            self.endpoint,
            action,
            avatar,
            platform,
            identity,
            transport=self._transport,
            payload_ttl=self._payload_ttl,
            patch=patch,
        )
