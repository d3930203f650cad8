"""Read-only ProofService queries plus the ProofProcedure factory."""

from __future__ import annotations

import logging
from typing import Any

from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import NotFound, ParsingError
from nextid_sdk.interfaces.transport import Transport
from nextid_sdk.models.config import ClientConfig, Endpoint, ServiceKind
from nextid_sdk.models.identity import Action, Platform
from nextid_sdk.models.records import Avatar, Pagination
from nextid_sdk.proof_service.procedure import ProofProcedure
from nextid_sdk.transport import HttpTransport

log = logging.getLogger(__name__)


class ProofServiceClient:
    """Queries against one ProofService deployment.

    The endpoint is fixed at construction; build another client to talk to a
    different deployment.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        transport: Transport | None = None,
        payload_ttl: int = 3600,
    ) -> None:
        if endpoint.service is not ServiceKind.PROOF:
            raise ValueError(f"expected a ProofService endpoint, got {endpoint.service.value}")
        self.endpoint = endpoint
        self._transport = transport or HttpTransport()
        self._payload_ttl = payload_ttl

    @classmethod
    def from_config(cls, cfg: ClientConfig, transport: Transport | None = None) -> ProofServiceClient:
        return cls(
            cfg.proof_endpoint(),
            transport or HttpTransport(cfg.timeout, cfg.user_agent),
            cfg.payload_ttl,
        )

    async def find_by(
        self,
        platform: Platform | str,
        identity: str,
        limit: int | None = None,
    ) -> list[Avatar]:
        """Avatars bound to ``platform``/``identity``.

        Follows pagination until the last page, or until ``limit`` avatars
        were collected. ``limit=0`` returns an empty list without a request.
        """
        platform = Platform.parse(platform)
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        if limit == 0:
            return []

        result: list[Avatar] = []
        page = 1
        while True:
            raw = await self._find_by_single_page(platform, identity, page)
            for item in raw.get("ids") or []:
                result.append(Avatar.from_dict(item))
                if limit is not None and len(result) >= limit:
                    return result

            pagination = _pagination(raw)
            if pagination is None or pagination.next == 0 or pagination.next <= page:
                break
            page = pagination.next

        log.debug("find_by %s:%s -> %d avatars", platform.value, identity, len(result))
        return result

    async def find_one(self, platform: Platform | str, identity: str) -> Avatar:
        """First avatar bound to ``platform``/``identity``; NotFound if none."""
        avatars = await self.find_by(platform, identity, limit=1)
        if not avatars:
            raise NotFound(f"no avatar bound to {Platform.parse(platform).value}:{identity}")
        return avatars[0]

    async def find_by_avatar(
        self, avatar: Secp256k1KeyPair | str | bytes, limit: int | None = None
    ) -> list[Avatar]:
        """Proofs of one avatar. The key is parsed before any request is made."""
        key = Secp256k1KeyPair.parse(avatar)
        return await self.find_by(Platform.NEXTID, key.pk_hex(compressed=True), limit)

    async def _find_by_single_page(
        self, platform: Platform, identity: str, page: int
    ) -> dict[str, Any]:
        resp = await self._transport.request(
            "GET",
            self.endpoint,
            "v1/proof",
            params={"platform": platform.value, "identity": identity, "page": str(page)},
        )
        if not isinstance(resp, dict):
            raise ParsingError("proof query response is not an object")
        return resp

    def procedure(
        self,
        action: Action | str,
        avatar: Secp256k1KeyPair | str | bytes,
        platform: Platform | str,
        identity: str,
    ) -> ProofProcedure:
        """Start a new ProofChain modification against this endpoint."""
        return ProofProcedure(
            self.endpoint,
            action,
            avatar,
            platform,
            identity,
            transport=self._transport,
            payload_ttl=self._payload_ttl,
        )


def _pagination(raw: dict[str, Any]) -> Pagination | None:
    data = raw.get("pagination")
    if not data:
        return None
    try:
        return Pagination(
            total=int(data.get("total", 0)),
            per=int(data.get("per", 0)),
            current=int(data.get("current", 0)),
            next=int(data.get("next", 0)),
        )
    except (TypeError, ValueError) as exc:
        raise ParsingError(f"malformed pagination: {exc}") from exc
