"""KVService modification procedure."""

from __future__ import annotations

import logging
from typing import Any

from nextid_sdk.crypto.encoding import timestamp_to_datetime
from nextid_sdk.errors import ParsingError
from nextid_sdk.models.procedure import PendingPayload
from nextid_sdk.procedure import BaseProcedure

log = logging.getLogger(__name__)


class KVProcedure(BaseProcedure):
    """Apply a JSON patch to the KV record of (avatar, platform, identity).

    Keys set to ``None`` in the patch are deleted on the server.
    """

    name = "kv"

    def __init__(self, *args: Any, patch: dict[str, Any], **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.patch = patch

    async def _request_payload(self) -> PendingPayload:
        body = {
            "avatar": self.avatar.pk_hex(compressed=True),
            "platform": self.platform.value,
            "identity": self.identity,
            "patch": self.patch,
        }
        resp = await self._transport.request("POST", self.endpoint, "v1/kv/payload", body=body)
        try:
            payload = self._new_payload(
                uuid=str(resp["uuid"]),
                sign_payload=str(resp["sign_payload"]),
                created_at=timestamp_to_datetime(resp["created_at"]),
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed KV payload response: {exc}") from exc

        log.info("KV payload %s issued for %s:%s", payload.uuid, self.platform.value, self.identity)
        return payload

    async def _upload(self, payload: PendingPayload) -> Any:
        body = {
            "avatar": self.avatar.pk_hex(compressed=True),
            "platform": self.platform.value,
            "identity": self.identity,
            "uuid": payload.uuid,
            "created_at": int(payload.created_at.timestamp()),
            "signature": self._signature.base64(),
            "patch": self.patch,
        }
        log.info("Submitting KV patch for %s:%s (uuid=%s)", self.platform.value, self.identity, payload.uuid)
        return await self._transport.request("POST", self.endpoint, "v1/kv", body=body)
