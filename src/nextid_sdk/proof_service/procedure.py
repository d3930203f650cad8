"""ProofChain modification procedure against ProofService."""

from __future__ import annotations

import logging
from typing import Any

from nextid_sdk.crypto.encoding import hex_decode, timestamp_to_datetime
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import ParsingError, ProcedureStateError, SigningError
from nextid_sdk.models.identity import Action, Platform
from nextid_sdk.models.procedure import PendingPayload, ProcedureState, Signature, SubmissionResult
from nextid_sdk.procedure import BaseProcedure

log = logging.getLogger(__name__)

SIGNATURE_PLACEHOLDER = "%SIG_BASE64%"


class ProofProcedure(BaseProcedure):
    """Create or delete one ProofChain binding (avatar <-> platform identity).

    For social platforms the avatar signature travels inside the public post
    (see render_post_content); ProofService fetches it from proof_location.
    For Ethereum both signatures are sent in the request and checked locally
    first.
    """

    name = "proof"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._wallet_signature: Signature | None = None
        self._proof_location: str | None = None

    @property
    def post_content(self) -> dict[str, str]:
        return dict(self._payload.post_content) if self._payload else {}

    @property
    def proof_location(self) -> str | None:
        return self._proof_location

    async def _request_payload(self) -> PendingPayload:
        body = {
            "action": self.action.value,
            "platform": self.platform.value,
            "identity": self.identity,
            "public_key": self.avatar.pk_hex(compressed=False, prefix=False),
            "extra": None,
        }
        resp = await self._transport.request("POST", self.endpoint, "v1/proof/payload", body=body)
        try:
            payload = self._new_payload(
                uuid=str(resp["uuid"]),
                sign_payload=str(resp["sign_payload"]),
                created_at=timestamp_to_datetime(resp["created_at"]),
                post_content=resp.get("post_content") or {},
            )
        except (KeyError, TypeError) as exc:
            raise ParsingError(f"malformed proof payload response: {exc}") from exc

        log.info("Proof payload %s issued for %s:%s", payload.uuid, self.platform.value, self.identity)
        return payload

    def render_post_content(self, lang: str = "default") -> str:
        """Post template with the avatar signature filled in."""
        if self._payload is None:
            raise ProcedureStateError("no pending payload; call begin() first")
        if self._signature is None:
            raise ProcedureStateError("sign the payload before rendering the post")
        template = self._payload.post_content.get(lang) or self._payload.post_content.get("default")
        if template is None:
            raise ProcedureStateError(f"no post content for language {lang!r}")
        return template.replace(SIGNATURE_PLACEHOLDER, self._signature.base64())

    def attach_wallet_signature(self, raw: bytes | Signature) -> Signature:
        """Ethereum only: signature over the payload by the wallet in ``identity``."""
        self._require_payload()
        self._wallet_signature = raw if isinstance(raw, Signature) else Signature(bytes(raw))
        return self._wallet_signature

    # ── Submit ─────────────────────────────────────────────

    def _ready_to_submit(self) -> bool:
        if self.platform is Platform.ETHEREUM and self.action is Action.DELETE:
            return self._signature is not None or self._wallet_signature is not None
        return self._signature is not None

    async def submit(
        self,
        proof_location: str = "",
        wallet_signature: bytes | Signature | None = None,
    ) -> SubmissionResult:
        """Submit the binding. ``proof_location`` is e.g. the tweet status ID.

        Ethereum create needs both the avatar and the wallet signature;
        Ethereum delete needs either. Other platforms need neither in the
        request.
        """
        self._require_payload()
        if wallet_signature is not None:
            self.attach_wallet_signature(wallet_signature)
        self._proof_location = proof_location
        if self.platform is Platform.ETHEREUM:
            self._validate_ethereum()
        return await super().submit()

    def _validate_ethereum(self) -> None:
        payload = self._require_payload()
        avatar_ok = self._signature is not None  # verified on attach
        wallet_ok = False
        if self._wallet_signature is not None:
            wallet_ok = self._wallet_matches_identity(self._wallet_signature, payload.sign_payload)

        if self.action is Action.CREATE:
            if self._signature is None or self._wallet_signature is None:
                raise ProcedureStateError(
                    "Ethereum create requires both avatar and wallet signatures"
                )
            if not wallet_ok:
                self._transition(ProcedureState.REJECTED)
                raise SigningError("wallet signature does not match the Ethereum address")
        else:
            if self._signature is None and self._wallet_signature is None:
                raise ProcedureStateError(
                    "Ethereum delete requires an avatar or a wallet signature"
                )
            if not (avatar_ok or wallet_ok):
                self._transition(ProcedureState.REJECTED)
                raise SigningError("wallet signature does not match the Ethereum address")

    def _wallet_matches_identity(self, signature: Signature, sign_payload: str) -> bool:
        try:
            recovered = Secp256k1KeyPair.recover_from_personal_signature(signature.raw, sign_payload)
            expected = hex_decode(self.identity)
        except (SigningError, ParsingError) as exc:
            log.warning("Wallet signature check failed for %s: %s", self.identity, exc)
            return False
        return recovered.eth_address() == expected

    async def _upload(self, payload: PendingPayload) -> Any:
        extra: dict[str, str | None] = {"signature": None, "wallet_signature": None}
        if self.platform is Platform.ETHEREUM:
            extra = {
                "signature": self._signature.base64() if self._signature else None,
                "wallet_signature": (
                    self._wallet_signature.base64() if self._wallet_signature else None
                ),
            }
        body = {
            "action": self.action.value,
            "platform": self.platform.value,
            "identity": self.identity,
            "proof_location": self._proof_location or "",
            "public_key": self.avatar.pk_hex(compressed=True, prefix=False),
            "uuid": payload.uuid,
            "created_at": str(int(payload.created_at.timestamp())),
            "extra": extra,
        }
        log.info(
            "Submitting proof %s %s:%s (uuid=%s)",
            self.action.value, self.platform.value, self.identity, payload.uuid,
        )
        return await self._transport.request("POST", self.endpoint, "v1/proof", body=body)
