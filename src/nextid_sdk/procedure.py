"""Base submission procedure - the challenge / sign / submit state machine.

    Idle -> AwaitingSignature -> Submitted -> Confirmed | Rejected

begin() may be repeated from AwaitingSignature (fresh payload) or Rejected
(restart). submit() without a signature fails fast with ProcedureStateError
and leaves the state untouched. A NetworkError while submitting returns the
procedure to AwaitingSignature so the same payload can be re-sent while it is
still valid. Any other failure while submitting (server rejection, malformed
reply, cancellation) ends in Rejected.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from nextid_sdk.crypto.keypair import ALGORITHM, Secp256k1KeyPair
from nextid_sdk.errors import (
    NetworkError,
    PayloadExpired,
    ProcedureStateError,
    ServerRejected,
    SigningError,
)
from nextid_sdk.interfaces.signer import Signer
from nextid_sdk.interfaces.transport import Transport
from nextid_sdk.models.config import Endpoint
from nextid_sdk.models.identity import Action, Identity, Platform
from nextid_sdk.models.procedure import (
    PendingPayload,
    ProcedureState,
    Signature,
    SubmissionResult,
)
from nextid_sdk.transport import HttpTransport

log = logging.getLogger(__name__)

_BEGIN_FROM = (
    ProcedureState.IDLE,
    ProcedureState.AWAITING_SIGNATURE,
    ProcedureState.REJECTED,
)


class BaseProcedure:
    """Shared state machine. Subclasses implement the two service calls."""

    name = "procedure"

    def __init__(
        self,
        endpoint: Endpoint,
        action: Action,
        avatar: Secp256k1KeyPair | str | bytes,
        platform: Platform | str,
        identity: str,
        transport: Transport | None = None,
        payload_ttl: int = 3600,
    ) -> None:
        self.endpoint = endpoint
        self.action = Action(action)
        self.avatar = Secp256k1KeyPair.parse(avatar)
        self.platform = Platform.parse(platform)
        self.identity = identity
        self._transport = transport or HttpTransport()
        self._payload_ttl = payload_ttl

        self._state = ProcedureState.IDLE
        self._payload: PendingPayload | None = None
        self._signature: Signature | None = None

    # ── Introspection ──────────────────────────────────────

    @property
    def state(self) -> ProcedureState:
        return self._state

    @property
    def payload(self) -> PendingPayload | None:
        return self._payload

    @property
    def signature(self) -> Signature | None:
        return self._signature

    @property
    def sign_payload(self) -> str | None:
        return self._payload.sign_payload if self._payload else None

    @property
    def target(self) -> Identity:
        return Identity(self.platform, self.identity)

    def _transition(self, new: ProcedureState) -> None:
        old = self._state
        self._state = new
        log.info("%s %s %s -> %s", self.name, self.target, old.value, new.value)

    # ── Step 1: challenge ──────────────────────────────────

    async def begin(self) -> PendingPayload:
        """Request a fresh pending payload from the service."""
        if self._state not in _BEGIN_FROM:
            raise ProcedureStateError(f"cannot begin from state {self._state.value}")

        payload = await self._request_payload()
        self._payload = payload
        self._signature = None
        self._transition(ProcedureState.AWAITING_SIGNATURE)
        return payload

    async def _request_payload(self) -> PendingPayload:
        raise NotImplementedError

    # ── Step 2: sign ───────────────────────────────────────

    def sign(self, signer: Signer) -> Signature:
        """Sign the pending payload with ``signer`` (purely local).

        Any signing failure is fatal to this attempt: the procedure moves to
        Rejected and has to be restarted with begin().
        """
        payload = self._require_payload()
        if getattr(signer, "algorithm", None) != ALGORITHM:
            self._transition(ProcedureState.REJECTED)
            raise SigningError(f"unsupported signing algorithm: {getattr(signer, 'algorithm', None)!r}")

        try:
            raw = signer.sign_personal(payload.sign_payload)
        except SigningError:
            self._transition(ProcedureState.REJECTED)
            raise
        except Exception as exc:
            self._transition(ProcedureState.REJECTED)
            raise SigningError(f"signer failed: {type(exc).__name__}: {exc}") from exc

        return self.attach_signature(raw)

    def attach_signature(self, raw: bytes | Signature) -> Signature:
        """Accept an avatar signature over the pending payload.

        The signature must recover to this procedure's avatar.
        """
        payload = self._require_payload()
        signature = raw if isinstance(raw, Signature) else Signature(bytes(raw))
        if not self.avatar.verify_personal(signature.raw, payload.sign_payload):
            self._transition(ProcedureState.REJECTED)
            raise SigningError("signature does not recover to the avatar public key")

        self._signature = signature
        log.debug("%s signature attached (%s)", self.name, signature.algorithm)
        return signature

    def _require_payload(self) -> PendingPayload:
        if self._state is not ProcedureState.AWAITING_SIGNATURE or self._payload is None:
            raise ProcedureStateError(
                f"no pending payload (state {self._state.value}); call begin() first"
            )
        return self._payload

    # ── Step 3: submit ─────────────────────────────────────

    def _ready_to_submit(self) -> bool:
        return self._signature is not None

    async def submit(self) -> SubmissionResult:
        """Send the signed payload to the service."""
        payload = self._require_payload()
        if not self._ready_to_submit():
            raise ProcedureStateError("submit() called before the payload was signed")

        if payload.is_expired():
            self._transition(ProcedureState.REJECTED)
            raise PayloadExpired(
                f"payload {payload.uuid} expired at {payload.expires_at.isoformat()}"
            )

        self._transition(ProcedureState.SUBMITTED)
        try:
            await self._upload(payload)
        except NetworkError:
            self._transition(ProcedureState.AWAITING_SIGNATURE)
            raise
        except ServerRejected as exc:
            log.warning("%s rejected by server: %s", self.name, exc)
            self._transition(ProcedureState.REJECTED)
            raise
        except BaseException:
            # Submitted always ends in Confirmed or Rejected.
            self._transition(ProcedureState.REJECTED)
            raise

        self._transition(ProcedureState.CONFIRMED)
        return SubmissionResult(
            success=True,
            action=self.action,
            platform=self.platform,
            identity=self.identity,
            uuid=payload.uuid,
            confirmed_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            detail=f"{self.name} {self.action.value} accepted",
        )

    async def _upload(self, payload: PendingPayload) -> Any:
        raise NotImplementedError

    def _new_payload(
        self,
        uuid: str,
        sign_payload: str,
        created_at: datetime,
        post_content: dict[str, str] | None = None,
    ) -> PendingPayload:
        return PendingPayload(
            uuid=uuid,
            sign_payload=sign_payload,
            created_at=created_at,
            ttl=self._payload_ttl,
            post_content=dict(post_content or {}),
        )
