"""secp256k1 key pair: avatar identity and default software signer."""

from __future__ import annotations

import logging

from coincurve import PrivateKey, PublicKey

from nextid_sdk.crypto.encoding import hex_decode, hex_encode, keccak256, personal_message
from nextid_sdk.errors import ParsingError, SigningError

log = logging.getLogger(__name__)

ALGORITHM = "secp256k1-personal"


class Secp256k1KeyPair:
    """secp256k1 public key with an optional secret key.

    The secret key is missing when the pair only identifies an avatar
    (lookups, signature verification). Signing such a pair raises
    SigningError.
    """

    algorithm = ALGORITHM

    def __init__(self, public_key: PublicKey, secret_key: PrivateKey | None = None) -> None:
        self._pk = public_key
        self._sk = secret_key

    # ── Constructors ───────────────────────────────────────

    @classmethod
    def generate(cls) -> "Secp256k1KeyPair":
        sk = PrivateKey()
        return cls(sk.public_key, sk)

    @classmethod
    def from_pk_hex(cls, pk_hex: str) -> "Secp256k1KeyPair":
        """Parse a compressed (33 bytes) or uncompressed (65 bytes) public key.

        Both ``0x...`` and raw hexstrings are accepted.
        """
        return cls.from_pk_bytes(hex_decode(pk_hex))

    @classmethod
    def from_pk_bytes(cls, pk_bytes: bytes) -> "Secp256k1KeyPair":
        if len(pk_bytes) not in (33, 65):
            raise ParsingError(f"public key must be 33 or 65 bytes, got {len(pk_bytes)}")
        try:
            return cls(PublicKey(pk_bytes))
        except (ValueError, TypeError) as exc:
            raise ParsingError(f"invalid secp256k1 public key: {exc}") from exc

    @classmethod
    def from_sk_hex(cls, sk_hex: str) -> "Secp256k1KeyPair":
        return cls.from_sk_bytes(hex_decode(sk_hex))

    @classmethod
    def from_sk_bytes(cls, sk_bytes: bytes) -> "Secp256k1KeyPair":
        if len(sk_bytes) != 32:
            raise ParsingError(f"secret key must be 32 bytes, got {len(sk_bytes)}")
        try:
            sk = PrivateKey(sk_bytes)
        except (ValueError, TypeError) as exc:
            raise ParsingError(f"invalid secp256k1 secret key: {exc}") from exc
        return cls(sk.public_key, sk)

    @classmethod
    def parse(cls, avatar: "Secp256k1KeyPair | str | bytes") -> "Secp256k1KeyPair":
        """Coerce an avatar given as key pair, hexstring or raw bytes."""
        if isinstance(avatar, cls):
            return avatar
        if isinstance(avatar, str):
            return cls.from_pk_hex(avatar)
        if isinstance(avatar, (bytes, bytearray)):
            return cls.from_pk_bytes(bytes(avatar))
        raise ParsingError(f"unsupported avatar type: {type(avatar).__name__}")

    # ── Accessors ──────────────────────────────────────────

    def has_sk(self) -> bool:
        return self._sk is not None

    def public_key(self, compressed: bool = True) -> bytes:
        return self._pk.format(compressed=compressed)

    def pk_hex(self, compressed: bool = True, prefix: bool = True) -> str:
        raw = hex_encode(self.public_key(compressed))
        return f"0x{raw}" if prefix else raw

    def sk_hex(self) -> str:
        if self._sk is None:
            raise SigningError("key pair has no secret key")
        return f"0x{hex_encode(self._sk.secret)}"

    def eth_address(self) -> bytes:
        """Ethereum address: last 20 bytes of keccak256(uncompressed pubkey sans 0x04)."""
        return keccak256(self.public_key(compressed=False)[1:])[-20:]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secp256k1KeyPair):
            return NotImplemented
        return self.public_key() == other.public_key()

    def __hash__(self) -> int:
        return hash(self.public_key())

    def __repr__(self) -> str:
        return f"Secp256k1KeyPair({self.pk_hex()}, sk={'yes' if self.has_sk() else 'no'})"

    # ── Signing ────────────────────────────────────────────

    def personal_sign(self, message: str) -> bytes:
        """``web3.eth.personal.sign``: 65 raw bytes, r + s + v with v in {0, 1}."""
        return self.hashed_sign(personal_message(message))

    def hashed_sign(self, message: bytes) -> bytes:
        """Sign keccak256(message) with a recoverable signature."""
        if self._sk is None:
            raise SigningError("cannot sign: key pair has no secret key")
        digest = keccak256(message)
        signature = self._sk.sign_recoverable(digest, hasher=None)
        if len(signature) != 65:
            raise SigningError(f"unexpected signature length {len(signature)}")
        return signature

    # Signer protocol
    def sign_personal(self, message: str) -> bytes:
        return self.personal_sign(message)

    @classmethod
    def recover_from_personal_signature(
        cls, signature: bytes, plain_payload: str
    ) -> "Secp256k1KeyPair":
        """Recover the signer's public key from a personal_sign signature.

        Accepts v encoded as 0/1 or 27/28.
        """
        if len(signature) != 65:
            raise SigningError(f"signature must be 65 bytes, got {len(signature)}")
        recovery_id = signature[64]
        if recovery_id in (27, 28):
            recovery_id -= 27
        if recovery_id not in (0, 1):
            raise SigningError(f"invalid recovery id {signature[64]}")

        digest = keccak256(personal_message(plain_payload))
        try:
            pk = PublicKey.from_signature_and_message(
                signature[:64] + bytes([recovery_id]), digest, hasher=None
            )
        except (ValueError, TypeError) as exc:
            raise SigningError(f"signature recovery failed: {exc}") from exc
        return cls(pk)

    def verify_personal(self, signature: bytes, plain_payload: str) -> bool:
        """True if ``signature`` over ``plain_payload`` recovers to this key."""
        try:
            recovered = self.recover_from_personal_signature(signature, plain_payload)
        except SigningError as exc:
            log.debug("Signature verification failed: %s", exc)
            return False
        return recovered == self
