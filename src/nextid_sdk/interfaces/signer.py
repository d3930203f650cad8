"""Signer protocol - anything that can personal_sign a payload with an avatar key."""

from __future__ import annotations

from typing import Protocol


class Signer(Protocol):
    """Signing capability backed by software keys, hardware or a wallet bridge."""

    algorithm: str

    def public_key(self, compressed: bool = True) -> bytes:
        """secp256k1 public key of the signing avatar."""
        ...

    def sign_personal(self, message: str) -> bytes:
        """Return a 65-byte recoverable ``web3.eth.personal.sign`` signature."""
        ...
