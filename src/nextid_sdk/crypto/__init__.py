"""Crypto helpers - secp256k1 key pairs and encodings."""

from nextid_sdk.crypto.encoding import (
    base64_decode,
    base64_encode,
    hex_decode,
    hex_encode,
    keccak256,
)
from nextid_sdk.crypto.keypair import Secp256k1KeyPair

__all__ = [
    "Secp256k1KeyPair",
    "base64_decode", "base64_encode", "hex_decode", "hex_encode", "keccak256",
]
