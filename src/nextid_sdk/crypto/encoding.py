"""Hex / base64 / keccak helpers used across the SDK."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone

from eth_utils import keccak

from nextid_sdk.errors import ParsingError


def strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def hex_encode(data: bytes) -> str:
    """Lowercase hexstring without prefix."""
    return data.hex()


def hex_decode(value: str) -> bytes:
    """Decode a hexstring, with or without a leading ``0x``."""
    try:
        return bytes.fromhex(strip_0x(value.strip()))
    except ValueError as exc:
        raise ParsingError(f"invalid hexstring: {value[:20]!r}") from exc


def base64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def base64_decode(value: str) -> bytes:
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParsingError(f"invalid base64: {value[:20]!r}") from exc


def keccak256(message: str | bytes) -> bytes:
    """Keccak-256 digest (the Ethereum variant, not SHA3-256)."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return keccak(message)


def personal_message(message: str) -> bytes:
    """Wrap a message the way ``web3.eth.personal.sign`` does.

    The length prefix counts UTF-8 bytes, not code points.
    """
    raw = message.encode("utf-8")
    return b"\x19Ethereum Signed Message:\n" + str(len(raw)).encode("ascii") + raw


def timestamp_to_datetime(value: str | int) -> datetime:
    """Parse unix seconds (int or decimal string) into an aware UTC datetime."""
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ParsingError(f"invalid timestamp: {value!r}") from exc
