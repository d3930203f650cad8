"""Platforms, actions and identity pairs understood by ProofService."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from nextid_sdk.errors import ParsingError


class Action(str, Enum):
    """ProofChain modification actions."""

    CREATE = "create"
    DELETE = "delete"


class Platform(str, Enum):
    """Platforms supported by ProofService."""

    GITHUB = "github"
    NEXTID = "nextid"
    TWITTER = "twitter"
    KEYBASE = "keybase"
    ETHEREUM = "ethereum"
    DISCORD = "discord"
    DAS = "dotbit"
    SOLANA = "solana"

    @classmethod
    def parse(cls, value: "Platform | str") -> Platform:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            raise ParsingError(f"unknown platform: {value!r}") from exc

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Identity:
    """A (platform, handle) pair, e.g. (twitter, yeiwb)."""

    platform: Platform
    handle: str

    @classmethod
    def of(cls, platform: Platform | str, handle: str) -> Identity:
        return cls(Platform.parse(platform), handle)

    def __str__(self) -> str:
        return f"{self.platform.value}:{self.handle}"
