"""Configuration models: service endpoints and client settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Environment(str, Enum):
    """Which NextID deployment to talk to."""

    PRODUCTION = "production"
    STAGING = "staging"
    CUSTOM = "custom"  # full URL supplied by the caller


class ServiceKind(str, Enum):
    PROOF = "proof"
    KV = "kv"


BASE_URLS: dict[ServiceKind, dict[Environment, str]] = {
    ServiceKind.PROOF: {
        Environment.PRODUCTION: "https://proof-service.next.id",
        Environment.STAGING: "https://proof-service.nextnext.id",
    },
    ServiceKind.KV: {
        Environment.PRODUCTION: "https://kv-service.next.id",
        Environment.STAGING: "https://kv-service.nextnext.id",
    },
}


@dataclass(frozen=True)
class Endpoint:
    """Root URL of one service deployment. Immutable once built."""

    service: ServiceKind
    environment: Environment
    base_url: str

    @classmethod
    def production(cls, service: ServiceKind) -> Endpoint:
        return cls.for_service(service, Environment.PRODUCTION)

    @classmethod
    def staging(cls, service: ServiceKind) -> Endpoint:
        return cls.for_service(service, Environment.STAGING)

    @classmethod
    def custom(cls, service: ServiceKind, url: str) -> Endpoint:
        return cls.for_service(service, Environment.CUSTOM, url)

    @classmethod
    def for_service(
        cls,
        service: ServiceKind,
        environment: Environment,
        custom_url: str | None = None,
    ) -> Endpoint:
        if environment is Environment.CUSTOM:
            if not custom_url:
                raise ValueError(f"custom {service.value} endpoint requires a URL")
            return cls(service, environment, custom_url.rstrip("/"))
        return cls(service, environment, BASE_URLS[service][environment])

    def url(self, path: str) -> str:
        """Join an API path (``v1/proof``) onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"


@dataclass
class ClientConfig:
    """Complete SDK configuration."""

    environment: Environment = Environment.STAGING
    proof_url: str = ""  # only used with Environment.CUSTOM
    kv_url: str = ""  # only used with Environment.CUSTOM

    timeout: float = 30.0  # seconds per request
    payload_ttl: int = 3600  # seconds a pending payload stays valid
    user_agent: str = ""  # empty -> nextid-sdk-python/<version>

    secret_key: str = ""  # avatar secret, loaded from NEXTID_SECRET
    log_level: str = "info"

    def proof_endpoint(self) -> Endpoint:
        return Endpoint.for_service(ServiceKind.PROOF, self.environment, self.proof_url)

    def kv_endpoint(self) -> Endpoint:
        return Endpoint.for_service(ServiceKind.KV, self.environment, self.kv_url)
