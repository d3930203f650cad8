"""ProofService: trustable bindings between an avatar and platform identities."""

from nextid_sdk.proof_service.client import ProofServiceClient
from nextid_sdk.proof_service.procedure import SIGNATURE_PLACEHOLDER, ProofProcedure

__all__ = ["ProofServiceClient", "ProofProcedure", "SIGNATURE_PLACEHOLDER"]
