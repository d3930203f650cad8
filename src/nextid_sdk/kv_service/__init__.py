"""KVService: key-value storage for each ProofService binding."""

from nextid_sdk.kv_service.client import KVServiceClient
from nextid_sdk.kv_service.procedure import KVProcedure

__all__ = ["KVServiceClient", "KVProcedure"]
