"""nextid_sdk - async client for NextID ProofService and KVService."""

__version__ = "0.1.0"

from nextid_sdk.crypto.keypair import Secp256k1KeyPair  # noqa: E402
from nextid_sdk.errors import (  # noqa: E402
    NetworkError,
    NextIDError,
    NotFound,
    ParsingError,
    PayloadExpired,
    ProcedureStateError,
    ServerRejected,
    SigningError,
)
from nextid_sdk.kv_service import KVProcedure, KVServiceClient  # noqa: E402
from nextid_sdk.models import (  # noqa: E402
    Action,
    ClientConfig,
    Endpoint,
    Environment,
    Platform,
    ProcedureState,
    ServiceKind,
)
from nextid_sdk.proof_service import ProofProcedure, ProofServiceClient  # noqa: E402

__all__ = [
    "__version__",
    "Secp256k1KeyPair",
    "NextIDError", "NetworkError", "ServerRejected", "NotFound", "PayloadExpired",
    "SigningError", "ParsingError", "ProcedureStateError",
    "KVProcedure", "KVServiceClient", "ProofProcedure", "ProofServiceClient",
    "Action", "ClientConfig", "Endpoint", "Environment", "Platform",
    "ProcedureState", "ServiceKind",
]
