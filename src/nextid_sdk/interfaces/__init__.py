"""Protocol interfaces for nextid_sdk components."""

from nextid_sdk.interfaces.procedure import SubmissionProcedure
from nextid_sdk.interfaces.signer import Signer
from nextid_sdk.interfaces.transport import Transport

__all__ = ["SubmissionProcedure", "Signer", "Transport"]
