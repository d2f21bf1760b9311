"""Client-side submission pipeline for resource-metered ledger operations."""

from ledger_submit.engine import Simulation, SubmissionEngine
from ledger_submit.errors import (
    AccountNotFoundError,
    ClassicSubmissionError,
    ConfirmationError,
    ConfirmationTimeout,
    DecodeError,
    RestorationError,
    RpcError,
    SendError,
    SigningError,
    SimulationError,
    SubmissionError,
)
from ledger_submit.models import (
    Account,
    BuilderOptions,
    Footprint,
    ResourceData,
    SignedTransaction,
    SubmissionResult,
    TimeBounds,
    Transaction,
    TransactionParams,
)
from ledger_submit.rpc import JsonRpcClient, RpcClient
from ledger_submit.signer import KeypairSigner, Signer, sign_with_keypair
from ledger_submit.submitter import Submitter

__all__ = [
    "Account",
    "AccountNotFoundError",
    "BuilderOptions",
    "ClassicSubmissionError",
    "ConfirmationError",
    "ConfirmationTimeout",
    "DecodeError",
    "Footprint",
    "JsonRpcClient",
    "KeypairSigner",
    "ResourceData",
    "RestorationError",
    "RpcClient",
    "RpcError",
    "SendError",
    "SignedTransaction",
    "Signer",
    "SigningError",
    "Simulation",
    "SimulationError",
    "SubmissionEngine",
    "SubmissionError",
    "SubmissionResult",
    "Submitter",
    "TimeBounds",
    "Transaction",
    "TransactionParams",
    "sign_with_keypair",
]
