"""Failure taxonomy for the submission pipeline.

Transient statuses (TRY_AGAIN_LATER inside the retry window, NOT_FOUND while polling)
never surface as exceptions. Everything below is fatal to the submission that raised it.
"""

from collections.abc import Sequence


class SubmissionError(Exception):
    """Base class for every failure the engine raises."""


class RpcError(SubmissionError):
    """JSON-RPC level error returned by the ledger endpoint."""

    def __init__(self, code: int | None, message: str, data=None) -> None:
        super().__init__(f"rpc error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class AccountNotFoundError(RpcError):
    """The ledger has no account for the requested identity."""


class SimulationError(SubmissionError):
    """Simulation failed; carries the diagnostic events for post-mortem logging."""

    def __init__(
        self,
        message: str,
        *,
        diagnostic_events: Sequence[str] = (),
        envelope: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.diagnostic_events = tuple(diagnostic_events)
        self.envelope = envelope


class RestorationError(SubmissionError):
    """The restore-and-resimulate cycle failed. Already consumed sequence numbers stay consumed."""


class SigningError(SubmissionError):
    """The signer capability raised or returned an unusable envelope."""


class SendError(SubmissionError):
    """The transaction never reached PENDING."""

    def __init__(
        self,
        status: str,
        tx_hash: str | None,
        *,
        envelope: str | None = None,
        error_result: str | None = None,
        diagnostic_events: Sequence[str] = (),
    ) -> None:
        super().__init__(f"Transaction failed to send: {tx_hash} (status={status})")
        self.status = status
        self.tx_hash = tx_hash
        self.envelope = envelope
        self.error_result = error_result
        self.diagnostic_events = tuple(diagnostic_events)


class ConfirmationError(SubmissionError):
    """The ledger recorded the transaction as anything but a success."""

    def __init__(
        self,
        tx_hash: str,
        status: str,
        *,
        error_result: str | None = None,
        diagnostic_events: Sequence[str] = (),
    ) -> None:
        super().__init__(f"Transaction failed: {tx_hash} (status={status})")
        self.tx_hash = tx_hash
        self.status = status
        self.error_result = error_result
        self.diagnostic_events = tuple(diagnostic_events)


class ConfirmationTimeout(ConfirmationError):
    """Polling gave up after the caller supplied confirm_timeout."""

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(tx_hash, "TIMEOUT")
        self.timeout = timeout


class DecodeError(SubmissionError):
    """The caller's parser raised on an otherwise successful result."""


class ClassicSubmissionError(SubmissionError):
    """A classic (non-simulated) operation failed to submit."""


__all__ = [
    "AccountNotFoundError",
    "ClassicSubmissionError",
    "ConfirmationError",
    "ConfirmationTimeout",
    "DecodeError",
    "RestorationError",
    "RpcError",
    "SendError",
    "SigningError",
    "SimulationError",
    "SubmissionError",
]
