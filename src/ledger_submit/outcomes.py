"""Tagged outcomes of the three RPC round trips that can branch the pipeline.

Each RPC result is classified exactly once, at the boundary, into one of these variants.
Downstream code branches on the variant type and never re-inspects raw result dicts.
"""

from dataclasses import dataclass

from ledger_submit.constants import SendStatus, TxStatus
from ledger_submit.envelope import return_value_from_meta
from ledger_submit.models import ResourceData


def _events(result: dict, key: str) -> tuple[str, ...]:
    return tuple(result.get(key) or ())


# ---------------------------------------------------------------------------
# simulateTransaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SimulationSuccess:
    return_value: str | None
    resource_data: ResourceData
    min_resource_fee: int
    events: tuple[str, ...] = ()
    auth: tuple[str, ...] = ()  # SorobanAuthorizationEntry xdr from results[0]


@dataclass(frozen=True, slots=True)
class RestoreRequired:
    min_resource_fee: int
    restore_resource_data: ResourceData
    return_value: str | None = None


@dataclass(frozen=True, slots=True)
class SimulationFailed:
    message: str
    diagnostic_events: tuple[str, ...] = ()


SimulationOutcome = SimulationSuccess | RestoreRequired | SimulationFailed


def simulation_outcome_from_result(result: dict) -> SimulationOutcome:
    """Classify a simulateTransaction result.

    Args:
        result: The 'result' member of the JSON-RPC response.

    Returns:
        SimulationFailed if the boundary reported an error, RestoreRequired if a restore
        preamble is present, otherwise SimulationSuccess.
    """
    if result.get("error"):
        return SimulationFailed(message=str(result["error"]), diagnostic_events=_events(result, "events"))

    results = result.get("results") or []
    first = results[0] if results else {}
    return_value = first.get("xdr")

    preamble = result.get("restorePreamble")
    if preamble:
        return RestoreRequired(
            min_resource_fee=int(preamble["minResourceFee"]),
            restore_resource_data=ResourceData.from_base64(preamble["transactionData"]),
            return_value=return_value,
        )

    return SimulationSuccess(
        return_value=return_value,
        resource_data=ResourceData.from_base64(result["transactionData"]),
        min_resource_fee=int(result.get("minResourceFee", 0)),
        events=_events(result, "events"),
        auth=tuple(first.get("auth") or ()),
    )


# ---------------------------------------------------------------------------
# sendTransaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SendPending:
    hash: str


@dataclass(frozen=True, slots=True)
class SendTransient:
    hash: str | None = None


@dataclass(frozen=True, slots=True)
class SendRejected:
    status: str
    hash: str | None
    error_result: str | None = None
    diagnostic_events: tuple[str, ...] = ()


SendOutcome = SendPending | SendTransient | SendRejected


def send_outcome_from_result(result: dict) -> SendOutcome:
    status = result.get("status")
    tx_hash = result.get("hash")
    if status == SendStatus.PENDING:
        return SendPending(hash=tx_hash)
    if status == SendStatus.TRY_AGAIN_LATER:
        return SendTransient(hash=tx_hash)
    # ERROR, DUPLICATE and anything we don't know about are terminal
    return SendRejected(
        status=str(status),
        hash=tx_hash,
        error_result=result.get("errorResultXdr"),
        diagnostic_events=_events(result, "diagnosticEventsXdr"),
    )


# ---------------------------------------------------------------------------
# getTransaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NotFoundYet:
    pass


@dataclass(frozen=True, slots=True)
class Confirmed:
    return_value: str | None
    ledger: int | None = None


@dataclass(frozen=True, slots=True)
class ConfirmationFailed:
    status: str
    error_result: str | None = None
    diagnostic_events: tuple[str, ...] = ()


ConfirmationOutcome = NotFoundYet | Confirmed | ConfirmationFailed


def confirmation_outcome_from_result(result: dict) -> ConfirmationOutcome:
    status = result.get("status")
    if status == TxStatus.NOT_FOUND:
        return NotFoundYet()
    if status == TxStatus.SUCCESS:
        ledger = result.get("ledger")
        return_value = result.get("returnValue")
        if return_value is None and result.get("resultMetaXdr"):
            return_value = return_value_from_meta(result["resultMetaXdr"])
        return Confirmed(return_value=return_value, ledger=int(ledger) if ledger is not None else None)
    return ConfirmationFailed(
        status=str(status),
        error_result=result.get("resultXdr"),
        diagnostic_events=_events(result, "diagnosticEventsXdr"),
    )
