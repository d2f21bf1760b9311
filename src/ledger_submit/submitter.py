"""Send a signed transaction and poll it to finality.

    send ──TRY_AGAIN_LATER (bounded window)──> send ... ──PENDING──> poll
    poll ──NOT_FOUND (unbounded)──> poll ... ──SUCCESS──> decode
                                           └─FAILED───> ConfirmationError

The only bounded retry is the send window. Polling has no limit unless the caller
opts into confirm_timeout.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import ledger_submit.constants as C
from ledger_submit.errors import ConfirmationError, ConfirmationTimeout, DecodeError, SendError
from ledger_submit.models import SignedTransaction
from ledger_submit.outcomes import (
    Confirmed,
    ConfirmationFailed,
    NotFoundYet,
    SendPending,
    SendRejected,
    SendTransient,
)
from ledger_submit.rpc import RpcClient

log = logging.getLogger("ledger_submit.submitter")

T = TypeVar("T")

Parser = Callable[[str | None], T]
Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


def ignore_result(raw: str | None) -> None:
    return None


def decode_result(parser: "Parser[T]", raw: str | None) -> T:
    """Apply parser to the raw return value once. Parser failures become DecodeError."""
    try:
        return parser(raw)
    except Exception as e:
        raise DecodeError(f"failed to decode transaction result: {e}") from e


class Submitter:
    def __init__(
        self,
        rpc: RpcClient,
        *,
        send_retry_interval: float = C.SEND_RETRY_INTERVAL,
        send_retry_window: float = C.SEND_RETRY_WINDOW,
        poll_interval: float = C.POLL_INTERVAL,
        confirm_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.rpc = rpc
        self.send_retry_interval = send_retry_interval
        self.send_retry_window = send_retry_window
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout
        self._sleep = sleep
        self._clock = clock

    async def submit(self, signed: SignedTransaction, parser: "Parser[T]") -> tuple[T, str]:
        """Send, wait for finality and decode. Returns (decoded value, tx hash)."""
        tx_hash = await self.send(signed)
        confirmed = await self.wait_for_confirmation(tx_hash)
        log.info("Tx Submitted! %s", tx_hash)
        return decode_result(parser, confirmed.return_value), tx_hash

    async def send(self, signed: SignedTransaction) -> str:
        outcome = await self.rpc.send_transaction(signed)
        start = self._clock()
        while isinstance(outcome, SendTransient) and self._clock() - start < self.send_retry_window:
            log.info("%s: TRY_AGAIN_LATER, resending in %.1fs", signed.hash, self.send_retry_interval)
            await self._sleep(self.send_retry_interval)
            outcome = await self.rpc.send_transaction(signed)

        if isinstance(outcome, SendPending):
            log.debug("%s pending", outcome.hash)
            return outcome.hash or signed.hash

        if isinstance(outcome, SendRejected):
            err = SendError(
                outcome.status,
                outcome.hash or signed.hash,
                envelope=signed.envelope,
                error_result=outcome.error_result,
                diagnostic_events=outcome.diagnostic_events,
            )
        else:
            err = SendError(C.SendStatus.TRY_AGAIN_LATER, outcome.hash or signed.hash, envelope=signed.envelope)

        log.error("Transaction failed to send: %s", err.tx_hash)
        log.error("Transaction failed: status=%s error_result=%s", err.status, err.error_result)
        log.error("Envelope: %s", signed.envelope)
        for event in err.diagnostic_events:
            log.error("Event: %s", event)
        raise err

    async def wait_for_confirmation(self, tx_hash: str) -> Confirmed:
        if self.confirm_timeout is None:
            return await self._poll(tx_hash)
        try:
            async with asyncio.timeout(self.confirm_timeout):
                return await self._poll(tx_hash)
        except TimeoutError as e:
            log.error("Gave up waiting for %s after %.1fs", tx_hash, self.confirm_timeout)
            raise ConfirmationTimeout(tx_hash, self.confirm_timeout) from e

    async def _poll(self, tx_hash: str) -> Confirmed:
        outcome = await self.rpc.get_transaction(tx_hash)
        polls = 1
        while isinstance(outcome, NotFoundYet):
            await self._sleep(self.poll_interval)
            outcome = await self.rpc.get_transaction(tx_hash)
            polls += 1

        if isinstance(outcome, ConfirmationFailed):
            log.error("Transaction failed: %s status=%s after %d polls", tx_hash, outcome.status, polls)
            for event in outcome.diagnostic_events:
                log.error("Event: %s", event)
            raise ConfirmationError(
                tx_hash,
                outcome.status,
                error_result=outcome.error_result,
                diagnostic_events=outcome.diagnostic_events,
            )

        log.debug("%s confirmed after %d polls", tx_hash, polls)
        return outcome
