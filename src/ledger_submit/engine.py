"""Submission engine.

    simulate ─┬─ SimulationFailed ──> SimulationError
              ├─ RestoreRequired ──> restore ──> simulate (once more)
              └─ SimulationSuccess ──> assemble ──> sign ──> submit ──> decode

Classic operations skip simulation and assembly: build ──> sign ──> submit.

The engine assumes it is the only writer for the account while a call is in flight.
Callers must serialize submissions per account; nothing here takes a lock.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx

from ledger_submit.builder import (
    assemble_transaction,
    build_classic_transaction,
    build_restore_transaction,
    build_transaction,
)
from ledger_submit.envelope import EnvelopeError
from ledger_submit.errors import (
    ClassicSubmissionError,
    ConfirmationError,
    RestorationError,
    SendError,
    SigningError,
    SimulationError,
)
from ledger_submit.models import (
    Account,
    LedgerKey,
    Operation,
    ResourceData,
    SignedTransaction,
    SubmissionResult,
    Transaction,
    TransactionParams,
)
from ledger_submit.outcomes import (
    RestoreRequired,
    SimulationFailed,
    SimulationOutcome,
    SimulationSuccess,
)
from ledger_submit.rpc import JsonRpcClient, RpcClient
from ledger_submit.submitter import Parser, Submitter, decode_result, ignore_result

if TYPE_CHECKING:
    from ledger_submit.config import Settings

log = logging.getLogger("ledger_submit.engine")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Simulation:
    account: Account
    transaction: Transaction
    outcome: SimulationOutcome


class SubmissionEngine:
    def __init__(self, rpc: RpcClient, submitter: Submitter | None = None) -> None:
        self.rpc = rpc
        self.submitter = submitter or Submitter(rpc)

    @classmethod
    def from_settings(cls, settings: "Settings", *, http_client: httpx.AsyncClient | None = None) -> "SubmissionEngine":
        rpc = JsonRpcClient(settings.rpc_url, rpc_timeout=settings.rpc_timeout, http_client=http_client)
        submitter = Submitter(
            rpc,
            send_retry_interval=settings.send_retry_interval,
            send_retry_window=settings.send_retry_window,
            poll_interval=settings.poll_interval,
            confirm_timeout=settings.confirm_timeout,
        )
        return cls(rpc, submitter)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    async def simulate(
        self,
        operation: Operation,
        params: TransactionParams,
        *,
        account: Account | None = None,
        resource_data: ResourceData | None = None,
    ) -> Simulation:
        """Build a transaction around operation and simulate it.

        The account is fetched from the ledger unless one is passed in explicitly
        (the post-restoration path). Caller state is left untouched.
        """
        if account is None:
            account = await self.rpc.get_account(params.account.account_id)
        tx = build_transaction(account, params.builder_options, [operation], resource_data=resource_data)
        outcome = await self.rpc.simulate_transaction(tx)
        log.debug("simulated seq=%s -> %s", tx.sequence, type(outcome).__name__)
        return Simulation(account=account, transaction=tx, outcome=outcome)

    async def simulate_operation(self, operation: Operation, params: TransactionParams) -> SimulationOutcome:
        """Simulate against params.account as-is, without fetching it first."""
        tx = build_transaction(params.account, params.builder_options, [operation])
        return await self.rpc.simulate_transaction(tx)

    async def simulate_result(self, operation: Operation, parser: "Parser[T]", params: TransactionParams) -> T:
        """Read-only call: simulate and parse the return value without submitting anything."""
        tx = build_transaction(params.account, params.builder_options, [operation])
        outcome = await self.rpc.simulate_transaction(tx)
        if isinstance(outcome, (SimulationSuccess, RestoreRequired)) and outcome.return_value is not None:
            return decode_result(parser, outcome.return_value)
        if isinstance(outcome, SimulationFailed):
            raise self._simulation_failed(tx, outcome)
        raise SimulationError("Invalid simulation response", envelope=tx.to_envelope())

    def _simulation_failed(self, tx: Transaction, outcome: SimulationFailed) -> SimulationError:
        envelope = tx.to_envelope()
        log.error("Simulation failed: %s", outcome.message)
        log.error("Envelope: %s", envelope)
        for event in outcome.diagnostic_events:
            log.error("Event: %s", event)
        return SimulationError(outcome.message, diagnostic_events=outcome.diagnostic_events, envelope=envelope)

    # ------------------------------------------------------------------
    # Restoration
    # ------------------------------------------------------------------

    async def restore(self, restore: RestoreRequired, params: TransactionParams) -> Account:
        """Submit a restore-footprint transaction and return the account after it.

        The returned account has consumed the restoration's sequence number and is also
        written back to params.account. Any failure aborts with RestorationError; a
        sequence number that was already consumed is not given back.
        """
        log.info("Restoring...")
        try:
            account = await self.rpc.get_account(params.account.account_id)
            tx = build_restore_transaction(account, params.builder_options, restore)
            signed = await self._sign(tx, params)
            log.info("Restore Hash: %s (fee=%d)", signed.hash, tx.fee)
            await self.submitter.submit(signed, ignore_result)
        except Exception as e:
            log.error("Restoration failed: %s", e)
            raise RestorationError(f"restoration failed: {e}") from e

        restored = account.incremented()
        params.account = restored
        log.info("Restored! %s sequence %d -> %d", restored.account_id, account.sequence, restored.sequence)
        return restored

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def invoke_contract_operation(
        self,
        operation: Operation,
        parser: "Parser[T]",
        params: TransactionParams,
        *,
        resource_data: ResourceData | None = None,
        extra_footprint: Sequence[LedgerKey] | None = None,
    ) -> SubmissionResult:
        """Run the full pipeline for a resource-metered operation.

        Args:
            operation: base64 operation to wrap.
            parser: Applied once to the confirmed return value.
            params: Account, signer and builder options. params.account is updated as
                sequence numbers are consumed.
            resource_data: Optional resource data to attach before simulating.
            extra_footprint: Ledger keys appended to the simulated read-write footprint.

        Returns:
            SubmissionResult with the decoded value, the transaction hash and the account
            after every sequence number this call consumed.

        Raises:
            RestorationError: The restoration or the simulation right after it failed.
                params.account already reflects the consumed restore sequence number.
        """
        sim = await self.simulate(operation, params, resource_data=resource_data)

        if isinstance(sim.outcome, RestoreRequired):
            restored = await self.restore(sim.outcome, params)
            try:
                sim = await self.simulate(operation, params, account=restored, resource_data=resource_data)
            except Exception as e:
                log.error("Re-simulation after restore failed: %s", e)
                raise RestorationError(f"re-simulation after restore failed: {e}") from e
            if isinstance(sim.outcome, RestoreRequired):
                raise RestorationError("simulation still requires restoration after a confirmed restore")

        if isinstance(sim.outcome, SimulationFailed):
            raise self._simulation_failed(sim.transaction, sim.outcome)

        assembled = assemble_transaction(sim.transaction, sim.outcome, extra_footprint)
        log.info("Transaction Hash: %s", assembled.hash())
        signed = await self._sign(assembled, params)

        value, tx_hash = await self.submitter.submit(signed, parser)
        account = sim.account.incremented()
        params.account = account
        return SubmissionResult(value=value, tx_hash=tx_hash, account=account)

    async def invoke_classic_operation(self, operation: Operation, params: TransactionParams) -> SubmissionResult:
        """Submit an operation that needs no simulation. The transaction never times out."""
        account = await self.rpc.get_account(params.account.account_id)
        tx = build_classic_transaction(account, params.builder_options, operation)
        signed = await self._sign(tx, params)
        log.info("Transaction Hash: %s", signed.hash)
        try:
            _, tx_hash = await self.submitter.submit(signed, ignore_result)
        except (SendError, ConfirmationError) as e:
            log.error("Classic submission failed: %s", e)
            raise ClassicSubmissionError("failed to submit classic op TX") from e

        account = account.incremented()
        params.account = account
        return SubmissionResult(value=None, tx_hash=tx_hash, account=account)

    async def _sign(self, tx: Transaction, params: TransactionParams) -> SignedTransaction:
        try:
            envelope = await params.signer.sign(tx.to_envelope())
        except Exception as e:
            raise SigningError(f"signer failed for {tx.hash()}: {e}") from e
        try:
            signed = SignedTransaction.from_envelope(envelope, tx.network_passphrase)
        except (EnvelopeError, TypeError) as e:
            raise SigningError(f"signer returned an undecodable envelope for {tx.hash()}") from e
        if signed.hash != tx.hash():
            raise SigningError(f"signer altered transaction {tx.hash()} (signed hash {signed.hash})")
        return signed
