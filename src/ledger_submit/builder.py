"""Transaction construction and footprint assembly. No I/O happens here."""

from collections.abc import Sequence
from dataclasses import replace

from ledger_submit.constants import RESTORE_FEE_MARGIN, TIMEOUT_INFINITE
from ledger_submit.envelope import RESTORE_FOOTPRINT_OP, canonical_operation, with_auth
from ledger_submit.models import (
    Account,
    BuilderOptions,
    LedgerKey,
    Operation,
    ResourceData,
    TimeBounds,
    Transaction,
)
from ledger_submit.outcomes import RestoreRequired, SimulationSuccess


def build_transaction(
    account: Account,
    options: BuilderOptions,
    operations: Sequence[Operation],
    *,
    time_bounds: TimeBounds | None = None,
    resource_data: ResourceData | None = None,
    fee: int | None = None,
) -> Transaction:
    """Build an unsigned transaction that consumes account.next_sequence().

    The account itself is not touched; callers that go on to submit the transaction
    are responsible for moving to account.incremented() once it is confirmed.
    Operations are re-encoded to canonical XDR, so malformed ones fail here with
    EnvelopeError.
    """
    if not operations:
        raise ValueError("a transaction needs at least one operation")
    return Transaction(
        source=account.account_id,
        sequence=account.next_sequence(),
        fee=options.fee if fee is None else fee,
        network_passphrase=options.network_passphrase,
        operations=tuple(canonical_operation(op) for op in operations),
        time_bounds=time_bounds if time_bounds is not None else options.time_bounds,
        resource_data=resource_data,
    )


def build_classic_transaction(account: Account, options: BuilderOptions, operation: Operation) -> Transaction:
    return build_transaction(account, options, [operation], time_bounds=TimeBounds(0, TIMEOUT_INFINITE))


def build_restore_transaction(account: Account, options: BuilderOptions, restore: RestoreRequired) -> Transaction:
    """Restoration pays min_resource_fee + RESTORE_FEE_MARGIN and never times out."""
    return build_transaction(
        account,
        options,
        [RESTORE_FOOTPRINT_OP],
        fee=restore.min_resource_fee + RESTORE_FEE_MARGIN,
        time_bounds=TimeBounds(0, 0),
        resource_data=restore.restore_resource_data,
    )


def assemble_transaction(
    tx: Transaction,
    simulation: SimulationSuccess,
    extra_footprint: Sequence[LedgerKey] | None = None,
) -> Transaction:
    """Fold simulated resource usage into tx.

    The assembled fee is the base fee plus the simulated minimum resource fee, and the
    resource data is replaced by the simulated one. extra_footprint keys are appended to
    the read-write footprint in order; duplicates are not removed. Simulated
    authorization entries are attached to a host function call that has none.
    """
    if not isinstance(simulation, SimulationSuccess):
        raise TypeError(f"can only assemble from a successful simulation, got {type(simulation).__name__}")

    resource_data = simulation.resource_data
    if extra_footprint:
        resource_data = resource_data.with_extra_read_write(extra_footprint)

    operations = tx.operations
    if simulation.auth and len(operations) == 1:
        operations = (with_auth(operations[0], simulation.auth),)

    return replace(
        tx,
        fee=tx.fee + simulation.min_resource_fee,
        operations=operations,
        resource_data=resource_data,
    )
