"""XDR boundary: Transaction values <-> stellar-sdk transaction envelopes.

Operations, ledger keys and resource data travel as base64 XDR. Whatever comes in is
re-encoded once through the XDR types, so two encodings of the same value compare equal.
Hashes always come from the SDK envelope, never from our own fields.
"""

from collections.abc import Callable, Sequence
from typing import TypeVar

from stellar_sdk import Keypair, SorobanDataBuilder, TransactionEnvelope
from stellar_sdk import TimeBounds as XdrTimeBounds
from stellar_sdk import Transaction as XdrTransaction
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import InvokeHostFunction, RestoreFootprint
from stellar_sdk.operation.operation import Operation as XdrOperation
from stellar_sdk.preconditions import Preconditions

from ledger_submit.models import LedgerKey, Operation, ResourceData, TimeBounds, Transaction

X = TypeVar("X")

RESTORE_FOOTPRINT_OP: Operation = RestoreFootprint().to_xdr_object().to_xdr()


class EnvelopeError(ValueError):
    """Raised when base64 text cannot be decoded as the expected XDR type."""


def _decode(kind: str, parse: Callable[[str], X], text: str) -> X:
    try:
        return parse(text)
    except Exception as e:
        raise EnvelopeError(f"invalid {kind} XDR: {str(text)[:32]!r}") from e


# ---------------------------------------------------------------------------
# Operations, ledger keys, resource data
# ---------------------------------------------------------------------------


def operation_from_base64(text: Operation) -> XdrOperation:
    return XdrOperation.from_xdr_object(_decode("operation", stellar_xdr.Operation.from_xdr, text))


def canonical_operation(text: Operation) -> Operation:
    return operation_from_base64(text).to_xdr_object().to_xdr()


def ledger_key_from_base64(text: LedgerKey) -> stellar_xdr.LedgerKey:
    return _decode("ledger key", stellar_xdr.LedgerKey.from_xdr, text)


def soroban_data_from_base64(text: str) -> stellar_xdr.SorobanTransactionData:
    return _decode("soroban transaction data", lambda t: SorobanDataBuilder.from_xdr(t).build(), text)


def extend_read_write(data: stellar_xdr.SorobanTransactionData, keys: Sequence[LedgerKey]) -> stellar_xdr.SorobanTransactionData:
    # Order-preserving append. Duplicates are passed through untouched.
    read_write = [*data.resources.footprint.read_write, *(ledger_key_from_base64(k) for k in keys)]
    return SorobanDataBuilder.from_xdr(data).set_read_write(read_write).build()


def with_auth(operation: Operation, auth: Sequence[str]) -> Operation:
    """Attach simulated authorization entries to a host function call that carries none."""
    op = operation_from_base64(operation)
    if not auth or not isinstance(op, InvokeHostFunction) or op.auth:
        return operation
    op.auth = [_decode("authorization entry", stellar_xdr.SorobanAuthorizationEntry.from_xdr, a) for a in auth]
    return op.to_xdr_object().to_xdr()


# ---------------------------------------------------------------------------
# Accounts and results
# ---------------------------------------------------------------------------


def account_ledger_key(account_id: str) -> LedgerKey:
    key = stellar_xdr.LedgerKey(
        stellar_xdr.LedgerEntryType.ACCOUNT,
        account=stellar_xdr.LedgerKeyAccount(account_id=Keypair.from_public_key(account_id).xdr_account_id()),
    )
    return key.to_xdr()


def account_sequence(entry_xdr: str) -> int:
    """Sequence number from a getLedgerEntries account entry."""
    data = _decode("ledger entry data", stellar_xdr.LedgerEntryData.from_xdr, entry_xdr)
    if data.account is None:
        raise EnvelopeError(f"ledger entry is not an account: {data.type}")
    return data.account.seq_num.sequence_number.int64


def return_value_from_meta(meta_xdr: str) -> str | None:
    """Contract return value recorded in a transaction's result meta, if any."""
    meta = _decode("transaction meta", stellar_xdr.TransactionMeta.from_xdr, meta_xdr)
    body = meta.v4 or meta.v3
    if body is None or body.soroban_meta is None or body.soroban_meta.return_value is None:
        return None
    return body.soroban_meta.return_value.to_xdr()


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def to_transaction_envelope(tx: Transaction) -> TransactionEnvelope:
    """Unsigned SDK envelope for tx. The fee is written as-is, nothing is added to it."""
    preconditions = None
    if tx.time_bounds is not None:
        preconditions = Preconditions(time_bounds=XdrTimeBounds(tx.time_bounds.min_time, tx.time_bounds.max_time))
    xdr_tx = XdrTransaction(
        source=tx.source,
        sequence=tx.sequence,
        fee=tx.fee,
        operations=[operation_from_base64(op) for op in tx.operations],
        preconditions=preconditions,
        soroban_data=tx.resource_data.to_xdr_object() if tx.resource_data is not None else None,
    )
    return TransactionEnvelope(xdr_tx, network_passphrase=tx.network_passphrase)


def from_transaction_envelope(te: TransactionEnvelope) -> Transaction:
    xdr_tx = te.transaction
    time_bounds = None
    if xdr_tx.preconditions is not None and xdr_tx.preconditions.time_bounds is not None:
        tb = xdr_tx.preconditions.time_bounds
        time_bounds = TimeBounds(min_time=tb.min_time, max_time=tb.max_time)
    return Transaction(
        source=xdr_tx.source.universal_account_id,
        sequence=xdr_tx.sequence,
        fee=xdr_tx.fee,
        network_passphrase=te.network_passphrase,
        operations=tuple(op.to_xdr_object().to_xdr() for op in xdr_tx.operations),
        time_bounds=time_bounds,
        resource_data=ResourceData.from_xdr_object(xdr_tx.soroban_data) if xdr_tx.soroban_data else None,
    )


def encode_envelope(tx: Transaction) -> str:
    return to_transaction_envelope(tx).to_xdr()


def decode_envelope(text: str, network_passphrase: str) -> TransactionEnvelope:
    return _decode("transaction envelope", lambda t: TransactionEnvelope.from_xdr(t, network_passphrase), text)


def transaction_hash(tx: Transaction) -> str:
    return to_transaction_envelope(tx).hash_hex()
