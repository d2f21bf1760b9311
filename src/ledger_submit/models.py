"""Value types that flow through the submission pipeline.

Accounts and transactions are immutable; every stage hands back a new value instead of
mutating the one it was given. TransactionParams is the single caller-owned, mutable holder.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from stellar_sdk import DecoratedSignature
from stellar_sdk import xdr as stellar_xdr

if TYPE_CHECKING:
    from ledger_submit.signer import Signer

LedgerKey = str  # base64 xdr.LedgerKey
Operation = str  # base64 xdr.Operation


@dataclass(frozen=True, slots=True)
class Account:
    account_id: str
    sequence: int

    def next_sequence(self) -> int:
        """Sequence number the next transaction built from this account will use."""
        return self.sequence + 1

    def incremented(self) -> "Account":
        """Account after one more sequence number has been consumed."""
        return replace(self, sequence=self.sequence + 1)


@dataclass(frozen=True, slots=True)
class TimeBounds:
    min_time: int
    max_time: int  # 0 = unbounded


@dataclass(frozen=True, slots=True)
class BuilderOptions:
    fee: int
    network_passphrase: str
    time_bounds: TimeBounds | None = None


@dataclass(slots=True)
class TransactionParams:
    """Caller-owned submission context.

    The engine writes the updated account back here after each confirmed submission
    (restorations included), so one instance tracks the account across calls. Do not
    share an instance between concurrent submissions.
    """

    account: Account
    signer: "Signer"
    builder_options: BuilderOptions


@dataclass(frozen=True, slots=True)
class Footprint:
    read_only: tuple[LedgerKey, ...] = ()
    read_write: tuple[LedgerKey, ...] = ()


@dataclass(frozen=True, slots=True)
class ResourceData:
    """SorobanTransactionData (resources, footprint, resource fee) as canonical base64 XDR."""

    xdr: str

    @classmethod
    def from_base64(cls, text: str) -> "ResourceData":
        from ledger_submit.envelope import soroban_data_from_base64

        return cls.from_xdr_object(soroban_data_from_base64(text))

    @classmethod
    def from_xdr_object(cls, data: stellar_xdr.SorobanTransactionData) -> "ResourceData":
        return cls(xdr=data.to_xdr())

    def to_xdr_object(self) -> stellar_xdr.SorobanTransactionData:
        return stellar_xdr.SorobanTransactionData.from_xdr(self.xdr)

    def to_base64(self) -> str:
        return self.xdr

    @property
    def footprint(self) -> Footprint:
        fp = self.to_xdr_object().resources.footprint
        return Footprint(
            read_only=tuple(k.to_xdr() for k in fp.read_only),
            read_write=tuple(k.to_xdr() for k in fp.read_write),
        )

    @property
    def resource_fee(self) -> int:
        return self.to_xdr_object().resource_fee.int64

    def with_extra_read_write(self, keys: Sequence[LedgerKey]) -> "ResourceData":
        from ledger_submit.envelope import extend_read_write

        return ResourceData.from_xdr_object(extend_read_write(self.to_xdr_object(), keys))


@dataclass(frozen=True, slots=True)
class Transaction:
    """Unsigned transaction. operations hold canonical base64 XDR; fee is the total fee."""

    source: str
    sequence: int
    fee: int
    network_passphrase: str
    operations: tuple[Operation, ...]
    time_bounds: TimeBounds | None = None
    resource_data: ResourceData | None = None

    def to_envelope(self) -> str:
        """Unsigned TransactionEnvelope, base64 XDR."""
        from ledger_submit.envelope import encode_envelope

        return encode_envelope(self)

    def hash(self) -> str:
        from ledger_submit.envelope import transaction_hash

        return transaction_hash(self)


@dataclass(frozen=True, slots=True)
class SignedTransaction:
    envelope: str
    transaction: Transaction
    signatures: tuple[DecoratedSignature, ...]
    hash: str

    @classmethod
    def from_envelope(cls, envelope: str, network_passphrase: str) -> "SignedTransaction":
        """Decode a signed envelope. The hash is taken from the envelope as received."""
        from ledger_submit.envelope import decode_envelope, from_transaction_envelope

        te = decode_envelope(envelope, network_passphrase)
        return cls(
            envelope=envelope,
            transaction=from_transaction_envelope(te),
            signatures=tuple(te.signatures),
            hash=te.hash_hex(),
        )


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    value: object
    tx_hash: str
    account: Account
