import base64
from dataclasses import replace

import pytest
from stellar_sdk import RestoreFootprint, TransactionEnvelope, scval
from stellar_sdk import xdr as stellar_xdr

from conftest import ACCOUNT_ID, OP, PASSPHRASE, SOURCE, key, non_canonical, resource_data, result_meta
from ledger_submit.envelope import (
    RESTORE_FOOTPRINT_OP,
    EnvelopeError,
    account_sequence,
    canonical_operation,
    decode_envelope,
    from_transaction_envelope,
    operation_from_base64,
    return_value_from_meta,
)
from ledger_submit.models import ResourceData, TimeBounds, Transaction


@pytest.fixture
def tx():
    return Transaction(
        source=ACCOUNT_ID,
        sequence=42,
        fee=1_100,
        network_passphrase=PASSPHRASE,
        operations=(OP,),
        time_bounds=TimeBounds(0, 1_700_000_000),
        resource_data=resource_data(read_only=[key("code")], read_write=[key("a"), key("a")], fee=1_000),
    )


def test_sdk_reads_our_envelope(tx):
    te = TransactionEnvelope.from_xdr(tx.to_envelope(), PASSPHRASE)

    assert te.hash_hex() == tx.hash()
    assert te.transaction.fee == 1_100
    assert te.transaction.sequence == 42
    assert te.transaction.soroban_data.resource_fee.int64 == 1_000
    assert te.signatures == []


def test_envelope_decodes_to_the_same_transaction(tx):
    assert from_transaction_envelope(decode_envelope(tx.to_envelope(), PASSPHRASE)) == tx


def test_hash_ignores_signatures_but_not_fee(tx):
    te = decode_envelope(tx.to_envelope(), PASSPHRASE)
    te.sign(SOURCE)
    signed = decode_envelope(te.to_xdr(), PASSPHRASE)

    assert len(signed.signatures) == 1
    assert signed.hash_hex() == tx.hash()
    assert replace(tx, fee=tx.fee + 1).hash() != tx.hash()
    assert len(tx.hash()) == 64


def test_hash_depends_on_network(tx):
    assert replace(tx, network_passphrase="Other Network").hash() != tx.hash()


def test_restore_footprint_op_decodes_as_restore():
    assert isinstance(operation_from_base64(RESTORE_FOOTPRINT_OP), RestoreFootprint)


def test_resource_data_base64_round_trip():
    rd = resource_data(read_write=[key("x")], fee=7)
    assert ResourceData.from_base64(rd.to_base64()) == rd
    assert rd.resource_fee == 7
    assert rd.footprint.read_write == (key("x"),)


def test_non_canonical_operation_is_normalized():
    assert non_canonical(OP) != OP
    assert canonical_operation(non_canonical(OP)) == OP


def test_extra_keys_are_stored_canonically():
    rd = resource_data().with_extra_read_write([non_canonical(key("a"))])
    assert rd.footprint.read_write == (key("a"),)


def test_truncated_envelope_is_rejected(tx):
    raw = base64.b64decode(tx.to_envelope())
    with pytest.raises(EnvelopeError, match="transaction envelope"):
        decode_envelope(base64.b64encode(raw[:-3]).decode(), PASSPHRASE)


def test_trailing_bytes_are_rejected(tx):
    raw = base64.b64decode(tx.to_envelope()) + b"\x00\x00\x00\x00"
    with pytest.raises(EnvelopeError):
        decode_envelope(base64.b64encode(raw).decode(), PASSPHRASE)


def test_operation_must_be_xdr(tx):
    with pytest.raises(EnvelopeError):
        replace(tx, operations=("not base64!",)).to_envelope()


def test_account_sequence_rejects_other_entries():
    ttl = stellar_xdr.LedgerEntryData(
        stellar_xdr.LedgerEntryType.TTL,
        ttl=stellar_xdr.TTLEntry(key_hash=stellar_xdr.Hash(b"\x00" * 32), live_until_ledger_seq=stellar_xdr.Uint32(9)),
    )
    with pytest.raises(EnvelopeError, match="not an account"):
        account_sequence(ttl.to_xdr())


def test_return_value_from_meta():
    value = scval.to_uint32(7)
    assert return_value_from_meta(result_meta(value)) == value.to_xdr()
