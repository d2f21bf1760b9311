import hashlib
import string
from collections import deque

import pytest
from stellar_sdk import Address, Asset, InvokeHostFunction, Keypair, Network, Payment, SorobanDataBuilder, StrKey
from stellar_sdk import xdr as stellar_xdr

from ledger_submit.envelope import account_ledger_key, decode_envelope
from ledger_submit.errors import AccountNotFoundError
from ledger_submit.models import (
    Account,
    BuilderOptions,
    ResourceData,
    TransactionParams,
)
from ledger_submit.outcomes import Confirmed, SendPending, SimulationSuccess
from ledger_submit.submitter import Submitter

PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE
SOURCE = Keypair.from_raw_ed25519_seed(b"\x01" * 32)
ACCOUNT_ID = SOURCE.public_key
CONTRACT_ID = StrKey.encode_contract(b"\x02" * 32)


def _contract_call(function: str) -> stellar_xdr.InvokeContractArgs:
    return stellar_xdr.InvokeContractArgs(
        contract_address=Address(CONTRACT_ID).to_xdr_sc_address(),
        function_name=stellar_xdr.SCSymbol(function.encode()),
        args=[],
    )


def invoke_op(function: str) -> str:
    host_function = stellar_xdr.HostFunction(
        stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_INVOKE_CONTRACT,
        invoke_contract=_contract_call(function),
    )
    return InvokeHostFunction(host_function=host_function).to_xdr_object().to_xdr()


def auth_entry(function: str) -> str:
    """Source-account authorization for a call to function, as simulation returns it."""
    entry = stellar_xdr.SorobanAuthorizationEntry(
        credentials=stellar_xdr.SorobanCredentials(stellar_xdr.SorobanCredentialsType.SOROBAN_CREDENTIALS_SOURCE_ACCOUNT),
        root_invocation=stellar_xdr.SorobanAuthorizedInvocation(
            function=stellar_xdr.SorobanAuthorizedFunction(
                stellar_xdr.SorobanAuthorizedFunctionType.SOROBAN_AUTHORIZED_FUNCTION_TYPE_CONTRACT_FN,
                contract_fn=_contract_call(function),
            ),
            sub_invocations=[],
        ),
    )
    return entry.to_xdr()


OP = invoke_op("deposit")
CLASSIC_OP = (
    Payment(destination=Keypair.from_raw_ed25519_seed(b"\x03" * 32).public_key, asset=Asset.native(), amount="10")
    .to_xdr_object()
    .to_xdr()
)


def result_meta(return_value: stellar_xdr.SCVal) -> str:
    """TransactionMeta v3 whose soroban meta carries return_value."""
    meta = stellar_xdr.TransactionMeta(
        v=3,
        v3=stellar_xdr.TransactionMetaV3(
            ext=stellar_xdr.ExtensionPoint(0),
            tx_changes_before=stellar_xdr.LedgerEntryChanges([]),
            operations=[],
            tx_changes_after=stellar_xdr.LedgerEntryChanges([]),
            soroban_meta=stellar_xdr.SorobanTransactionMeta(
                ext=stellar_xdr.SorobanTransactionMetaExt(0),
                events=[],
                return_value=return_value,
                diagnostic_events=[],
            ),
        ),
    )
    return meta.to_xdr()


B64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"


def non_canonical(text: str) -> str:
    """Same bytes, different text: flip an unused bit in the last base64 digit."""
    body = text.rstrip("=")
    assert len(body) < len(text), "needs padding to carry unused bits"
    last = B64_ALPHABET[B64_ALPHABET.index(body[-1]) ^ 1]
    return body[:-1] + last + text[len(body):]


def key(name: str) -> str:
    """Account ledger key, deterministic per name."""
    return account_ledger_key(Keypair.from_raw_ed25519_seed(hashlib.sha256(name.encode()).digest()).public_key)


def resource_data(*, read_only=(), read_write=(), fee=0) -> ResourceData:
    data = (
        SorobanDataBuilder()
        .set_read_only([stellar_xdr.LedgerKey.from_xdr(k) for k in read_only])
        .set_read_write([stellar_xdr.LedgerKey.from_xdr(k) for k in read_write])
        .set_resources(1_000, 200, 100)
        .set_resource_fee(fee)
        .build()
    )
    return ResourceData.from_xdr_object(data)


def success(return_value: str | None = None, *, rd: ResourceData | None = None, min_fee: int = 500) -> SimulationSuccess:
    return SimulationSuccess(
        return_value=return_value,
        resource_data=rd or resource_data(read_only=[key("contract")], read_write=[key("balance")], fee=min_fee),
        min_resource_fee=min_fee,
    )


class FakeClock:
    """Deterministic clock; sleeping advances it instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeRpc:
    """Scripted RpcClient.

    Outcome queues are consumed in call order across all transactions. When a queue is
    empty the *_default outcome is used (None -> pending / confirmed with no value).
    Confirming a transaction advances the stored account sequence, like the ledger would.
    """

    def __init__(self, sequence: int = 10) -> None:
        self.accounts = {ACCOUNT_ID: sequence}
        self.simulations = deque()
        self.sends = deque()
        self.confirmations = deque()
        self.confirm_default = None
        self.simulated = []
        self.sent = []
        self.polled = []
        self.account_calls = 0
        self._by_hash = {}

    async def get_account(self, account_id: str) -> Account:
        self.account_calls += 1
        if account_id not in self.accounts:
            raise AccountNotFoundError(None, f"account {account_id} not found")
        return Account(account_id=account_id, sequence=self.accounts[account_id])

    async def simulate_transaction(self, tx):
        self.simulated.append(tx)
        outcome = self.simulations.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def send_transaction(self, signed):
        self.sent.append(signed)
        self._by_hash[signed.hash] = signed.transaction
        if self.sends:
            outcome = self.sends.popleft()
        else:
            outcome = SendPending(hash=signed.hash)
        return outcome

    async def get_transaction(self, tx_hash: str):
        self.polled.append(tx_hash)
        if self.confirmations:
            outcome = self.confirmations.popleft()
        elif self.confirm_default is not None:
            outcome = self.confirm_default
        else:
            outcome = Confirmed(return_value=None)
        if isinstance(outcome, Confirmed) and tx_hash in self._by_hash:
            tx = self._by_hash[tx_hash]
            self.accounts[tx.source] = tx.sequence
        return outcome


class FakeSigner:
    """Signs with SOURCE and records every envelope it was handed."""

    def __init__(self, passphrase: str = PASSPHRASE) -> None:
        self.passphrase = passphrase
        self.calls = []

    async def sign(self, envelope: str) -> str:
        self.calls.append(envelope)
        te = decode_envelope(envelope, self.passphrase)
        te.sign(SOURCE)
        return te.to_xdr()


class FailingSigner:
    def __init__(self) -> None:
        self.calls = 0

    async def sign(self, envelope: str) -> str:
        self.calls += 1
        raise RuntimeError("device disconnected")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rpc():
    return FakeRpc()


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def params(signer):
    return TransactionParams(
        account=Account(account_id=ACCOUNT_ID, sequence=10),
        signer=signer,
        builder_options=BuilderOptions(fee=100, network_passphrase=PASSPHRASE),
    )


@pytest.fixture
def submitter(rpc, clock):
    return Submitter(rpc, sleep=clock.sleep, clock=clock)
