"""RPC boundary: the protocol the engine consumes and its JSON-RPC-over-httpx implementation."""

import asyncio
import itertools
import logging
from typing import Any, Protocol

import httpx

import ledger_submit.constants as C
from ledger_submit.envelope import account_ledger_key, account_sequence
from ledger_submit.errors import AccountNotFoundError, RpcError
from ledger_submit.models import Account, SignedTransaction, Transaction
from ledger_submit.outcomes import (
    ConfirmationOutcome,
    SendOutcome,
    SimulationOutcome,
    confirmation_outcome_from_result,
    send_outcome_from_result,
    simulation_outcome_from_result,
)

log = logging.getLogger("ledger_submit.rpc")


class RpcClient(Protocol):
    async def get_account(self, account_id: str) -> Account: ...
    async def simulate_transaction(self, tx: Transaction) -> SimulationOutcome: ...
    async def send_transaction(self, signed: SignedTransaction) -> SendOutcome: ...
    async def get_transaction(self, tx_hash: str) -> ConfirmationOutcome: ...


class JsonRpcClient:
    """JSON-RPC 2.0 client for the ledger's RPC endpoint.

    Parameters
    ----------
    url:
        Endpoint URL, e.g. "http://localhost:8000/rpc".
    rpc_timeout:
        Per-request timeout in seconds. A timeout raises asyncio.TimeoutError.
    http_client:
        Optional pre-built httpx.AsyncClient (e.g. with a MockTransport in tests). If given,
        the caller owns it and aclose() leaves it open.
    """

    def __init__(self, url: str, *, rpc_timeout: float = C.RPC_TIMEOUT, http_client: httpx.AsyncClient | None = None):
        self.url = url
        self.rpc_timeout = rpc_timeout
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def request(self, method: str, params: dict[str, Any]) -> dict:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        log.debug("-> %s id=%s", method, payload["id"])
        resp = await asyncio.wait_for(self._http.post(self.url, json=payload), timeout=self.rpc_timeout)
        resp.raise_for_status()
        body = resp.json()
        err = body.get("error")
        if err:
            raise RpcError(err.get("code"), err.get("message", ""), err.get("data"))
        return body["result"]

    async def get_account(self, account_id: str) -> Account:
        """Current sequence number of account_id, read from its ledger entry."""
        result = await self.request("getLedgerEntries", {"keys": [account_ledger_key(account_id)]})
        entries = result.get("entries") or []
        if not entries:
            raise AccountNotFoundError(None, f"account {account_id} not found")
        return Account(account_id=account_id, sequence=account_sequence(entries[0]["xdr"]))

    async def simulate_transaction(self, tx: Transaction) -> SimulationOutcome:
        result = await self.request("simulateTransaction", {"transaction": tx.to_envelope()})
        return simulation_outcome_from_result(result)

    async def send_transaction(self, signed: SignedTransaction) -> SendOutcome:
        result = await self.request("sendTransaction", {"transaction": signed.envelope})
        return send_outcome_from_result(result)

    async def get_transaction(self, tx_hash: str) -> ConfirmationOutcome:
        result = await self.request("getTransaction", {"hash": tx_hash})
        return confirmation_outcome_from_result(result)
