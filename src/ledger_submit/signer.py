"""Signing capability.

The engine only ever sees the Signer protocol: unsigned envelope in, signed envelope out.
KeypairSigner is the in-process implementation for a stellar-sdk Keypair; hardware
devices or remote custody plug in by implementing the same single method.
"""

import logging
from typing import Protocol

from stellar_sdk import Keypair

from ledger_submit.envelope import decode_envelope

log = logging.getLogger("ledger_submit.signer")


class Signer(Protocol):
    async def sign(self, envelope: str) -> str: ...


def sign_with_keypair(envelope: str, network_passphrase: str, keypair: Keypair) -> str:
    """Append keypair's signature over the transaction hash to envelope.

    Existing signatures are kept, so several keypairs can sign the same envelope in turn.
    """
    te = decode_envelope(envelope, network_passphrase)
    te.sign(keypair)
    return te.to_xdr()


class KeypairSigner:
    def __init__(self, keypair: Keypair, network_passphrase: str) -> None:
        self.keypair = keypair
        self.network_passphrase = network_passphrase

    async def sign(self, envelope: str) -> str:
        log.debug("Signing with %s", self.keypair.public_key)
        return sign_with_keypair(envelope, self.network_passphrase, self.keypair)
