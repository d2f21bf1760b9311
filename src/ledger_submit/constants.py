from typing import Final
from enum import StrEnum


class SendStatus(StrEnum):
    PENDING         = "PENDING"
    DUPLICATE       = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"
    ERROR           = "ERROR"


class TxStatus(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    SUCCESS   = "SUCCESS"
    FAILED    = "FAILED"


# Restoration pays the simulated minimum plus this margin.
RESTORE_FEE_MARGIN: Final = 1000

# max_time == 0 means the transaction never expires
TIMEOUT_INFINITE: Final = 0

BASE_FEE = 100
RPC_TIMEOUT = 10.0
SEND_RETRY_INTERVAL = 4.0
SEND_RETRY_WINDOW = 20.0
POLL_INTERVAL = 1.0

__all__ = [
    "BASE_FEE",
    "POLL_INTERVAL",
    "RESTORE_FEE_MARGIN",
    "RPC_TIMEOUT",
    "SEND_RETRY_INTERVAL",
    "SEND_RETRY_WINDOW",
    "TIMEOUT_INFINITE",

    ######
    "SendStatus",
    "TxStatus",
]
