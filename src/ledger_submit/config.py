import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

import ledger_submit.constants as C

pkg_root = Path(__file__).parent
config_file = pkg_root / "config.toml"


@dataclass(frozen=True, slots=True)
class Settings:
    rpc_url: str
    rpc_timeout: float
    network_passphrase: str
    base_fee: int
    send_retry_interval: float
    send_retry_window: float
    poll_interval: float
    confirm_timeout: float | None  # None = unbounded polling
    log_level: str = "INFO"


def load_config(path: str | Path | None = None) -> Settings:
    """Read config.toml (the packaged one by default) and apply environment overrides.

    RPC_URL, NETWORK_PASSPHRASE and LOG_LEVEL win over the file.
    """
    cfg = tomllib.loads(Path(path or config_file).read_text())
    rpc = cfg.get("rpc", {})
    network = cfg.get("network", {})
    submit = cfg.get("submit", {})
    logging_cfg = cfg.get("logging", {})

    confirm_timeout = float(submit.get("confirm_timeout", 0))
    return Settings(
        rpc_url=os.getenv("RPC_URL", rpc.get("url", "http://localhost:8000/rpc")),
        rpc_timeout=float(rpc.get("timeout", C.RPC_TIMEOUT)),
        network_passphrase=os.getenv("NETWORK_PASSPHRASE", network.get("passphrase", "")),
        base_fee=int(submit.get("base_fee", C.BASE_FEE)),
        send_retry_interval=float(submit.get("send_retry_interval", C.SEND_RETRY_INTERVAL)),
        send_retry_window=float(submit.get("send_retry_window", C.SEND_RETRY_WINDOW)),
        poll_interval=float(submit.get("poll_interval", C.POLL_INTERVAL)),
        confirm_timeout=confirm_timeout if confirm_timeout > 0 else None,
        log_level=os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    )
