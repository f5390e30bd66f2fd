# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Configuration

Defaults live in the Config dataclass. A JSON file and FUNDRAISER_* environment
variables can override any field (environment wins).

Usage:
    config = load_config("fundraiser.json")
    setup_logging(config.log_level)
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

ENV_PREFIX = "FUNDRAISER_"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"


@dataclass(frozen=True)
class Config:
    # Campaign status endpoint (JSON: {"started": bool, "ended": bool})
    status_url: str = "https://fundraiser.cosmos.network/api/status"

    # Bitcoin (Esplora HTTP API)
    esplora_url: str = "https://blockstream.info/api"
    exodus_address: str = "3HE73tDm7q6wHMhCxfThDQFpBX9oq14ZaG"
    atoms_per_btc: int = 11635
    btc_minimum_sats: int = 1_000_000  # 0.01 BTC
    fee_target_blocks: int = 2
    payment_poll_interval: float = 10.0  # seconds
    payment_timeout: float = 0.0         # 0 = wait forever

    # Ethereum
    ethereum_rpc: str = "https://ethereum-rpc.publicnode.com"
    fundraiser_contract: str = "0xCF965Cfe7C30323E9C9E41D4E398e2167506f764"
    eth_min_donation: float = 0.01
    eth_gas_limit: int = 150000

    terms_url: str = (
        "https://github.com/cosmos/cosmos/blob/master/fundraiser/"
        "Interchain%20Cosmos%20Contribution%20Terms%20-%20FINAL.pdf"
    )

    # Read retry policy (status, fee rate, Atom rate). Broadcast is never retried.
    read_retries: int = 3
    retry_backoff: float = 1.0  # seconds, doubled per attempt
    http_timeout: int = 30

    recall_max_attempts: int = 0  # 0 = unbounded
    log_level: str = "INFO"


def _coerce(name: str, raw: Any, target: Any) -> Any:
    """Convert a raw override to the type of the field default."""
    try:
        if isinstance(target, int):
            return int(raw)
        if isinstance(target, float):
            return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {raw!r}")
    return str(raw)


def load_config(path: Optional[str] = None,
                env: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build the effective configuration.

    Args:
        path: Optional JSON file with field overrides
        env: Environment mapping (defaults to os.environ)

    Returns:
        Config with defaults < file < environment

    Raises:
        ValueError: Unknown key in the file or a value of the wrong type
    """
    env = os.environ if env is None else env
    defaults = Config()
    known = {f.name: getattr(defaults, f.name) for f in fields(Config)}
    overrides: Dict[str, Any] = {}

    if path:
        with open(path, "r") as f:
            data = json.load(f)
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        for key, value in data.items():
            overrides[key] = _coerce(key, value, known[key])

    for name, default in known.items():
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is not None:
            overrides[name] = _coerce(name, raw, default)

    return replace(defaults, **overrides)


def setup_logging(level: str = "INFO"):
    """Configure root logging once for the process (stderr)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
