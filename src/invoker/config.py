"""Invoker configuration.

Settings come from the environment, optionally seeded from a ``.env``
file. Only chain submission needs the RPC endpoint, key and invoker
address; everything offline works with the defaults.

Variables:
    INVOKER_RPC_URL          Ethereum RPC endpoint URL
    INVOKER_PRIVATE_KEY      Submitter's hex-encoded private key
    INVOKER_CHAIN_ID         Chain id (default: 11155111, Sepolia)
    INVOKER_ADDRESS          Address of the deployed invoker
    INVOKER_GAS              Gas limit for relay transactions (default: 300000)
    INVOKER_GAS_PRICE_GWEI   Gas price in gwei (default: 2)
    INVOKER_STATE_PATH       JSONL file for the local state store
    INVOKER_LOG_LEVEL        Log level (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address


SEPOLIA_CHAIN_ID = 11155111


@dataclass(frozen=True)
class InvokerConfig:
    """Resolved invoker settings."""
    rpc_url: Optional[str] = None
    private_key: Optional[str] = None
    chain_id: int = SEPOLIA_CHAIN_ID
    invoker_address: Optional[str] = None
    gas: int = 300_000
    gas_price_gwei: str = "2"
    state_path: Optional[Path] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.chain_id < 0:
            raise ValueError(f"Chain id must be non-negative, got {self.chain_id}")
        if self.gas <= 0:
            raise ValueError(f"Gas limit must be positive, got {self.gas}")
        if self.invoker_address is not None:
            if not is_address(self.invoker_address):
                raise ValueError(f"Invalid invoker address: {self.invoker_address}")
            object.__setattr__(self, "invoker_address", to_checksum_address(self.invoker_address))

    @staticmethod
    def from_env(
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> InvokerConfig:
        """Build a config from the environment.

        ``env_file`` is loaded first without overriding variables that
        are already set. ``environ`` replaces ``os.environ`` (for tests).
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        state_path = environ.get("INVOKER_STATE_PATH")
        return InvokerConfig(
            rpc_url=environ.get("INVOKER_RPC_URL") or None,
            private_key=environ.get("INVOKER_PRIVATE_KEY") or None,
            chain_id=int(environ.get("INVOKER_CHAIN_ID", SEPOLIA_CHAIN_ID)),
            invoker_address=environ.get("INVOKER_ADDRESS") or None,
            gas=int(environ.get("INVOKER_GAS", 300_000)),
            gas_price_gwei=environ.get("INVOKER_GAS_PRICE_GWEI", "2"),
            state_path=Path(state_path) if state_path else None,
            log_level=environ.get("INVOKER_LOG_LEVEL", "INFO"),
        )

    def require_chain(self) -> None:
        """Raise ValueError unless every chain submission setting is present."""
        missing = [
            name
            for name, value in (
                ("INVOKER_RPC_URL", self.rpc_url),
                ("INVOKER_PRIVATE_KEY", self.private_key),
                ("INVOKER_ADDRESS", self.invoker_address),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing chain settings: {', '.join(missing)}")
