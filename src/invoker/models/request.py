"""Relay request model.

A relay request is built fresh from the caller's payload on every
invocation and is never persisted. The commit is an opaque 32-byte
token chosen by the original signer; the invoker only cares that it
has not been seen before.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import to_checksum_address

from invoker.errors import BadSignatureLength


SIGNATURE_LENGTH = 65
COMMIT_LENGTH = 32


@dataclass(frozen=True)
class Signature:
    """A 65-byte authorization signature: y-parity, then r, then s.

    The y-parity byte is not range-checked here. An out-of-range value
    simply fails recovery later.
    """
    y_parity: int
    r: int
    s: int
    raw: bytes

    @staticmethod
    def from_bytes(raw: bytes) -> Signature:
        """Parse a signature, rejecting any length other than 65 bytes."""
        if len(raw) != SIGNATURE_LENGTH:
            raise BadSignatureLength(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
            )
        return Signature(
            y_parity=raw[0],
            r=int.from_bytes(raw[1:33], "big"),
            s=int.from_bytes(raw[33:65], "big"),
            raw=bytes(raw),
        )

    @property
    def v(self) -> int:
        """Recovery id in the {27, 28} convention."""
        return self.y_parity + 27


@dataclass(frozen=True)
class RelayRequest:
    """The decoded arguments of one relay call."""
    signature: bytes
    data: bytes
    commit: bytes
    to: str

    def __post_init__(self) -> None:
        if len(self.commit) != COMMIT_LENGTH:
            raise ValueError(
                f"Commit must be {COMMIT_LENGTH} bytes, got {len(self.commit)}"
            )
        object.__setattr__(self, "to", to_checksum_address(self.to))


@dataclass(frozen=True)
class CallResult:
    """Outcome of a call: success flag plus the raw returned bytes."""
    success: bool
    output: bytes = b""


@dataclass(frozen=True)
class RelayReceipt:
    """A record of a relay transaction mined on a live chain."""
    tx_hash: str
    block_number: int
    status: int
    chain_id: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1
