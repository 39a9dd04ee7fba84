"""Canonical authorization message.

    message = AUTH_MAGIC || uint256(chain_id) || pad32(invoker) || commit
    digest  = keccak256(message)

The chain id and the invoker's own address are bound into the digest,
so a signature made for one chain or one deployed invoker cannot be
replayed on another. The host's authorization primitive rebuilds the
same 97 bytes on its own; the two must agree exactly.
"""

from __future__ import annotations

from typing import Final

from eth_utils import keccak, to_canonical_address

from invoker.models.request import COMMIT_LENGTH


AUTH_MAGIC: Final[bytes] = b"\x03"
MESSAGE_LENGTH: Final[int] = 1 + 32 + 32 + COMMIT_LENGTH


def auth_message(chain_id: int, invoker: str, commit: bytes) -> bytes:
    """Build the 97-byte canonical message for a commit."""
    if len(commit) != COMMIT_LENGTH:
        raise ValueError(f"Commit must be {COMMIT_LENGTH} bytes, got {len(commit)}")
    if chain_id < 0:
        raise ValueError(f"Chain id must be non-negative, got {chain_id}")
    return (
        AUTH_MAGIC
        + chain_id.to_bytes(32, "big")
        + to_canonical_address(invoker).rjust(32, b"\x00")
        + bytes(commit)
    )


def auth_digest(chain_id: int, invoker: str, commit: bytes) -> bytes:
    """Keccak-256 of the canonical message."""
    return keccak(auth_message(chain_id, invoker, commit))


class MessageHasher:
    """Builds authorization digests for one invoker on one chain.

    Usage:
        hasher = MessageHasher(chain_id=1, invoker="0x...")
        digest = hasher.digest(commit)
    """

    def __init__(self, chain_id: int, invoker: str) -> None:
        self._chain_id = chain_id
        self._invoker = invoker

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def invoker(self) -> str:
        return self._invoker

    def canonical_message(self, commit: bytes) -> bytes:
        return auth_message(self._chain_id, self._invoker, commit)

    def digest(self, commit: bytes) -> bytes:
        return auth_digest(self._chain_id, self._invoker, commit)
