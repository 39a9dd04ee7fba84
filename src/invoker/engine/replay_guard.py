"""Replay guard — one-time use of commits.

Used commits live in the invoker's own storage, one slot per commit at
keccak256(commit || uint256(USED_COMMITS_SLOT)), the same derivation a
Solidity mapping uses. Nothing ever clears a slot.

The guard is checked and marked in one step, before authorization is
attempted. If authorization then fails the commit stays burned: a
refused signature cannot be retried with the same commit.
"""

from __future__ import annotations

import logging

from eth_utils import keccak

from invoker.errors import CommitUsed
from invoker.models.request import COMMIT_LENGTH
from invoker.runtime.context import ContractStorage


logger = logging.getLogger(__name__)

USED_COMMITS_SLOT = 0
USED = (1).to_bytes(32, "big")
UNUSED = b"\x00" * 32


def commit_slot(commit: bytes) -> bytes:
    """Storage slot holding the used flag of a commit."""
    if len(commit) != COMMIT_LENGTH:
        raise ValueError(f"Commit must be {COMMIT_LENGTH} bytes, got {len(commit)}")
    return keccak(bytes(commit) + USED_COMMITS_SLOT.to_bytes(32, "big"))


class ReplayGuard:
    """Used-commit set backed by contract storage."""

    def __init__(self, storage: ContractStorage) -> None:
        self._storage = storage

    def is_used(self, commit: bytes) -> bool:
        return self._storage.get(commit_slot(commit)) != UNUSED

    def mark_used(self, commit: bytes) -> None:
        self._storage.set(commit_slot(commit), USED)

    def check_and_mark(self, commit: bytes) -> None:
        """Consume a commit, raising CommitUsed if it was already consumed."""
        if self.is_used(commit):
            raise CommitUsed(f"Commit 0x{commit.hex()} already used")
        self.mark_used(commit)
        logger.debug("Commit 0x%s marked used", commit.hex())
