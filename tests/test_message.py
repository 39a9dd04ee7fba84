"""Tests for the canonical authorization message — proves domain binding."""

import pytest
from eth_utils import keccak

from invoker.crypto.message import (
    AUTH_MAGIC,
    MESSAGE_LENGTH,
    MessageHasher,
    auth_digest,
    auth_message,
)


INVOKER = "0x" + "aa" * 20
COMMIT = b"\x01" * 32


class TestCanonicalMessage:
    def test_length(self) -> None:
        message = auth_message(1, INVOKER, COMMIT)
        assert len(message) == MESSAGE_LENGTH == 97

    def test_layout(self) -> None:
        message = auth_message(5, INVOKER, COMMIT)
        assert message[:1] == AUTH_MAGIC
        assert message[1:33] == (5).to_bytes(32, "big")
        assert message[33:45] == b"\x00" * 12
        assert message[45:65] == b"\xaa" * 20
        assert message[65:] == COMMIT

    def test_digest_is_keccak_of_message(self) -> None:
        assert auth_digest(1, INVOKER, COMMIT) == keccak(auth_message(1, INVOKER, COMMIT))

    def test_address_case_irrelevant(self) -> None:
        upper = "0x" + "AA" * 20
        assert auth_message(1, INVOKER, COMMIT) == auth_message(1, upper, COMMIT)

    def test_rejects_short_commit(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            auth_message(1, INVOKER, b"\x01" * 31)

    def test_rejects_negative_chain(self) -> None:
        with pytest.raises(ValueError):
            auth_message(-1, INVOKER, COMMIT)


class TestDomainBinding:
    def test_chain_changes_digest(self) -> None:
        assert auth_digest(1, INVOKER, COMMIT) != auth_digest(2, INVOKER, COMMIT)

    def test_invoker_changes_digest(self) -> None:
        other = "0x" + "ab" * 20
        assert auth_digest(1, INVOKER, COMMIT) != auth_digest(1, other, COMMIT)

    def test_commit_changes_digest(self) -> None:
        assert auth_digest(1, INVOKER, COMMIT) != auth_digest(1, INVOKER, b"\x02" * 32)


class TestMessageHasher:
    def test_matches_module_functions(self) -> None:
        hasher = MessageHasher(chain_id=1, invoker=INVOKER)
        assert hasher.canonical_message(COMMIT) == auth_message(1, INVOKER, COMMIT)
        assert hasher.digest(COMMIT) == auth_digest(1, INVOKER, COMMIT)

    def test_exposes_domain(self) -> None:
        hasher = MessageHasher(chain_id=11155111, invoker=INVOKER)
        assert hasher.chain_id == 11155111
        assert hasher.invoker == INVOKER
