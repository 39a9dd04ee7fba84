"""Tests for the in-memory host — proves the privileged primitives and atomicity."""

import pytest

from invoker.crypto.signer import sign_commit, signer_address
from invoker.errors import Revert
from invoker.runtime.host import SECP256K1_N, Frame, InMemoryHost


SIGNER_KEY = "0x" + "11" * 32
SIGNER = signer_address(SIGNER_KEY)
INVOKER = "0x" + "aa" * 20
TARGET = "0x" + "cc" * 20
COMMIT = b"\x01" * 32


def _frame(host: InMemoryHost, address: str = INVOKER) -> Frame:
    return Frame(host=host, address=address, caller=SIGNER, value=0, data=b"", gas=100_000)


class TestAuthorize:
    def test_grants_matching_candidate(self) -> None:
        host = InMemoryHost(chain_id=1)
        frame = _frame(host)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        assert frame.establish_authorized_identity(signature, COMMIT, SIGNER) == SIGNER
        assert frame.authorized == SIGNER

    def test_refuses_other_candidate(self) -> None:
        host = InMemoryHost(chain_id=1)
        frame = _frame(host)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        assert frame.establish_authorized_identity(signature, COMMIT, TARGET) is None

    def test_binds_executing_contract(self) -> None:
        host = InMemoryHost(chain_id=1)
        frame = _frame(host, address="0x" + "ab" * 20)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        assert frame.establish_authorized_identity(signature, COMMIT, SIGNER) is None

    def test_refuses_high_s(self) -> None:
        host = InMemoryHost(chain_id=1)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        s = int.from_bytes(signature[33:], "big")
        flipped = bytes([signature[0] ^ 1]) + signature[1:33] + (SECP256K1_N - s).to_bytes(32, "big")
        assert _frame(host).establish_authorized_identity(flipped, COMMIT, SIGNER) is None

    def test_refusal_clears_identity(self) -> None:
        host = InMemoryHost(chain_id=1)
        frame = _frame(host)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        frame.establish_authorized_identity(signature, COMMIT, SIGNER)
        frame.establish_authorized_identity(signature, b"\x02" * 32, SIGNER)
        assert frame.authorized is None

    def test_unregistered_authority_refused(self) -> None:
        host = InMemoryHost(chain_id=1)
        host.register_authority("0x" + "01" * 20)
        signature = sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT)
        assert _frame(host).establish_authorized_identity(signature, COMMIT, SIGNER) is None


class TestAuthCall:
    def test_requires_authorization(self) -> None:
        host = InMemoryHost(chain_id=1)
        result = _frame(host).call_as(SIGNER, TARGET, 0, b"", gas=1000)
        assert not result.success

    def test_sender_is_identity(self) -> None:
        host = InMemoryHost(chain_id=1)
        seen = []
        host.deploy(TARGET, lambda frame, data: seen.append(frame.caller) or b"ok")
        frame = _frame(host)
        frame.establish_authorized_identity(
            sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT), COMMIT, SIGNER,
        )
        result = frame.call_as(SIGNER, TARGET, 0, b"", gas=1000)
        assert result.success
        assert result.output == b"ok"
        assert seen == [SIGNER]

    def test_gas_capped_by_frame(self) -> None:
        host = InMemoryHost(chain_id=1)
        budgets = []
        host.deploy(TARGET, lambda frame, data: budgets.append(frame.gas_left()) or b"")
        frame = _frame(host)
        frame.establish_authorized_identity(
            sign_commit(SIGNER_KEY, 1, INVOKER, COMMIT), COMMIT, SIGNER,
        )
        frame.call_as(SIGNER, TARGET, 0, b"", gas=10**9)
        assert budgets == [100_000]


class TestExecute:
    def test_revert_discards_writes(self) -> None:
        host = InMemoryHost(chain_id=1)

        def failing(frame: Frame, data: bytes) -> bytes:
            frame.storage.set(b"\x00" * 32, b"\x01" * 32)
            raise Revert(b"nope")

        host.deploy(TARGET, failing)
        result = host.execute(TARGET, b"")
        assert not result.success
        assert result.output == b"nope"
        assert host.state.get_storage(TARGET, b"\x00" * 32) == b"\x00" * 32

    def test_success_commits_writes(self) -> None:
        host = InMemoryHost(chain_id=1)

        def writer(frame: Frame, data: bytes) -> bytes:
            frame.storage.set(b"\x00" * 32, b"\x01" * 32)
            return b""

        host.deploy(TARGET, writer)
        assert host.execute(TARGET, b"").success
        assert host.state.pending_writes == 0
        assert host.state.get_storage(TARGET, b"\x00" * 32) == b"\x01" * 32

    def test_unexpected_error_rolls_back_and_propagates(self) -> None:
        host = InMemoryHost(chain_id=1)

        def broken(frame: Frame, data: bytes) -> bytes:
            frame.storage.set(b"\x00" * 32, b"\x01" * 32)
            raise KeyError("bug")

        host.deploy(TARGET, broken)
        with pytest.raises(KeyError):
            host.execute(TARGET, b"")
        assert host.state.pending_writes == 0
        assert host.state.get_storage(TARGET, b"\x00" * 32) == b"\x00" * 32

    def test_unfunded_value_fails(self) -> None:
        host = InMemoryHost(chain_id=1)
        result = host.execute(TARGET, b"", value=1, sender=SIGNER)
        assert not result.success

    def test_call_to_plain_account(self) -> None:
        host = InMemoryHost(chain_id=1)
        host.fund(SIGNER, 10)
        assert host.execute(TARGET, b"", value=10, sender=SIGNER).success
        assert host.balance_of(TARGET) == 10

    def test_duplicate_deploy(self) -> None:
        host = InMemoryHost(chain_id=1)
        host.deploy(TARGET, lambda frame, data: b"")
        with pytest.raises(ValueError, match="already deployed"):
            host.deploy(TARGET, lambda frame, data: b"")
