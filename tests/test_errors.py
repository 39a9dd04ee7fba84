"""Tests for relay errors — proves failure payloads are fixed and distinct."""

from eth_utils import keccak

from invoker.errors import (
    DECLARED_ERRORS,
    BadAuth,
    BadSignatureLength,
    CallFailed,
    CommitUsed,
    decode_revert,
)


class TestSelectors:
    def test_four_bytes(self) -> None:
        for error in DECLARED_ERRORS:
            assert len(error.selector()) == 4

    def test_derived_from_signature(self) -> None:
        assert CommitUsed.selector() == keccak(text="CommitUsed()")[:4]

    def test_all_distinct(self) -> None:
        selectors = {error.selector() for error in DECLARED_ERRORS}
        assert len(selectors) == len(DECLARED_ERRORS)

    def test_payload_is_selector_only(self) -> None:
        assert BadSignatureLength("too short").payload == BadSignatureLength.selector()


class TestRevertSemantics:
    def test_bad_auth_keeps_writes(self) -> None:
        assert BadAuth.reverts is False

    def test_others_revert(self) -> None:
        for error in DECLARED_ERRORS:
            if error is not BadAuth:
                assert error.reverts is True

    def test_call_failed_carries_output(self) -> None:
        exc = CallFailed(b"\x01\x02\x03")
        assert exc.payload == b"\x01\x02\x03"
        assert exc.reverts is True


class TestDecodeRevert:
    def test_known_payloads(self) -> None:
        for error in DECLARED_ERRORS:
            assert decode_revert(error.selector()) is error

    def test_target_output_not_matched(self) -> None:
        assert decode_revert(b"\x08\xc3\x79\xa0" + b"\x00" * 32) is None
        assert decode_revert(b"") is None

    def test_trailing_data_not_matched(self) -> None:
        assert decode_revert(CommitUsed.selector() + b"\x00") is None
