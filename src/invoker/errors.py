"""Relay errors — the failure payloads an invocation can end with.

Every declared error is identified on the wire by a fixed 4-byte
selector, keccak256("<Name>()")[:4], with no additional data. A failed
target call is not a declared error: its payload is the target's own
output, relayed unchanged.
"""

from __future__ import annotations

from typing import Optional

from eth_utils import function_signature_to_4byte_selector


class Revert(Exception):
    """Aborts the current call frame with a failure payload.

    The host rolls back every state change made by the frame unless
    ``reverts`` is False, in which case the writes made so far are kept
    and only the failure is reported.
    """

    reverts = True

    def __init__(self, payload: bytes = b"", message: str = "") -> None:
        self._payload = bytes(payload)
        super().__init__(message or f"Reverted with {len(payload)} byte payload")

    @property
    def payload(self) -> bytes:
        return self._payload


class RelayError(Revert):
    """Base class for the invoker's declared errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(self.selector(), message or type(self).__name__)

    @classmethod
    def selector(cls) -> bytes:
        return function_signature_to_4byte_selector(f"{cls.__name__}()")


class UnknownOperation(RelayError):
    """The request selector does not name an operation of the invoker."""


class MalformedRequest(RelayError):
    """The request payload is not a decodable relay call."""


class BadSignatureLength(RelayError):
    """The signature field is not exactly 65 bytes."""


class CommitUsed(RelayError):
    """The commit has already been consumed by an earlier invocation."""


class BadAuth(RelayError):
    """The host did not establish an authorized identity.

    Non-reverting: by the time authorization is attempted the commit has
    already been burned, and the burn outlives the failure.
    """

    reverts = False


class CallFailed(Revert):
    """The forwarded call failed; the payload is the target's raw output."""

    def __init__(self, output: bytes) -> None:
        super().__init__(output, f"Target call failed ({len(output)} byte output)")


DECLARED_ERRORS: tuple[type[RelayError], ...] = (
    UnknownOperation,
    MalformedRequest,
    BadSignatureLength,
    CommitUsed,
    BadAuth,
)


def decode_revert(payload: bytes) -> Optional[type[RelayError]]:
    """Map a failure payload back to its declared error, if it is one.

    Returns None for payloads that are not exactly a declared selector,
    which includes every relayed target failure.
    """
    for error in DECLARED_ERRORS:
        if payload == error.selector():
            return error
    return None
