"""Data models — relay requests, signatures and call results."""

from invoker.models.request import (
    COMMIT_LENGTH,
    SIGNATURE_LENGTH,
    CallResult,
    RelayReceipt,
    RelayRequest,
    Signature,
)

__all__ = [
    "COMMIT_LENGTH",
    "SIGNATURE_LENGTH",
    "CallResult",
    "RelayReceipt",
    "RelayRequest",
    "Signature",
]
