"""Relay invoker — forwards one signed call on behalf of a commit's signer.

A submitter relays a call to any target; the target sees the signer,
not the submitter, as the caller. Authorization is a single-use commit
signed off-band over (chain id, invoker address, commit).
"""

from invoker.codec import RELAY_SELECTOR, decode_relay, encode_relay
from invoker.engine.dispatcher import Invoker
from invoker.errors import (
    BadAuth,
    BadSignatureLength,
    CallFailed,
    CommitUsed,
    MalformedRequest,
    RelayError,
    Revert,
    UnknownOperation,
)
from invoker.models.request import CallResult, RelayRequest, Signature

__version__ = "0.1.0"

__all__ = [
    "RELAY_SELECTOR",
    "decode_relay",
    "encode_relay",
    "Invoker",
    "BadAuth",
    "BadSignatureLength",
    "CallFailed",
    "CommitUsed",
    "MalformedRequest",
    "RelayError",
    "Revert",
    "UnknownOperation",
    "CallResult",
    "RelayRequest",
    "Signature",
]
