"""Request codec — the relay call's wire format.

The payload is the standard ABI encoding of
``relay(bytes signature, bytes data, bytes32 commit, address to)``:

    0x00  selector
    0x04  offset of signature
    0x24  offset of call data
    0x44  commit
    0x64  target address (right-aligned)
    0x84  signature length (must be 65)
    0xA4  y-parity, r, s
    ....  call-data length and bytes

Decoding validates everything up front, so a rejected payload never
reaches the replay guard.
"""

from __future__ import annotations

from typing import Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from invoker.errors import BadSignatureLength, MalformedRequest, UnknownOperation
from invoker.models.request import SIGNATURE_LENGTH, RelayRequest


RELAY_SIGNATURE = "relay(bytes,bytes,bytes32,address)"
RELAY_SELECTOR = function_signature_to_4byte_selector(RELAY_SIGNATURE)
RELAY_ARG_TYPES = ["bytes", "bytes", "bytes32", "address"]

SELECTOR_LENGTH = 4
WORD = 32


def read_selector(calldata: bytes) -> bytes:
    """Return the 4-byte operation selector at the start of a payload."""
    if len(calldata) < SELECTOR_LENGTH:
        raise UnknownOperation(f"Payload too short for a selector ({len(calldata)} bytes)")
    return bytes(calldata[:SELECTOR_LENGTH])


def encode_relay(request: RelayRequest) -> bytes:
    """Encode a relay request as call data.

    The signature length is not checked, so deliberately malformed
    requests can still be built.
    """
    args = encode(
        RELAY_ARG_TYPES,
        [request.signature, request.data, request.commit, request.to],
    )
    return RELAY_SELECTOR + args


def _declared_signature_length(args: bytes) -> Optional[int]:
    """Read the signature length word, or None if its offset is out of range."""
    if len(args) < WORD:
        return None
    offset = int.from_bytes(args[:WORD], "big")
    if offset + WORD > len(args):
        return None
    return int.from_bytes(args[offset:offset + WORD], "big")


def decode_relay(calldata: bytes) -> RelayRequest:
    """Decode call data into a relay request.

    Raises:
        UnknownOperation: the selector is not ``relay``.
        MalformedRequest: the arguments are not a valid ABI encoding.
        BadSignatureLength: the signature is not exactly 65 bytes.
    """
    if read_selector(calldata) != RELAY_SELECTOR:
        raise UnknownOperation(f"Unknown selector 0x{bytes(calldata[:4]).hex()}")

    args = bytes(calldata[SELECTOR_LENGTH:])
    declared = _declared_signature_length(args)
    if declared is not None and declared != SIGNATURE_LENGTH:
        raise BadSignatureLength(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got length word {declared}"
        )

    try:
        signature, data, commit, to = decode(RELAY_ARG_TYPES, args)
    except (DecodingError, OverflowError) as exc:
        raise MalformedRequest(f"Undecodable relay payload: {exc}") from exc

    if len(signature) != SIGNATURE_LENGTH:
        raise BadSignatureLength(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    return RelayRequest(signature=signature, data=data, commit=commit, to=to)
