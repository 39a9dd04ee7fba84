"""Off-band signing of commits.

The signer never talks to the executing host. They sign the canonical
digest for (chain, invoker, commit) and hand the 65-byte signature to
whoever will submit the relay.
"""

from __future__ import annotations

from typing import Union

from eth_keys import keys
from eth_utils import decode_hex

from invoker.crypto.message import auth_digest


PrivateKeyLike = Union[str, bytes, keys.PrivateKey]


def _as_private_key(private_key: PrivateKeyLike) -> keys.PrivateKey:
    if isinstance(private_key, keys.PrivateKey):
        return private_key
    if isinstance(private_key, str):
        private_key = decode_hex(private_key)
    return keys.PrivateKey(private_key)


def signer_address(private_key: PrivateKeyLike) -> str:
    """Checksummed address of a private key."""
    return _as_private_key(private_key).public_key.to_checksum_address()


def sign_commit(
    private_key: PrivateKeyLike,
    chain_id: int,
    invoker: str,
    commit: bytes,
) -> bytes:
    """Sign a commit for one invoker on one chain.

    Returns the signature in relay order: y-parity (1 byte), r (32), s (32).
    """
    digest = auth_digest(chain_id, invoker, commit)
    signature = _as_private_key(private_key).sign_msg_hash(digest)
    return (
        bytes([signature.v])
        + signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
    )
