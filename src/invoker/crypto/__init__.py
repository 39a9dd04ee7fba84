"""Cryptographic primitives — canonical message, recovery, off-band signing."""

from invoker.crypto.message import AUTH_MAGIC, MessageHasher, auth_digest, auth_message
from invoker.crypto.signer import sign_commit, signer_address
from invoker.crypto.verifier import ZERO_ADDRESS, AuthorizationVerifier, ecrecover

__all__ = [
    "AUTH_MAGIC",
    "MessageHasher",
    "auth_digest",
    "auth_message",
    "sign_commit",
    "signer_address",
    "ZERO_ADDRESS",
    "AuthorizationVerifier",
    "ecrecover",
]
