"""Authorization verifier.

Two steps:
1. Recover a candidate signer locally from the signature and digest.
   This is advisory. A signature that cannot be recovered yields the
   zero address, which the host will then refuse.
2. Hand the raw signature, the commit and the candidate to the host's
   delegated-authorization primitive, which does its own verification
   and establishes the authorized identity.

Whatever the reason the host refuses, the verifier fails with BadAuth.
"""

from __future__ import annotations

import logging

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from invoker.errors import BadAuth
from invoker.models.request import Signature
from invoker.runtime.context import ExecutionContext


logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def ecrecover(digest: bytes, v: int, r: int, s: int) -> str:
    """Recover the signing address, or the zero address on failure.

    ``v`` uses the {27, 28} convention.
    """
    if v not in (27, 28):
        return ZERO_ADDRESS
    try:
        signature = keys.Signature(vrs=(v - 27, r, s))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError):
        return ZERO_ADDRESS
    return public_key.to_checksum_address()


class AuthorizationVerifier:
    """Establishes the authorized identity for a signed commit."""

    def recover_candidate(self, signature: Signature, digest: bytes) -> str:
        return ecrecover(digest, signature.v, signature.r, signature.s)

    def authorize(
        self,
        ctx: ExecutionContext,
        signature: Signature,
        commit: bytes,
        digest: bytes,
    ) -> str:
        """Return the authorized identity, or raise BadAuth."""
        candidate = self.recover_candidate(signature, digest)
        logger.debug("Recovered candidate signer %s", candidate)

        identity = ctx.establish_authorized_identity(signature.raw, commit, candidate)
        if identity is None:
            raise BadAuth(f"Host refused authorization for candidate {candidate}")
        return identity
