"""Invoker — the relay contract's single entry point.

Pipeline for one request, with no branches beyond error exits:

    selector -> decode -> replay guard (check, mark) -> digest
             -> authorize -> forward -> relay output

Ordering matters. The signature length is validated during decoding,
before any state is touched. The commit is burned before authorization,
so a refused authorization still consumes it.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from invoker.codec import RELAY_SELECTOR, decode_relay, read_selector
from invoker.crypto.message import MessageHasher
from invoker.crypto.verifier import AuthorizationVerifier
from invoker.engine.forwarder import CallForwarder
from invoker.engine.replay_guard import ReplayGuard
from invoker.errors import Revert, UnknownOperation
from invoker.models.request import RelayRequest, Signature
from invoker.runtime.context import ExecutionContext


logger = logging.getLogger(__name__)

Operation = Callable[[ExecutionContext, bytes], bytes]


class Invoker:
    """The relay contract.

    Stateless apart from its storage, which the host hands in on every
    invocation through the execution context. An Invoker instance is a
    valid host handler: ``host.deploy(address, Invoker())``.
    """

    def __init__(
        self,
        verifier: Optional[AuthorizationVerifier] = None,
        forwarder: Optional[CallForwarder] = None,
    ) -> None:
        self._verifier = verifier or AuthorizationVerifier()
        self._forwarder = forwarder or CallForwarder()
        self._operations: dict[bytes, Operation] = {
            RELAY_SELECTOR: self._relay_calldata,
        }

    def __call__(self, ctx: ExecutionContext, calldata: bytes) -> bytes:
        return self.dispatch(ctx, calldata)

    def dispatch(self, ctx: ExecutionContext, calldata: bytes) -> bytes:
        """Route a payload to its operation by selector."""
        selector = read_selector(calldata)
        operation = self._operations.get(selector)
        if operation is None:
            raise UnknownOperation(f"Unknown selector 0x{selector.hex()}")
        return operation(ctx, calldata)

    def _relay_calldata(self, ctx: ExecutionContext, calldata: bytes) -> bytes:
        return self.relay(ctx, decode_relay(calldata))

    def relay(self, ctx: ExecutionContext, request: RelayRequest) -> bytes:
        """Authorize and forward one call on behalf of the commit's signer.

        Returns the target's output. Raises BadSignatureLength,
        CommitUsed, BadAuth or CallFailed.
        """
        try:
            signature = Signature.from_bytes(request.signature)

            ReplayGuard(ctx.storage).check_and_mark(request.commit)

            digest = MessageHasher(ctx.chain_id, ctx.address).digest(request.commit)
            identity = self._verifier.authorize(ctx, signature, request.commit, digest)

            output = self._forwarder.forward(
                ctx, identity, request.to, ctx.value, request.data,
            )
        except Revert as exc:
            logger.warning(
                "Relay rejected: %s (commit 0x%s)", type(exc).__name__, request.commit.hex(),
            )
            raise

        logger.info(
            "Relayed call to %s as %s (commit 0x%s, value %d)",
            request.to, identity, request.commit.hex(), ctx.value,
        )
        return output
