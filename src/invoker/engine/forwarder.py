"""Call forwarder — performs the relayed call as the authorized identity."""

from __future__ import annotations

import logging

from invoker.errors import CallFailed
from invoker.runtime.context import ExecutionContext


logger = logging.getLogger(__name__)


class CallForwarder:
    """Makes exactly one delegated call and relays its output unchanged.

    The whole remaining gas and the attached value go with the call.
    On failure the target's output becomes the failure payload as-is.
    """

    def forward(
        self,
        ctx: ExecutionContext,
        identity: str,
        to: str,
        value: int,
        data: bytes,
    ) -> bytes:
        result = ctx.call_as(identity, to, value, data, gas=ctx.gas_left())
        if not result.success:
            logger.debug("Forwarded call to %s failed (%d bytes)", to, len(result.output))
            raise CallFailed(result.output)
        return result.output
