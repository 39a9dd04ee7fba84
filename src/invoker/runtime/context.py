"""Execution context — the boundary between the invoker and its host.

The host owns persistent storage, gas, atomicity and the two privileged
primitives. The invoker sees only this narrow interface, so any host
(the in-memory reference host, or a fake in a test) can stand behind it.
"""

from __future__ import annotations

from typing import Optional, Protocol

from invoker.models.request import CallResult


class ContractStorage(Protocol):
    """32-byte slot to 32-byte value storage of one contract."""

    def get(self, slot: bytes) -> bytes: ...

    def set(self, slot: bytes, value: bytes) -> None: ...


class ExecutionContext(Protocol):
    """What an executing contract can see and do during one invocation."""

    chain_id: int
    address: str  # the executing contract
    caller: str
    value: int

    @property
    def storage(self) -> ContractStorage: ...

    def gas_left(self) -> int: ...

    def establish_authorized_identity(
        self,
        signature: bytes,
        commit: bytes,
        candidate: str,
    ) -> Optional[str]:
        """Delegated authorization.

        Verifies ``signature`` over the canonical message for ``commit``
        and, if it was made by ``candidate``, makes ``candidate`` the
        authorized identity for the rest of the invocation. Returns the
        identity, or None with no identity established.
        """
        ...

    def call_as(
        self,
        identity: str,
        target: str,
        value: int,
        data: bytes,
        gas: int,
    ) -> CallResult:
        """Delegated call: call ``target`` with ``identity`` as the sender."""
        ...
