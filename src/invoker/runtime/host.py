"""In-memory reference host.

Provides what the invoker treats as external: persistent storage,
balances, gas, atomic invocations and the two privileged primitives.

- Delegated authorization rebuilds the canonical message itself from
  the host's chain id and the executing contract's address, recovers
  the signer, and grants the identity only if it equals the candidate.
  Signatures with a y-parity other than 0/1 or a high s are refused.
- Delegated call runs the target with the authorized identity as the
  sender; the value is paid from the calling contract's balance.

Invocations are serialized. Each top-level invocation either commits
all of its writes or none of them, except for a Revert whose
``reverts`` flag is False: then its writes are kept, the attached value
is refunded and the failure is reported.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from eth_utils import keccak, to_canonical_address, to_checksum_address

from invoker.crypto.message import AUTH_MAGIC
from invoker.crypto.verifier import ZERO_ADDRESS, ecrecover
from invoker.errors import Revert
from invoker.models.request import CallResult
from invoker.persistence.state_store import ContractStorageView, StateStore


logger = logging.getLogger(__name__)

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
DEFAULT_GAS_LIMIT = 30_000_000

Handler = Callable[["Frame", bytes], bytes]


@dataclass
class Frame:
    """One call frame; the ExecutionContext handed to a contract handler."""
    host: InMemoryHost
    address: str
    caller: str
    value: int
    data: bytes
    gas: int
    authorized: Optional[str] = field(default=None)

    @property
    def chain_id(self) -> int:
        return self.host.chain_id

    @property
    def storage(self) -> ContractStorageView:
        return self.host.state.storage(self.address)

    def gas_left(self) -> int:
        return self.gas

    def establish_authorized_identity(
        self,
        signature: bytes,
        commit: bytes,
        candidate: str,
    ) -> Optional[str]:
        return self.host.authorize(self, signature, commit, candidate)

    def call_as(
        self,
        identity: str,
        target: str,
        value: int,
        data: bytes,
        gas: int,
    ) -> CallResult:
        return self.host.authcall(self, identity, target, value, data, gas)


class InMemoryHost:
    """A single-chain execution host kept entirely in memory.

    Usage:
        host = InMemoryHost(chain_id=1)
        host.deploy(invoker_address, Invoker())
        host.deploy(target_address, target_handler)
        result = host.execute(invoker_address, calldata, sender=submitter)
    """

    def __init__(
        self,
        chain_id: int = 1,
        state: Optional[StateStore] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
    ) -> None:
        self._chain_id = chain_id
        self._state = state or StateStore()
        self._gas_limit = gas_limit
        self._contracts: dict[str, Handler] = {}
        # None: any recovered signer may be authorized
        self._authorities: Optional[set[str]] = None
        self._lock = threading.Lock()

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def state(self) -> StateStore:
        return self._state

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def deploy(self, address: str, handler: Handler) -> str:
        address = to_checksum_address(address)
        if address in self._contracts:
            raise ValueError(f"Contract already deployed at {address}")
        self._contracts[address] = handler
        return address

    def register_authority(self, address: str) -> None:
        """Restrict delegated authorization to registered accounts.

        Recovery yields some address for almost any signature. Once an
        authority is registered, only registered accounts are granted,
        so a signature made over another message is refused instead of
        authorizing an address nobody holds a key for.
        """
        if self._authorities is None:
            self._authorities = set()
        self._authorities.add(to_checksum_address(address))

    def fund(self, address: str, amount: int) -> None:
        self._state.set_balance(address, self._state.balance_of(address) + amount)
        self._state.commit()

    def balance_of(self, address: str) -> int:
        return self._state.balance_of(address)

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def execute(
        self,
        to: str,
        calldata: bytes,
        value: int = 0,
        sender: str = ZERO_ADDRESS,
        gas: Optional[int] = None,
    ) -> CallResult:
        """Run one top-level invocation atomically."""
        with self._lock:
            snapshot = self._state.snapshot()
            try:
                result = self._call(
                    payer=sender,
                    sender=sender,
                    to=to,
                    value=value,
                    data=calldata,
                    gas=self._gas_limit if gas is None else gas,
                )
            except Exception:
                self._state.revert(snapshot)
                raise
            self._state.commit()
            return result

    def _call(
        self,
        payer: str,
        sender: str,
        to: str,
        value: int,
        data: bytes,
        gas: int,
    ) -> CallResult:
        to = to_checksum_address(to)
        snapshot = self._state.snapshot()
        try:
            self._state.transfer(payer, to, value)
        except ValueError as exc:
            logger.debug("Call to %s not funded: %s", to, exc)
            return CallResult(success=False)

        handler = self._contracts.get(to)
        if handler is None:
            return CallResult(success=True)

        frame = Frame(
            host=self,
            address=to,
            caller=to_checksum_address(sender),
            value=value,
            data=bytes(data),
            gas=gas,
        )
        try:
            output = handler(frame, bytes(data))
        except Revert as exc:
            if exc.reverts:
                self._state.revert(snapshot)
            else:
                self._state.transfer(to, payer, value)
            return CallResult(success=False, output=exc.payload)
        return CallResult(success=True, output=bytes(output))

    # ------------------------------------------------------------------
    # Privileged primitives
    # ------------------------------------------------------------------

    def authorize(
        self,
        frame: Frame,
        signature: bytes,
        commit: bytes,
        candidate: str,
    ) -> Optional[str]:
        """Delegated authorization for ``frame``.

        Any earlier identity on the frame is cleared first, so a refused
        authorization leaves the frame unable to make delegated calls.
        """
        frame.authorized = None
        if len(signature) != 65 or len(commit) != 32:
            return None

        y_parity = signature[0]
        r = int.from_bytes(signature[1:33], "big")
        s = int.from_bytes(signature[33:65], "big")
        if y_parity > 1 or not 0 < s <= SECP256K1_N // 2:
            return None

        message = (
            AUTH_MAGIC
            + self._chain_id.to_bytes(32, "big")
            + to_canonical_address(frame.address).rjust(32, b"\x00")
            + bytes(commit)
        )
        signer = ecrecover(keccak(message), y_parity + 27, r, s)
        if signer == ZERO_ADDRESS or signer != to_checksum_address(candidate):
            return None
        if self._authorities is not None and signer not in self._authorities:
            return None

        frame.authorized = signer
        return signer

    def authcall(
        self,
        frame: Frame,
        identity: str,
        target: str,
        value: int,
        data: bytes,
        gas: int,
    ) -> CallResult:
        """Delegated call from ``frame`` with ``identity`` as the sender."""
        if frame.authorized is None or to_checksum_address(identity) != frame.authorized:
            return CallResult(success=False)
        return self._call(
            payer=frame.address,
            sender=frame.authorized,
            to=target,
            value=value,
            data=data,
            gas=min(gas, frame.gas),
        )
