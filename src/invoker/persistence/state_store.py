"""Journaled world state — contract storage slots and account balances.

Every write is journaled so that a failed invocation can be rolled back
to the snapshot taken when it started. Committed writes can be appended
to a JSONL file (one JSON object per line) and replayed on start-up.

The file is append-only: nothing is ever rewritten, and a slot's
current value is the last committed line for it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from eth_utils import to_checksum_address


SLOT_LENGTH = 32
EMPTY_VALUE = b"\x00" * SLOT_LENGTH

_StateKey = Union[tuple[str, bytes], str]


def _check_word(value: bytes, what: str) -> bytes:
    if len(value) != SLOT_LENGTH:
        raise ValueError(f"Storage {what} must be {SLOT_LENGTH} bytes, got {len(value)}")
    return bytes(value)


class ContractStorageView:
    """Storage of a single contract, backed by a StateStore."""

    def __init__(self, store: StateStore, address: str) -> None:
        self._store = store
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    def get(self, slot: bytes) -> bytes:
        return self._store.get_storage(self._address, slot)

    def set(self, slot: bytes, value: bytes) -> None:
        self._store.set_storage(self._address, slot, value)


class StateStore:
    """World state with snapshot/revert/commit and optional file persistence.

    Usage:
        store = StateStore(storage_path=Path("data/state.jsonl"))
        mark = store.snapshot()
        store.set_storage(address, slot, value)
        store.revert(mark)     # or store.commit()
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage: dict[tuple[str, bytes], bytes] = {}
        self._balances: dict[str, int] = {}
        # (key, previous value or None if the key was absent)
        self._journal: list[tuple[_StateKey, Optional[Union[bytes, int]]]] = []
        self._storage_path = storage_path

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    # ------------------------------------------------------------------
    # Storage and balances
    # ------------------------------------------------------------------

    def storage(self, address: str) -> ContractStorageView:
        return ContractStorageView(self, address)

    def get_storage(self, address: str, slot: bytes) -> bytes:
        key = (to_checksum_address(address), _check_word(slot, "slot"))
        return self._storage.get(key, EMPTY_VALUE)

    def set_storage(self, address: str, slot: bytes, value: bytes) -> None:
        key = (to_checksum_address(address), _check_word(slot, "slot"))
        value = _check_word(value, "value")
        self._journal.append((key, self._storage.get(key)))
        self._storage[key] = value

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_checksum_address(address), 0)

    def set_balance(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        address = to_checksum_address(address)
        self._journal.append((address, self._balances.get(address)))
        self._balances[address] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move ``amount`` between accounts.

        Raises ValueError if the sender cannot cover it.
        """
        if amount < 0:
            raise ValueError(f"Transfer amount cannot be negative: {amount}")
        if amount == 0:
            return
        available = self.balance_of(sender)
        if available < amount:
            raise ValueError(
                f"Insufficient balance for {sender}: has {available}, needs {amount}"
            )
        self.set_balance(sender, available - amount)
        self.set_balance(recipient, self.balance_of(recipient) + amount)

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def snapshot(self) -> int:
        return len(self._journal)

    def revert(self, snapshot: int) -> None:
        """Undo every write made after ``snapshot``."""
        if snapshot > len(self._journal):
            raise ValueError(f"Unknown snapshot {snapshot}")
        while len(self._journal) > snapshot:
            key, previous = self._journal.pop()
            target = self._storage if isinstance(key, tuple) else self._balances
            if previous is None:
                target.pop(key, None)
            else:
                target[key] = previous

    def commit(self) -> None:
        """Make all journaled writes permanent and persist them."""
        if self._storage_path and self._journal:
            self._append_to_file()
        self._journal.clear()

    @property
    def pending_writes(self) -> int:
        return len(self._journal)

    # ------------------------------------------------------------------
    # File persistence
    # ------------------------------------------------------------------

    def _append_to_file(self) -> None:
        touched: dict[_StateKey, None] = {}
        for key, _ in self._journal:
            touched[key] = None

        with self._storage_path.open("a", encoding="utf-8") as f:
            for key in touched:
                if isinstance(key, tuple):
                    address, slot = key
                    record = {
                        "kind": "storage",
                        "address": address,
                        "slot": slot.hex(),
                        "value": self._storage.get(key, EMPTY_VALUE).hex(),
                    }
                else:
                    record = {
                        "kind": "balance",
                        "address": key,
                        "balance": self._balances.get(key, 0),
                    }
                f.write(json.dumps(record, sort_keys=True) + "\n")

    def _load_from_file(self, path: Path) -> None:
        """Replay committed writes from a JSONL file.

        Fail-closed: a record with a malformed slot, value or kind
        aborts the load.
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    kind = data.get("kind")
                    address = to_checksum_address(data["address"])
                except (AttributeError, KeyError, TypeError, ValueError) as exc:
                    raise ValueError(f"Corrupt state record (line {line_num}): {exc!r}") from exc

                if kind == "storage":
                    try:
                        slot = _check_word(bytes.fromhex(data["slot"]), "slot")
                        value = _check_word(bytes.fromhex(data["value"]), "value")
                    except ValueError as exc:
                        raise ValueError(f"Corrupt storage record (line {line_num}): {exc}") from exc
                    self._storage[(address, slot)] = value
                elif kind == "balance":
                    balance = int(data["balance"])
                    if balance < 0:
                        raise ValueError(f"Corrupt balance record (line {line_num}): {balance}")
                    self._balances[address] = balance
                else:
                    raise ValueError(f"Unknown record kind (line {line_num}): {kind!r}")
