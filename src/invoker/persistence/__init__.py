"""Persistence — journaled world state with optional JSONL backing."""

from invoker.persistence.state_store import ContractStorageView, StateStore

__all__ = ["ContractStorageView", "StateStore"]
