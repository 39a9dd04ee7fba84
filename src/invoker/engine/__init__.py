"""Relay engine — dispatch, replay guard and call forwarding."""

from invoker.engine.dispatcher import Invoker
from invoker.engine.forwarder import CallForwarder
from invoker.engine.replay_guard import ReplayGuard, commit_slot

__all__ = ["Invoker", "CallForwarder", "ReplayGuard", "commit_slot"]
