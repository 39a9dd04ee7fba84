"""Execution runtime — the host boundary and an in-memory reference host."""
