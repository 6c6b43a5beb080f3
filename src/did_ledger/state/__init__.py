"""did_ledger.state — the world-state store boundary and reference stores.

Submodules
----------
store
    StateStore and StateCursor abstract base classes.
memory
    InMemoryStateStore, an ordered thread-safe in-memory store.
file
    FileStateStore, an in-memory store persisted to an NDJSON file.
"""
from __future__ import annotations

from did_ledger.state.file import FileStateStore
from did_ledger.state.memory import InMemoryCursor, InMemoryStateStore
from did_ledger.state.store import StateCursor, StateStore

__all__ = [
    "FileStateStore",
    "InMemoryCursor",
    "InMemoryStateStore",
    "StateCursor",
    "StateStore",
]
