"""InMemoryStateStore — ordered in-memory world state.

Used by the test suite and by local tooling in place of a real ledger.
All public methods are thread-safe via a single :class:`threading.Lock`.
Range scans iterate over a snapshot taken when the cursor is opened, so
writes made during a scan are not observed by it.
"""
from __future__ import annotations

import threading
from collections.abc import Callable

from did_ledger.errors import StoreError
from did_ledger.state.store import StateCursor, StateStore


class InMemoryCursor(StateCursor):
    """Cursor over a snapshot of ``(key, value)`` pairs.

    Parameters
    ----------
    entries:
        Pairs in the order they should be produced.
    on_close:
        Callback invoked exactly once when the cursor is closed.
    """

    def __init__(
        self,
        entries: list[tuple[str, bytes]],
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._entries = entries
        self._position = 0
        self._closed = False
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._closed

    def has_next(self) -> bool:
        return not self._closed and self._position < len(self._entries)

    def next(self) -> tuple[str, bytes]:
        if self._closed:
            raise StoreError("Cannot read from a closed cursor.")
        if self._position >= len(self._entries):
            raise StoreError("Range scan is exhausted.")
        entry = self._entries[self._position]
        self._position += 1
        return entry

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()


class InMemoryStateStore(StateStore):
    """Dict-backed :class:`StateStore` with ordered range scans.

    Parameters
    ----------
    initial:
        Optional mapping of key to bytes used to pre-populate the store.

    Example
    -------
    ::

        store = InMemoryStateStore()
        store.put("DID0", b'{"id":"did:example:1"}')
        with store.scan("DID0", "DID99") as cursor:
            for key, value in cursor:
                print(key, value)
    """

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._state: dict[str, bytes] = dict(initial or {})
        self._open_cursors = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # StateStore interface
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._state.get(key)

    def put(self, key: str, value: bytes) -> None:
        if not key:
            raise StoreError("Key must not be empty.")
        with self._lock:
            self._state[key] = bytes(value)

    def scan(self, start_key: str, end_key: str) -> InMemoryCursor:
        with self._lock:
            entries = [
                (key, self._state[key])
                for key in sorted(self._state)
                if key >= start_key and (not end_key or key < end_key)
            ]
            self._open_cursors += 1
        return InMemoryCursor(entries, on_close=self._release_cursor)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def open_cursors(self) -> int:
        """Number of cursors opened by :meth:`scan` and not yet closed."""
        with self._lock:
            return self._open_cursors

    def keys(self) -> list[str]:
        """Return all stored keys in ascending order."""
        with self._lock:
            return sorted(self._state)

    def snapshot(self) -> dict[str, bytes]:
        """Return a shallow copy of the stored key/value map."""
        with self._lock:
            return dict(self._state)

    def _release_cursor(self) -> None:
        with self._lock:
            self._open_cursors -= 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._state)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._state
