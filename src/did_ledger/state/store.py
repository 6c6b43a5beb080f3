"""World-state store boundary — abstract store and range-scan cursor.

StateStore is the contract consumed from the host ledger: point reads and
writes by key plus ordered range scans. Implementations report every
failure as :class:`~did_ledger.errors.StoreError`.

StateCursor is the handle returned by :meth:`StateStore.scan`. It must be
closed once iteration ends; using it as a context manager guarantees that::

    with store.scan("DID0", "DID99") as cursor:
        while cursor.has_next():
            key, value = cursor.next()
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from types import TracebackType


class StateCursor(ABC):
    """Ordered iterator over ``(key, value)`` pairs of a range scan."""

    @abstractmethod
    def has_next(self) -> bool:
        """Return True if another entry is available."""

    @abstractmethod
    def next(self) -> tuple[str, bytes]:
        """Return the next ``(key, value)`` pair.

        Raises
        ------
        StoreError
            If the store fails to produce the entry, the cursor is closed,
            or the scan is exhausted.
        """

    @abstractmethod
    def close(self) -> None:
        """Release store-side iteration resources. Idempotent."""

    def __enter__(self) -> "StateCursor":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[str, bytes]]:
        while self.has_next():
            yield self.next()


class StateStore(ABC):
    """Abstract ordered key-value world state."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the bytes stored under *key*, or None if the key is absent.

        Raises
        ------
        StoreError
            If the read itself fails.
        """

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous value.

        Raises
        ------
        StoreError
            If the write fails.
        """

    @abstractmethod
    def scan(self, start_key: str, end_key: str) -> StateCursor:
        """Open a cursor over keys in ``[start_key, end_key)`` in ascending order.

        An empty *end_key* leaves the range unbounded above.

        Raises
        ------
        StoreError
            If the range cannot be opened.
        """
