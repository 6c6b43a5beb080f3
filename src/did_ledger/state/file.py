"""FileStateStore — in-memory world state persisted to an NDJSON file.

Each line of the file holds one entry::

    {"key": "DID0", "value": "<base64 of the stored bytes>"}

Lines are written in ascending key order. The whole file is rewritten
after every :meth:`FileStateStore.put`, which keeps the format simple and
is adequate for the development and CLI scenarios this store serves.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import threading
from pathlib import Path

from did_ledger.errors import StoreError
from did_ledger.state.memory import InMemoryStateStore

logger = logging.getLogger(__name__)


class FileStateStore(InMemoryStateStore):
    """File-backed :class:`~did_ledger.state.memory.InMemoryStateStore`.

    Parameters
    ----------
    path:
        NDJSON file holding the world state. It is read on construction if
        it exists and created on the first write; parent directories are
        created automatically.

    Raises
    ------
    StoreError
        If an existing file cannot be read or contains a malformed line.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(self._load(path))
        self._path = path
        # Serializes put + flush so the file always matches memory.
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def put(self, key: str, value: bytes) -> None:
        """Store *value* under *key* and rewrite the state file.

        If the file cannot be written the in-memory entry is restored to
        its previous value before :class:`StoreError` is raised.
        """
        with self._write_lock:
            previous = self.get(key)
            super().put(key, value)
            try:
                self._flush()
            except StoreError:
                self._restore(key, previous)
                raise

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _restore(self, key: str, previous: bytes | None) -> None:
        with self._lock:
            if previous is None:
                self._state.pop(key, None)
            else:
                self._state[key] = previous

    def _flush(self) -> None:
        lines = [
            json.dumps(
                {"key": key, "value": base64.b64encode(value).decode("ascii")},
                separators=(",", ":"),
            )
            for key, value in sorted(self.snapshot().items())
        ]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Failed to write state file {str(self._path)!r}.", exc) from exc

    @staticmethod
    def _load(path: Path) -> dict[str, bytes]:
        if not path.exists():
            return {}
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Failed to read state file {str(path)!r}.", exc) from exc

        state: dict[str, bytes] = {}
        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            raw_line = raw_line.strip()
            if not raw_line:
                continue
            try:
                entry = json.loads(raw_line)
                state[str(entry["key"])] = base64.b64decode(entry["value"], validate=True)
            except (json.JSONDecodeError, KeyError, TypeError, binascii.Error) as exc:
                raise StoreError(
                    f"Invalid state entry on line {line_number} of {str(path)!r}:", exc
                ) from exc
        logger.debug("Loaded %d entries from %s", len(state), path)
        return state
