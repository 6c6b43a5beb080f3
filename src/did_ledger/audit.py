"""LedgerAuditLogger — JSONL audit trail for world-state writes.

Every write performed by the contract (seeding the ledger, creating or
overwriting a DID record) is appended as a single JSON line to the
configured log file. Reads are not audited.

If no file path is configured the logger keeps events in an in-memory
buffer that can be drained via :meth:`LedgerAuditLogger.drain_buffer`.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from pathlib import Path

SEEDED = "ledger_seeded"
CREATED = "did_created"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class AuditEvent:
    """One audited write.

    ``key`` is the storage key written, or ``"*"`` for an event that
    covers several keys (the keys are then listed in ``details``).
    """

    event_type: str
    key: str
    tx_id: str
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "key": self.key,
            "tx_id": self.tx_id,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


class LedgerAuditLogger:
    """Append-only audit sink for the contract's writes.

    Parameters
    ----------
    log_path:
        JSONL file to append to; parent directories are created. When
        None, events are held in memory until drained.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._pending: list[str] = []
        self._lock = threading.Lock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def record(self, event: AuditEvent) -> None:
        """Append *event* to the file, or to the pending buffer."""
        line = event.to_json()
        with self._lock:
            if self._log_path is None:
                self._pending.append(line)
                return
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    def log_seeded(self, keys: list[str], tx_id: str) -> None:
        self.record(AuditEvent(SEEDED, key="*", tx_id=tx_id, details={"keys": list(keys)}))

    def log_created(self, key: str, did_id: str, tx_id: str) -> None:
        self.record(AuditEvent(CREATED, key=key, tx_id=tx_id, details={"did": did_id}))

    # ------------------------------------------------------------------
    # Reading back
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the pending in-memory lines, oldest first."""
        with self._lock:
            lines, self._pending = self._pending, []
        return lines

    def read_log(self) -> list[dict[str, object]]:
        """Parse every recorded event, oldest first, without draining."""
        with self._lock:
            if self._log_path is None:
                lines = list(self._pending)
            elif self._log_path.exists():
                lines = self._log_path.read_text(encoding="utf-8").splitlines()
            else:
                lines = []
        return [json.loads(line) for line in lines if line.strip()]
