"""LedgerSettings — configuration for the DID contract and its stores.

Settings can be built directly or read from the environment::

    DID_LEDGER_KEY_PREFIX       storage key prefix (default "DID")
    DID_LEDGER_SCAN_START       first key of the scan bracket (default "DID0")
    DID_LEDGER_SCAN_END         exclusive end of the scan bracket (default "DID99")
    DID_LEDGER_CORRUPT_POLICY   "raise" or "skip" (default "raise")
    DID_LEDGER_STATE_FILE       NDJSON world-state file (default: in-memory)
    DID_LEDGER_AUDIT_LOG        JSONL audit log (default: none)
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from did_ledger.contract.did_contract import CorruptRecordPolicy
from did_ledger.contract.keys import (
    DEFAULT_PREFIX,
    DEFAULT_SCAN_END,
    DEFAULT_SCAN_START,
    KeyScheme,
)
from did_ledger.state.file import FileStateStore
from did_ledger.state.memory import InMemoryStateStore
from did_ledger.state.store import StateStore

ENV_PREFIX = "DID_LEDGER_"

_ENV_FIELDS = {
    "KEY_PREFIX": "key_prefix",
    "SCAN_START": "scan_start",
    "SCAN_END": "scan_end",
    "CORRUPT_POLICY": "corrupt_policy",
    "STATE_FILE": "state_file",
    "AUDIT_LOG": "audit_log",
}


class LedgerSettings(BaseModel):
    """Runtime configuration for did-ledger."""

    key_prefix: str = Field(default=DEFAULT_PREFIX, min_length=1)
    scan_start: str = DEFAULT_SCAN_START
    scan_end: str = DEFAULT_SCAN_END
    corrupt_policy: CorruptRecordPolicy = CorruptRecordPolicy.RAISE
    state_file: Path | None = None
    audit_log: Path | None = None

    @model_validator(mode="after")
    def validate_scan_bracket(self) -> "LedgerSettings":
        """Ensure the scan bracket is not empty."""
        if self.scan_end and self.scan_end <= self.scan_start:
            raise ValueError(
                f"scan_end {self.scan_end!r} must sort after scan_start {self.scan_start!r}."
            )
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LedgerSettings":
        """Build settings from ``DID_LEDGER_*`` environment variables.

        Parameters
        ----------
        environ:
            Mapping to read instead of :data:`os.environ`.

        Raises
        ------
        pydantic.ValidationError
            If a variable holds an invalid value.
        """
        source = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = source.get(ENV_PREFIX + suffix)
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)

    def key_scheme(self) -> KeyScheme:
        return KeyScheme(
            prefix=self.key_prefix,
            scan_start=self.scan_start,
            scan_end=self.scan_end,
        )

    def open_store(self) -> StateStore:
        """Return a file-backed store when ``state_file`` is set, else an in-memory one."""
        if self.state_file is not None:
            return FileStateStore(self.state_file)
        return InMemoryStateStore()
