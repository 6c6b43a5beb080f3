"""KeyScheme — storage key layout for DID records.

Seeded records are filed under ``<prefix><index>`` (``DID0``, ``DID1``, ...)
and the search/enumeration operations scan the half-open lexical bracket
``[scan_start, scan_end)``. With the defaults (``DID0``..``DID99``) the
bracket is sized for two-digit suffixes; keys outside it, such as ``DID99``
or ``ACCOUNT1``, are never returned by a scan.
"""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PREFIX = "DID"
DEFAULT_SCAN_START = "DID0"
DEFAULT_SCAN_END = "DID99"


@dataclass(frozen=True)
class KeyScheme:
    """Key prefix and scan bracket used by the DID contract."""

    prefix: str = DEFAULT_PREFIX
    scan_start: str = DEFAULT_SCAN_START
    scan_end: str = DEFAULT_SCAN_END

    def __post_init__(self) -> None:
        if self.scan_end and self.scan_end <= self.scan_start:
            raise ValueError(
                f"scan_end {self.scan_end!r} must sort after scan_start {self.scan_start!r}."
            )

    def key_for(self, index: int) -> str:
        """Return the storage key for the zero-based sequence *index*."""
        return f"{self.prefix}{index}"

    def in_scan_range(self, key: str) -> bool:
        """Return True if *key* is visited by a range scan."""
        return key >= self.scan_start and (not self.scan_end or key < self.scan_end)
