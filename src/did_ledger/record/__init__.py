"""did_ledger.record — the DID record model and its stored form."""
from __future__ import annotations

from did_ledger.record.model import WIRE_FIELDS, DidRecord, QueryResult

__all__ = ["WIRE_FIELDS", "DidRecord", "QueryResult"]
