"""did-ledger — DID document records over a key-value world state.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import did_ledger
>>> did_ledger.__version__
'0.1.0'

Quick start
-----------
::

    from did_ledger import DidContract, InMemoryStateStore, TransactionContext

    contract = DidContract()
    ctx = TransactionContext(store=InMemoryStateStore())
    contract.init_ledger(ctx)
    for result in contract.query_all_dids(ctx):
        print(result.key, result.record.id)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from did_ledger.errors import (
    InvocationError,
    LedgerError,
    RecordNotFoundError,
    SerializationFault,
    StoreError,
)

# ------------------------------------------------------------------
# Record model
# ------------------------------------------------------------------
from did_ledger.record.model import DidRecord, QueryResult

# ------------------------------------------------------------------
# World-state stores
# ------------------------------------------------------------------
from did_ledger.state.file import FileStateStore
from did_ledger.state.memory import InMemoryStateStore
from did_ledger.state.store import StateCursor, StateStore

# ------------------------------------------------------------------
# Contract
# ------------------------------------------------------------------
from did_ledger.contract.context import TransactionContext
from did_ledger.contract.did_contract import CorruptRecordPolicy, DidContract
from did_ledger.contract.keys import KeyScheme
from did_ledger.contract.seed import SEED_DIDS

# ------------------------------------------------------------------
# Ambient
# ------------------------------------------------------------------
from did_ledger.audit import AuditEvent, LedgerAuditLogger
from did_ledger.config import LedgerSettings

__all__ = [
    # version
    "__version__",
    # errors
    "InvocationError",
    "LedgerError",
    "RecordNotFoundError",
    "SerializationFault",
    "StoreError",
    # record
    "DidRecord",
    "QueryResult",
    # state
    "FileStateStore",
    "InMemoryStateStore",
    "StateCursor",
    "StateStore",
    # contract
    "CorruptRecordPolicy",
    "DidContract",
    "KeyScheme",
    "SEED_DIDS",
    "TransactionContext",
    # ambient
    "AuditEvent",
    "LedgerAuditLogger",
    "LedgerSettings",
]
