"""did_ledger.contract — the DID record operations and their key layout."""
from __future__ import annotations

from did_ledger.contract.context import TransactionContext
from did_ledger.contract.did_contract import CorruptRecordPolicy, DidContract
from did_ledger.contract.keys import KeyScheme
from did_ledger.contract.seed import SEED_DIDS

__all__ = [
    "CorruptRecordPolicy",
    "DidContract",
    "KeyScheme",
    "SEED_DIDS",
    "TransactionContext",
]
