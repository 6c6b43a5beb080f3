"""TransactionContext — per-invocation handle passed to every contract operation."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from did_ledger.state.store import StateStore


@dataclass
class TransactionContext:
    """The world state an operation runs against, plus its transaction id.

    Parameters
    ----------
    store:
        World-state store for this invocation.
    tx_id:
        Transaction identifier used in logs and audit events. A random hex
        id is generated when omitted.
    """

    store: StateStore
    tx_id: str = field(default_factory=lambda: uuid.uuid4().hex)
