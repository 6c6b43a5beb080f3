"""DidContract — seed, write, read, search, and enumerate DID records.

Every operation receives a :class:`~did_ledger.contract.context.TransactionContext`
carrying the world-state store, runs synchronously, and touches the store
only through :class:`~did_ledger.state.store.StateStore`. Isolation between
concurrent invocations is left to the store.

The host-visible operation names are:

================  ==========================================
InitLedger        :meth:`DidContract.init_ledger`
CreateDid         :meth:`DidContract.create_did`
QueryDidByKey     :meth:`DidContract.query_did_by_key`
QueryDidById      :meth:`DidContract.query_did_by_id`
QueryAllDids      :meth:`DidContract.query_all_dids`
================  ==========================================

:meth:`DidContract.invoke` dispatches a transaction by name.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing
from enum import Enum
from typing import TYPE_CHECKING

from did_ledger.audit import LedgerAuditLogger
from did_ledger.contract.context import TransactionContext
from did_ledger.contract.keys import KeyScheme
from did_ledger.contract.seed import SEED_DIDS
from did_ledger.errors import InvocationError, RecordNotFoundError, SerializationFault, StoreError
from did_ledger.record.model import DidRecord, QueryResult

if TYPE_CHECKING:
    from did_ledger.config import LedgerSettings

logger = logging.getLogger(__name__)


class CorruptRecordPolicy(str, Enum):
    """What range scans do with an entry whose bytes cannot be decoded."""

    RAISE = "raise"
    SKIP = "skip"


class DidContract:
    """Record manager for DID documents held in a key-value world state.

    Parameters
    ----------
    key_scheme:
        Key prefix and scan bracket. Defaults to ``DID<n>`` keys scanned
        over ``["DID0", "DID99")``.
    seed:
        Records written by :meth:`init_ledger`. Defaults to
        :data:`~did_ledger.contract.seed.SEED_DIDS`.
    corrupt_policy:
        Handling of undecodable entries met during a range scan.
        ``RAISE`` propagates :class:`SerializationFault`; ``SKIP`` logs a
        warning and leaves the entry out.
    audit_logger:
        Optional audit trail receiving one event per write.

    Example
    -------
    ::

        store = InMemoryStateStore()
        contract = DidContract()
        ctx = TransactionContext(store=store)
        contract.init_ledger(ctx)
        record = contract.query_did_by_key(ctx, "DID0")
        print(record.id)  # "did:example:12346789abcdefghi"
    """

    def __init__(
        self,
        key_scheme: KeyScheme | None = None,
        seed: Sequence[DidRecord] | None = None,
        corrupt_policy: CorruptRecordPolicy = CorruptRecordPolicy.RAISE,
        audit_logger: LedgerAuditLogger | None = None,
    ) -> None:
        self._keys = key_scheme or KeyScheme()
        self._seed: tuple[DidRecord, ...] = tuple(SEED_DIDS if seed is None else seed)
        self._corrupt_policy = CorruptRecordPolicy(corrupt_policy)
        self._audit = audit_logger

    @classmethod
    def from_settings(cls, settings: "LedgerSettings") -> "DidContract":
        """Build a contract from :class:`~did_ledger.config.LedgerSettings`."""
        audit_logger = (
            LedgerAuditLogger(settings.audit_log) if settings.audit_log is not None else None
        )
        return cls(
            key_scheme=settings.key_scheme(),
            corrupt_policy=settings.corrupt_policy,
            audit_logger=audit_logger,
        )

    @property
    def key_scheme(self) -> KeyScheme:
        return self._keys

    @property
    def corrupt_policy(self) -> CorruptRecordPolicy:
        return self._corrupt_policy

    def seed_keys(self) -> list[str]:
        """Return the keys :meth:`init_ledger` writes, in write order."""
        return [self._keys.key_for(index) for index in range(len(self._seed))]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def init_ledger(self, ctx: TransactionContext) -> None:
        """Write the seed records under ``<prefix>0``, ``<prefix>1``, ...

        Writes are issued in order and are not rolled back: if one fails,
        the records written before it stay committed and are still audited.

        Raises
        ------
        StoreError
            On the first failed write.
        """
        written: list[str] = []
        for key, record in zip(self.seed_keys(), self._seed):
            try:
                ctx.store.put(key, record.to_bytes())
            except StoreError as exc:
                if written and self._audit is not None:
                    self._audit.log_seeded(written, tx_id=ctx.tx_id)
                raise StoreError("Failed to put to world state.", exc) from exc
            written.append(key)

        logger.info("tx %s seeded %d DID records: %s", ctx.tx_id, len(written), written)
        if self._audit is not None:
            self._audit.log_seeded(written, tx_id=ctx.tx_id)

    def create_did(
        self,
        ctx: TransactionContext,
        key: str,
        did_id: str,
        authentication_id: str,
        authentication_type: str,
        authentication_controller: str,
        authentication_public_key_perm: str,
        service_id: str,
        service_type: str,
        service_end_point: str,
    ) -> None:
        """Store a DID record under *key*, replacing any previous value.

        No validation is applied to the key or the field values.

        Raises
        ------
        StoreError
            Propagated unchanged from the store.
        """
        record = DidRecord(
            id=did_id,
            authentication_id=authentication_id,
            authentication_type=authentication_type,
            authentication_controller=authentication_controller,
            authentication_public_key_perm=authentication_public_key_perm,
            service_id=service_id,
            service_type=service_type,
            service_end_point=service_end_point,
        )
        ctx.store.put(key, record.to_bytes())

        logger.info("tx %s stored DID %r under key %r", ctx.tx_id, did_id, key)
        if self._audit is not None:
            self._audit.log_created(key, did_id, tx_id=ctx.tx_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query_did_by_key(self, ctx: TransactionContext, key: str) -> DidRecord:
        """Return the record stored under *key*.

        Raises
        ------
        StoreError
            If the store read fails.
        RecordNotFoundError
            If nothing is stored under *key*.
        SerializationFault
            If the stored bytes are malformed.
        """
        try:
            value = ctx.store.get(key)
        except StoreError as exc:
            raise StoreError("Failed to read from world state.", exc) from exc

        if value is None:
            raise RecordNotFoundError(key)

        logger.debug("tx %s read key %r", ctx.tx_id, key)
        return DidRecord.from_bytes(value, key=key)

    def query_did_by_id(self, ctx: TransactionContext, did_id: str) -> DidRecord:
        """Return the first record in scan order whose ``id`` equals *did_id*.

        The scan stops at the first match; later records with the same
        ``id`` are never inspected.

        Raises
        ------
        RecordNotFoundError
            If no scanned record carries *did_id*.
        StoreError
            If opening or advancing the scan fails.
        SerializationFault
            If an undecodable entry is met and the policy is ``RAISE``.
        """
        scanned = 0
        with closing(self._scan(ctx)) as results:
            for result in results:
                scanned += 1
                if result.record.id == did_id:
                    logger.debug(
                        "tx %s found DID %r under key %r after %d entries",
                        ctx.tx_id,
                        did_id,
                        result.key,
                        scanned,
                    )
                    return result.record

        logger.debug("tx %s scanned %d entries without a match for %r", ctx.tx_id, scanned, did_id)
        raise RecordNotFoundError(did_id)

    def query_all_dids(self, ctx: TransactionContext) -> list[QueryResult]:
        """Return every record in the scan bracket, paired with its key, in scan order.

        Raises
        ------
        StoreError
            If opening or advancing the scan fails.
        SerializationFault
            If an undecodable entry is met and the policy is ``RAISE``.
        """
        results = list(self._scan(ctx))
        logger.debug("tx %s enumerated %d DID records", ctx.tx_id, len(results))
        return results

    def _scan(self, ctx: TransactionContext) -> Iterator[QueryResult]:
        """Yield decoded entries of the scan bracket.

        The cursor is closed when the generator finishes, raises, or is
        closed early by the consumer.
        """
        try:
            cursor = ctx.store.scan(self._keys.scan_start, self._keys.scan_end)
        except StoreError as exc:
            raise StoreError("Failed to open range scan.", exc) from exc

        with cursor:
            while cursor.has_next():
                try:
                    key, value = cursor.next()
                except StoreError as exc:
                    raise StoreError("Failed to read next scan entry.", exc) from exc
                try:
                    record = DidRecord.from_bytes(value, key=key)
                except SerializationFault:
                    if self._corrupt_policy is CorruptRecordPolicy.RAISE:
                        raise
                    logger.warning("tx %s skipped undecodable entry at key %r", ctx.tx_id, key)
                    continue
                yield QueryResult(key=key, record=record)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _routes(self) -> dict[str, tuple[int, Callable[..., object]]]:
        return {
            "InitLedger": (0, self.init_ledger),
            "CreateDid": (9, self.create_did),
            "QueryDidByKey": (1, self.query_did_by_key),
            "QueryDidById": (1, self.query_did_by_id),
            "QueryAllDids": (0, self.query_all_dids),
        }

    def functions(self) -> list[str]:
        """Return the transaction names accepted by :meth:`invoke`."""
        return list(self._routes())

    def invoke(self, ctx: TransactionContext, function: str, args: Sequence[str] = ()) -> object:
        """Run the operation named *function* with string arguments.

        Returns
        -------
        object
            ``None`` for writes, the record's wire dict for single-record
            queries, and a list of ``{"Key", "Record"}`` dicts for
            ``QueryAllDids``.

        Raises
        ------
        InvocationError
            If *function* is unknown or *args* has the wrong length. Raised
            before the store is touched.
        """
        routes = self._routes()
        if function not in routes:
            raise InvocationError(
                f"Unknown function {function!r}. Expected one of: {', '.join(routes)}."
            )
        arity, handler = routes[function]
        if len(args) != arity:
            raise InvocationError(
                f"{function} takes {arity} argument(s), got {len(args)}."
            )

        logger.debug("tx %s invoking %s", ctx.tx_id, function)
        result = handler(ctx, *args)
        if isinstance(result, DidRecord):
            return result.to_dict()
        if isinstance(result, list):
            return [item.to_dict() for item in result]
        return result
