"""Tests for did_ledger.contract.did_contract — DidContract operations."""
from __future__ import annotations

import logging

import pytest

from did_ledger.audit import LedgerAuditLogger
from did_ledger.contract import (
    SEED_DIDS,
    CorruptRecordPolicy,
    DidContract,
    KeyScheme,
    TransactionContext,
)
from did_ledger.errors import (
    InvocationError,
    RecordNotFoundError,
    SerializationFault,
    StoreError,
)
from did_ledger.record.model import DidRecord
from did_ledger.state.memory import InMemoryCursor, InMemoryStateStore


# ---------------------------------------------------------------------------
# Faulty stores
# ---------------------------------------------------------------------------


class _FailingPutStore(InMemoryStateStore):
    """Fails every put after the first *allowed* succeed."""

    def __init__(self, allowed: int = 0) -> None:
        super().__init__()
        self._allowed = allowed

    def put(self, key: str, value: bytes) -> None:
        if self._allowed <= 0:
            raise StoreError("disk full")
        self._allowed -= 1
        super().put(key, value)


class _FailingGetStore(InMemoryStateStore):
    def get(self, key: str) -> bytes | None:
        raise StoreError("connection reset")


class _FailingScanStore(InMemoryStateStore):
    def scan(self, start_key: str, end_key: str) -> InMemoryCursor:
        raise StoreError("range unavailable")


class _FlakyCursor(InMemoryCursor):
    def __init__(self, inner: InMemoryCursor, fail_at: int) -> None:
        super().__init__([])
        self._inner = inner
        self._fail_at = fail_at
        self._reads = 0

    def has_next(self) -> bool:
        return self._inner.has_next()

    def next(self) -> tuple[str, bytes]:
        if self._reads == self._fail_at:
            raise StoreError("iterator broken")
        self._reads += 1
        return self._inner.next()

    def close(self) -> None:
        self._inner.close()


class _FlakyScanStore(InMemoryStateStore):
    """Scans fail on the ``fail_at``-th call to next()."""

    def __init__(self, fail_at: int) -> None:
        super().__init__()
        self._fail_at = fail_at

    def scan(self, start_key: str, end_key: str) -> InMemoryCursor:
        return _FlakyCursor(super().scan(start_key, end_key), self._fail_at)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _fields(did_id: str, endpoint: str = "https://example.org/vc/") -> list[str]:
    return [
        did_id,
        f"{did_id}#keys-1",
        "Ed25519VerificationKey2018",
        did_id,
        "-----BEGIN PUBLIC KEY...END PUBLIC KEY-----\r\n",
        f"{did_id}#vcs",
        "VerifiableCredentialService",
        endpoint,
    ]


@pytest.fixture()
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture()
def ctx(store: InMemoryStateStore) -> TransactionContext:
    return TransactionContext(store=store, tx_id="tx-test")


@pytest.fixture()
def contract() -> DidContract:
    return DidContract()


@pytest.fixture()
def seeded(contract: DidContract, ctx: TransactionContext) -> TransactionContext:
    contract.init_ledger(ctx)
    return ctx


# ---------------------------------------------------------------------------
# InitLedger
# ---------------------------------------------------------------------------


class TestInitLedger:
    def test_writes_exactly_the_seed_keys(
        self, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        assert store.keys() == ["DID0", "DID1"]

    def test_seed_content_matches(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        assert contract.query_did_by_key(seeded, "DID0") == SEED_DIDS[0]
        assert contract.query_did_by_key(seeded, "DID1") == SEED_DIDS[1]

    def test_first_seed_record_fields(self) -> None:
        first = SEED_DIDS[0]
        assert first.id == "did:example:12346789abcdefghi"
        assert first.authentication_type == "RsaVerificationKey2018"
        assert first.service_end_point == "https://example.com/vc/"

    def test_second_seed_keeps_published_service_id(self) -> None:
        assert SEED_DIDS[1].service_id == "did:example:12346789aasdfghjkl#vcs"

    def test_rerun_is_idempotent(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        before = store.snapshot()
        contract.init_ledger(seeded)
        assert store.snapshot() == before

    def test_rerun_restores_overwritten_seed(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        contract.create_did(seeded, "DID0", *_fields("did:example:intruder"))
        contract.init_ledger(seeded)
        assert contract.query_did_by_key(seeded, "DID0") == SEED_DIDS[0]

    def test_write_failure_keeps_earlier_writes(self, contract: DidContract) -> None:
        store = _FailingPutStore(allowed=1)
        ctx = TransactionContext(store=store)
        with pytest.raises(StoreError, match="Failed to put to world state"):
            contract.init_ledger(ctx)
        assert store.keys() == ["DID0"]

    def test_custom_seed_and_prefix(self, store: InMemoryStateStore) -> None:
        records = [DidRecord(id=f"did:example:{n}") for n in range(3)]
        contract = DidContract(
            key_scheme=KeyScheme(prefix="REC", scan_start="REC0", scan_end="REC99"),
            seed=records,
        )
        contract.init_ledger(TransactionContext(store=store))
        assert store.keys() == ["REC0", "REC1", "REC2"]
        assert contract.seed_keys() == ["REC0", "REC1", "REC2"]

    def test_logs_seeded_keys(
        self, contract: DidContract, ctx: TransactionContext, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="did_ledger.contract.did_contract"):
            contract.init_ledger(ctx)
        assert "seeded 2 DID records" in caplog.text


# ---------------------------------------------------------------------------
# CreateDid / QueryDidByKey
# ---------------------------------------------------------------------------


class TestCreateAndQueryByKey:
    def test_write_then_read(self, contract: DidContract, ctx: TransactionContext) -> None:
        contract.create_did(ctx, "DID5", *_fields("did:example:bob"))
        record = contract.query_did_by_key(ctx, "DID5")
        assert record.id == "did:example:bob"
        assert record.authentication_id == "did:example:bob#keys-1"
        assert record.service_end_point == "https://example.org/vc/"

    def test_create_returns_none(self, contract: DidContract, ctx: TransactionContext) -> None:
        assert contract.create_did(ctx, "DID5", *_fields("did:example:bob")) is None

    def test_overwrite_last_write_wins(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.create_did(ctx, "DID5", *_fields("did:example:first"))
        contract.create_did(ctx, "DID5", *_fields("did:example:second"))
        assert contract.query_did_by_key(ctx, "DID5").id == "did:example:second"

    def test_arbitrary_key_and_empty_fields_accepted(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.create_did(ctx, "anything goes", *([""] * 8))
        assert contract.query_did_by_key(ctx, "anything goes") == DidRecord.empty()

    def test_missing_key_raises_not_found(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        with pytest.raises(RecordNotFoundError, match="DID999 does not exist") as excinfo:
            contract.query_did_by_key(ctx, "DID999")
        assert excinfo.value.subject == "DID999"

    def test_get_failure_raises_store_error(self, contract: DidContract) -> None:
        ctx = TransactionContext(store=_FailingGetStore())
        with pytest.raises(StoreError, match="Failed to read from world state"):
            contract.query_did_by_key(ctx, "DID0")

    def test_put_failure_propagates_store_error(self, contract: DidContract) -> None:
        ctx = TransactionContext(store=_FailingPutStore())
        with pytest.raises(StoreError, match="disk full"):
            contract.create_did(ctx, "DID5", *_fields("did:example:bob"))

    def test_corrupt_value_raises_serialization_fault(
        self, contract: DidContract, ctx: TransactionContext, store: InMemoryStateStore
    ) -> None:
        store.put("DID3", b"\x00garbage")
        with pytest.raises(SerializationFault) as excinfo:
            contract.query_did_by_key(ctx, "DID3")
        assert excinfo.value.key == "DID3"


# ---------------------------------------------------------------------------
# QueryDidById
# ---------------------------------------------------------------------------


class TestQueryById:
    def test_finds_seeded_record(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        record = contract.query_did_by_id(seeded, "did:example:12346789asdfghjkl")
        assert record == SEED_DIDS[1]

    def test_first_match_in_key_order_wins(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.create_did(ctx, "DID7", *_fields("did:example:dup", "https://late.example/"))
        contract.create_did(ctx, "DID3", *_fields("did:example:dup", "https://early.example/"))
        record = contract.query_did_by_id(ctx, "did:example:dup")
        assert record.service_end_point == "https://early.example/"

    def test_lexical_not_numeric_order(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.create_did(ctx, "DID2", *_fields("did:example:dup", "https://two.example/"))
        contract.create_did(ctx, "DID10", *_fields("did:example:dup", "https://ten.example/"))
        record = contract.query_did_by_id(ctx, "did:example:dup")
        assert record.service_end_point == "https://ten.example/"

    def test_match_is_exact(self, contract: DidContract, seeded: TransactionContext) -> None:
        with pytest.raises(RecordNotFoundError):
            contract.query_did_by_id(seeded, "did:example:12346789ABCDEFGHI")

    def test_no_match_raises_not_found_naming_id(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        with pytest.raises(RecordNotFoundError, match="did:example:nobody") as excinfo:
            contract.query_did_by_id(seeded, "did:example:nobody")
        assert excinfo.value.subject == "did:example:nobody"

    def test_keys_outside_bracket_are_not_searched(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.create_did(ctx, "DID99", *_fields("did:example:hidden"))
        contract.create_did(ctx, "OTHER0", *_fields("did:example:other"))
        with pytest.raises(RecordNotFoundError):
            contract.query_did_by_id(ctx, "did:example:hidden")
        with pytest.raises(RecordNotFoundError):
            contract.query_did_by_id(ctx, "did:example:other")

    def test_stops_scanning_after_match(self, contract: DidContract) -> None:
        store = _FlakyScanStore(fail_at=1)
        ctx = TransactionContext(store=store)
        contract.create_did(ctx, "DID0", *_fields("did:example:first"))
        contract.create_did(ctx, "DID1", *_fields("did:example:second"))
        # The second next() would fail; a match on the first entry never reaches it.
        assert contract.query_did_by_id(ctx, "did:example:first").id == "did:example:first"

    def test_cursor_closed_after_early_match(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        contract.query_did_by_id(seeded, "did:example:12346789abcdefghi")
        assert store.open_cursors == 0

    def test_cursor_closed_after_no_match(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        with pytest.raises(RecordNotFoundError):
            contract.query_did_by_id(seeded, "did:example:nobody")
        assert store.open_cursors == 0

    def test_cursor_closed_after_next_failure(self, contract: DidContract) -> None:
        store = _FlakyScanStore(fail_at=1)
        ctx = TransactionContext(store=store)
        contract.init_ledger(ctx)
        with pytest.raises(StoreError, match="iterator broken"):
            contract.query_did_by_id(ctx, "did:example:nobody")
        assert store.open_cursors == 0

    def test_scan_open_failure_raises_store_error(self, contract: DidContract) -> None:
        ctx = TransactionContext(store=_FailingScanStore())
        with pytest.raises(StoreError, match="range unavailable"):
            contract.query_did_by_id(ctx, "did:example:x")


# ---------------------------------------------------------------------------
# QueryAllDids
# ---------------------------------------------------------------------------


class TestQueryAll:
    def test_empty_store_returns_empty_list(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        assert contract.query_all_dids(ctx) == []

    def test_returns_seeded_records_with_keys(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        results = contract.query_all_dids(seeded)
        assert [r.key for r in results] == ["DID0", "DID1"]
        assert [r.record for r in results] == list(SEED_DIDS)

    def test_ascending_key_order_regardless_of_write_order(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        for key in ("DID4", "DID0", "DID3", "DID1", "DID2"):
            contract.create_did(ctx, key, *_fields(f"did:example:{key.lower()}"))
        results = contract.query_all_dids(ctx)
        assert [r.key for r in results] == ["DID0", "DID1", "DID2", "DID3", "DID4"]
        assert results[3].record.id == "did:example:did3"

    def test_no_deduplication(self, contract: DidContract, ctx: TransactionContext) -> None:
        contract.create_did(ctx, "DID0", *_fields("did:example:same"))
        contract.create_did(ctx, "DID1", *_fields("did:example:same"))
        assert len(contract.query_all_dids(ctx)) == 2

    def test_cursor_closed_after_enumeration(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        contract.query_all_dids(seeded)
        assert store.open_cursors == 0

    def test_next_failure_raises_and_closes_cursor(self, contract: DidContract) -> None:
        store = _FlakyScanStore(fail_at=1)
        ctx = TransactionContext(store=store)
        contract.init_ledger(ctx)
        with pytest.raises(StoreError):
            contract.query_all_dids(ctx)
        assert store.open_cursors == 0

    def test_scan_open_failure_raises_store_error(self, contract: DidContract) -> None:
        ctx = TransactionContext(store=_FailingScanStore())
        with pytest.raises(StoreError):
            contract.query_all_dids(ctx)

    def test_custom_scan_bracket_lifts_ceiling(self, ctx: TransactionContext) -> None:
        contract = DidContract(key_scheme=KeyScheme(scan_end=""))
        contract.create_did(ctx, "DID99", *_fields("did:example:late"))
        assert [r.key for r in contract.query_all_dids(ctx)] == ["DID99"]


# ---------------------------------------------------------------------------
# Corrupt record policy
# ---------------------------------------------------------------------------


class TestCorruptRecordPolicy:
    def test_raise_policy_propagates_fault(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        store.put("DID05", b"{broken")
        with pytest.raises(SerializationFault) as excinfo:
            contract.query_all_dids(seeded)
        assert excinfo.value.key == "DID05"
        assert store.open_cursors == 0

    def test_raise_policy_applies_to_search(
        self, contract: DidContract, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        store.put("DID05", b"{broken")
        with pytest.raises(SerializationFault):
            contract.query_did_by_id(seeded, "did:example:12346789asdfghjkl")

    def test_skip_policy_omits_entry(
        self,
        seeded: TransactionContext,
        store: InMemoryStateStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.put("DID05", b"{broken")
        contract = DidContract(corrupt_policy=CorruptRecordPolicy.SKIP)
        with caplog.at_level(logging.WARNING, logger="did_ledger.contract.did_contract"):
            results = contract.query_all_dids(seeded)
        assert [r.key for r in results] == ["DID0", "DID1"]
        assert "DID05" in caplog.text

    def test_skip_policy_search_continues_past_corrupt_entry(
        self, seeded: TransactionContext, store: InMemoryStateStore
    ) -> None:
        store.put("DID05", b"{broken")
        contract = DidContract(corrupt_policy="skip")  # type: ignore[arg-type]
        record = contract.query_did_by_id(seeded, "did:example:12346789asdfghjkl")
        assert record == SEED_DIDS[1]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestInvoke:
    def test_functions_lists_exposed_names(self, contract: DidContract) -> None:
        assert contract.functions() == [
            "InitLedger",
            "CreateDid",
            "QueryDidByKey",
            "QueryDidById",
            "QueryAllDids",
        ]

    def test_init_ledger_returns_none(
        self, contract: DidContract, ctx: TransactionContext, store: InMemoryStateStore
    ) -> None:
        assert contract.invoke(ctx, "InitLedger") is None
        assert len(store) == 2

    def test_create_then_query_by_key(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        contract.invoke(ctx, "CreateDid", ["DID9", *_fields("did:example:carol")])
        payload = contract.invoke(ctx, "QueryDidByKey", ["DID9"])
        assert isinstance(payload, dict)
        assert payload["id"] == "did:example:carol"
        assert payload["serviceType"] == "VerifiableCredentialService"

    def test_query_by_id_returns_wire_dict(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        payload = contract.invoke(seeded, "QueryDidById", ["did:example:12346789abcdefghi"])
        assert payload == SEED_DIDS[0].to_dict()

    def test_query_all_returns_key_record_dicts(
        self, contract: DidContract, seeded: TransactionContext
    ) -> None:
        payload = contract.invoke(seeded, "QueryAllDids")
        assert isinstance(payload, list)
        assert payload[0] == {"Key": "DID0", "Record": SEED_DIDS[0].to_dict()}

    def test_query_all_on_empty_store(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        assert contract.invoke(ctx, "QueryAllDids") == []

    def test_unknown_function_raises(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        with pytest.raises(InvocationError, match="Unknown function"):
            contract.invoke(ctx, "DeleteDid", ["DID0"])

    def test_wrong_arity_raises_before_store_access(self, contract: DidContract) -> None:
        store = _FailingPutStore()
        ctx = TransactionContext(store=store)
        with pytest.raises(InvocationError, match="takes 9"):
            contract.invoke(ctx, "CreateDid", ["DID0", "did:example:x"])

    def test_errors_from_operations_propagate(
        self, contract: DidContract, ctx: TransactionContext
    ) -> None:
        with pytest.raises(RecordNotFoundError):
            contract.invoke(ctx, "QueryDidByKey", ["DID999"])


# ---------------------------------------------------------------------------
# Audit integration
# ---------------------------------------------------------------------------


class TestAuditIntegration:
    def test_writes_are_audited(self, ctx: TransactionContext) -> None:
        audit = LedgerAuditLogger()
        contract = DidContract(audit_logger=audit)
        contract.init_ledger(ctx)
        contract.create_did(ctx, "DID5", *_fields("did:example:dave"))
        contract.query_all_dids(ctx)

        events = audit.read_log()
        assert [e["event_type"] for e in events] == ["ledger_seeded", "did_created"]
        assert events[0]["details"] == {"keys": ["DID0", "DID1"]}
        assert events[1]["key"] == "DID5"
        assert events[1]["tx_id"] == "tx-test"

    def test_partial_seed_audits_committed_keys(self) -> None:
        audit = LedgerAuditLogger()
        contract = DidContract(audit_logger=audit)
        store = _FailingPutStore(allowed=1)
        with pytest.raises(StoreError):
            contract.init_ledger(TransactionContext(store=store, tx_id="tx-partial"))

        events = audit.read_log()
        assert store.keys() == ["DID0"]
        assert len(events) == 1
        assert events[0]["details"] == {"keys": ["DID0"]}
        assert events[0]["tx_id"] == "tx-partial"

    def test_seed_failing_on_first_write_is_not_audited(self) -> None:
        audit = LedgerAuditLogger()
        contract = DidContract(audit_logger=audit)
        with pytest.raises(StoreError):
            contract.init_ledger(TransactionContext(store=_FailingPutStore()))
        assert audit.drain_buffer() == []

    def test_failed_write_is_not_audited(self) -> None:
        audit = LedgerAuditLogger()
        contract = DidContract(audit_logger=audit)
        with pytest.raises(StoreError):
            contract.create_did(
                TransactionContext(store=_FailingPutStore()), "DID5", *_fields("did:example:x")
            )
        assert audit.drain_buffer() == []
