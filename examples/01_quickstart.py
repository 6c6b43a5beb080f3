#!/usr/bin/env python3
"""Example: Quickstart

Seeds an in-memory world state, adds a DID record, and runs the three
read operations against it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install did-ledger
"""
from __future__ import annotations

import did_ledger
from did_ledger import DidContract, InMemoryStateStore, TransactionContext


def main() -> None:
    print(f"did-ledger version: {did_ledger.__version__}")

    # Step 1: Seed the ledger with the example records
    contract = DidContract()
    ctx = TransactionContext(store=InMemoryStateStore())
    contract.init_ledger(ctx)
    print(f"Seeded keys: {contract.seed_keys()}")

    # Step 2: Add a record of our own
    contract.create_did(
        ctx,
        "DID2",
        "did:example:quickstart",
        "did:example:quickstart#keys-1",
        "Ed25519VerificationKey2018",
        "did:example:quickstart",
        "-----BEGIN PUBLIC KEY...END PUBLIC KEY-----\r\n",
        "did:example:quickstart#vcs",
        "VerifiableCredentialService",
        "https://quickstart.example/vc/",
    )

    # Step 3: Read it back by key and by DID
    by_key = contract.query_did_by_key(ctx, "DID2")
    print(f"DID2 -> {by_key.id}")
    by_id = contract.query_did_by_id(ctx, "did:example:12346789asdfghjkl")
    print(f"did:example:12346789asdfghjkl -> {by_id.service_end_point}")

    # Step 4: Enumerate everything in the scan range
    for result in contract.query_all_dids(ctx):
        print(f"{result.key}: {result.record.id}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
