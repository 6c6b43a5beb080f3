"""Command-line interface for did-ledger."""
