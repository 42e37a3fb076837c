"""Persistence backends for the ledger (in-memory and SQLite)."""
