"""HTTP transport for the ledger."""
