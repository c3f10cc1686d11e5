"""SQLite-backed ledger store."""
