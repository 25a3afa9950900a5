"""Orchestration of the ledger reads and codecs."""
