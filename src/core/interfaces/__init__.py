"""Contracts (Protocol) implemented by the adapters: ledger reads and signature checks."""
