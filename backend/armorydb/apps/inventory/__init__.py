"""
Inventory module.

Stock ledger per base, the append-only transaction log, the operation
gateway (purchase / transfer / assign / expend) and dashboard balances.
"""
