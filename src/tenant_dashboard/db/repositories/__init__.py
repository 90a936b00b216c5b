"""
tenant_dashboard.db.repositories

Repository layer: one class per table, constructed over an `AsyncSession`.
Repositories flush but never commit; the caller owns the transaction.
"""
