"""
Per-domain repository modules for database access.

Repositories flush but never commit: the service layer owns the transaction so
that each administrative operation is applied as a single unit.
"""
