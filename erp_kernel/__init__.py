"""
ERP Kernel - record store, snapshots and shared infrastructure.

The accounting engine never persists a ledger. The kernel owns:
- Structured logging and the typed exception hierarchy
- Domain values (Decimal money helpers, reporting windows, snapshots)
- The SQLAlchemy record store (products, batches, invoices, settlements)
- Read-only selectors that turn ORM rows into frozen snapshots
"""

__version__ = "0.1.0"
