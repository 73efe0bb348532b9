"""
Stock Kernel - FIFO purchase-lot bookkeeping core.

Layers:
    db/          engine, declarative base, transactional scope
    models/      ORM tables (catalog, purchase lots, counts, year locks)
    domain/      pure value objects, clock, validation policy
    services/    flush-only write services (year locks, catalog)
    selectors/   read-only queries returning frozen DTOs
"""

__version__ = "0.1.0"
