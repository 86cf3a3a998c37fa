"""
PDC Kernel

Shared infrastructure for the post-dated cheque ledger:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock for deterministic date handling
- SQLAlchemy declarative base, engine and session scope
"""

__version__ = "0.1.0"
