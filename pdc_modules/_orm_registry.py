"""
Module ORM Registry (``pdc_modules._orm_registry``).

Responsibility
--------------
Ensure every module-level SQLAlchemy ORM model is imported so that
``Base.metadata`` holds its table before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily by
``pdc_kernel.db.engine.create_tables`` and by ``tests/conftest.py``.
"""


def import_all_orm_models() -> None:
    """Import every ``pdc_modules.*.orm`` module.  Idempotent."""
    import pdc_modules.cheques.orm  # noqa: F401
