"""
pdc_batch -- Batch execution and daily scheduling for PDC housekeeping.

Provides a batch executor with per-item SAVEPOINT isolation and an
in-process daily scheduler.  The due-transition job (RECEIVED -> DUE) is
the task this package exists to run; tasks themselves live next to the
module they operate on (``pdc_modules.cheques.tasks``).

Architecture:
    pdc_batch/ is a top-level package.  ``tasks/base.py`` and ``domain/``
    import nothing from pdc_modules; the executor and scheduler depend only
    on pdc_kernel (clock, logging) and SQLAlchemy sessions.

Invariants:
    - One item's failure never aborts the run (SAVEPOINT per item).
    - All timestamps come from the injected Clock.
    - The daily scheduler fires at most once per calendar day.
    - ``stop()`` is graceful: the current tick finishes first.
"""
