"""
Pure domain layer.

No ORM, database or I/O dependencies.  The only sanctioned time source is
the injected ``Clock``.
"""

from pdc_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
