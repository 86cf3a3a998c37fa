"""
pdc_batch.tasks -- Task protocol and registry.

Concrete tasks live in their module packages
(e.g. ``pdc_modules.cheques.tasks``).
"""

from pdc_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
)

__all__ = [
    "BatchItemInput",
    "BatchTask",
    "BatchTaskResult",
    "TaskRegistry",
]
