"""pdc_batch.services -- Executor and daily scheduler."""

from pdc_batch.services.executor import BatchExecutor
from pdc_batch.services.scheduler import DailyScheduler

__all__ = ["BatchExecutor", "DailyScheduler"]
