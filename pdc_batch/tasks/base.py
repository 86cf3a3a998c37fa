"""
Task interface for the batch executor.

A task splits a run into independent items (``prepare_items``) and
processes one item at a time (``execute_item``).  The executor wraps every
``execute_item`` call in its own SAVEPOINT, so a task never commits or rolls
back.

Architecture:
    pdc_batch/tasks.  Depends on pdc_batch.domain and SQLAlchemy's
    ``Session`` type only; concrete tasks live with their module
    (``pdc_modules.cheques.tasks``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from pdc_batch.domain.types import BatchItemStatus


@dataclass(frozen=True)
class BatchItemInput:
    """One unit of work.  ``item_key`` identifies it in logs and results."""

    item_index: int
    item_key: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchTaskResult:
    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None


@runtime_checkable
class BatchTask(Protocol):
    """
    Contract:
        - ``task_type`` is the registry key, e.g. ``"cheques.due_transition"``.
        - ``prepare_items`` only reads.  Its result is fixed for the run.
        - ``execute_item`` handles one item.  Returning SUCCEEDED keeps its
          writes; SKIPPED or FAILED discards them.  Raising is treated as
          FAILED with the exception's ``code`` when it has one.
    """

    @property
    def task_type(self) -> str: ...

    @property
    def description(self) -> str: ...

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]: ...

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult: ...


class TaskRegistry:
    """``task_type`` -> task.  Registering the same type twice is an error."""

    def __init__(self) -> None:
        self._by_type: dict[str, BatchTask] = {}

    def register(self, task: BatchTask) -> None:
        if task.task_type in self._by_type:
            raise ValueError(f"Batch task {task.task_type!r} is already registered")
        self._by_type[task.task_type] = task

    def get(self, task_type: str) -> BatchTask:
        """Raises KeyError naming the registered types when ``task_type`` is unknown."""
        task = self._by_type.get(task_type)
        if task is None:
            raise KeyError(
                f"Unknown batch task {task_type!r}; registered: {self.list_tasks()}"
            )
        return task

    def list_tasks(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_type))

    def __len__(self) -> int:
        return len(self._by_type)

    def __contains__(self, task_type: str) -> bool:
        return task_type in self._by_type
