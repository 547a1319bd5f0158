"""Interface for upload task persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from domain.errors import TaskValidationError
from domain.models import TaskStatus, UploadTask

__all__ = [
    "TaskStore",
    "TaskStoreError",
    "TaskNotFoundError",
    "StatusConflictError",
    "StoreUnavailableError",
    "TaskValidationError",
]


class TaskStore(ABC):
    """
    Repository for upload tasks.

    Implementations must make ``update`` with ``expected_status`` atomic:
    the write happens only if the stored status still equals the expected
    one. That conditional update is the only lock the executor relies on.
    """

    @abstractmethod
    def get(self, task_id: int) -> Optional[UploadTask]:
        """
        Fetch a task by id.

        Returns:
            The task, or None if it does not exist.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        pass

    @abstractmethod
    def list(self) -> List[UploadTask]:
        """
        Fetch all tasks in insertion order.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        pass

    @abstractmethod
    def create(self, task: UploadTask) -> UploadTask:
        """
        Persist a new task and return it with its assigned id.

        Raises:
            TaskValidationError: If the task violates its invariants.
            StoreUnavailableError: If the backend cannot be reached.
        """
        pass

    @abstractmethod
    def update(
        self,
        task_id: int,
        fields: Mapping[str, Any],
        expected_status: Optional[TaskStatus] = None,
    ) -> UploadTask:
        """
        Update task fields, optionally guarded by the current status.

        Args:
            task_id: Task to update.
            fields: Partial field values keyed by UploadTask attribute name.
            expected_status: If given, the update is applied only when the
                stored status equals this value (compare-and-swap).

        Returns:
            The task as stored after the update.

        Raises:
            TaskNotFoundError: If the task does not exist.
            StatusConflictError: If the stored status differs from expected_status.
            TaskValidationError: If the merged record violates its invariants.
            StoreUnavailableError: If the backend cannot be reached.
        """
        pass

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """
        Delete a task at any status.

        Returns:
            True if a task was deleted, False if it did not exist.
        """
        pass


class TaskStoreError(Exception):
    """Base exception for task store errors."""
    pass


class TaskNotFoundError(TaskStoreError):
    """Raised when the addressed task does not exist."""

    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StatusConflictError(TaskStoreError):
    """Raised when a guarded update finds a different status than expected."""

    def __init__(self, task_id: int, expected: TaskStatus, actual: TaskStatus):
        super().__init__(
            f"Task {task_id} status is '{actual.value}', expected '{expected.value}'"
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class StoreUnavailableError(TaskStoreError):
    """
    Backend unreachable or failing.

    This is the only error allowed to abort a whole autopilot run.
    """
    pass
