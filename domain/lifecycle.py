"""Upload task status state machine and explicit user transitions."""
from __future__ import annotations

import logging
from typing import Any, Optional

from domain.errors import InvalidStateError, NotFoundError
from domain.models import TaskStatus, UploadTask
from ports.task_store import StatusConflictError, TaskNotFoundError, TaskStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.QUEUED}),
    TaskStatus.DRAFT: frozenset({TaskStatus.QUEUED}),
    TaskStatus.QUEUED: frozenset({TaskStatus.UPLOADING}),
    TaskStatus.UPLOADING: frozenset({TaskStatus.PUBLISHED, TaskStatus.FAILED}),
    TaskStatus.FAILED: frozenset({TaskStatus.QUEUED}),
    TaskStatus.PUBLISHED: frozenset(),
}

# A claim from FAILED is an explicit retry and the claim in one atomic write.
CLAIMABLE_STATUSES = frozenset({TaskStatus.QUEUED, TaskStatus.FAILED})

TERMINAL_STATUSES = frozenset({TaskStatus.PUBLISHED, TaskStatus.FAILED})


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: TaskStatus, target: TaskStatus) -> None:
    """
    Validate a status edge.

    Raises:
        InvalidStateError: If ``current -> target`` is not an allowed edge.
    """
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move task from '{current.value}' to '{target.value}'"
        )


class TaskLifecycle:
    """
    Explicit user-driven status changes.

    Every write is guarded by the status that was read, so a concurrent
    executor claim wins over a stale user action instead of being overwritten.
    """

    def __init__(self, task_store: TaskStore):
        self.task_store = task_store

    def queue(self, task_id: int) -> UploadTask:
        """Move a pending or draft task to ``queued``."""
        return self._transition(task_id, TaskStatus.QUEUED, allowed_from={TaskStatus.PENDING, TaskStatus.DRAFT})

    def retry(self, task_id: int) -> UploadTask:
        """Move a failed task back to ``queued`` and clear its failure reason."""
        return self._transition(
            task_id,
            TaskStatus.QUEUED,
            allowed_from={TaskStatus.FAILED},
            failure_reason=None,
        )

    def _transition(
        self,
        task_id: int,
        target: TaskStatus,
        allowed_from: set[TaskStatus],
        **extra_fields: Any,
    ) -> UploadTask:
        task = self.task_store.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        if task.status not in allowed_from:
            raise InvalidStateError(
                f"Task {task_id} is '{task.status.value}', expected one of "
                f"{sorted(s.value for s in allowed_from)}"
            )
        ensure_transition(task.status, target)

        fields: dict[str, Any] = {"status": target}
        fields.update(extra_fields)
        try:
            updated = self.task_store.update(task_id, fields, expected_status=task.status)
        except StatusConflictError as e:
            raise InvalidStateError(str(e)) from e
        except TaskNotFoundError as e:
            raise NotFoundError(str(e)) from e

        logger.info(f"Task {task_id}: {task.status.value} -> {target.value}")
        return updated


def describe_status(task: Optional[UploadTask]) -> str:
    if task is None:
        return "missing"
    if task.status == TaskStatus.FAILED:
        return f"failed ({task.failure_reason})"
    return task.status.value
