"""Schedule eligibility rules for the autopilot."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from domain.models import ScheduleType, TaskStatus, UploadTask, ensure_utc


def is_eligible(task: UploadTask, now: datetime) -> bool:
    """
    Decide whether the autopilot may pick up a task at ``now``.

    Only ``queued`` tasks are admitted; failed tasks come back only after an
    explicit retry flips them to ``queued``. Draft tasks are never admitted.
    A scheduled task is due when ``scheduled_for <= now``.
    """
    if task.schedule_type == ScheduleType.DRAFT:
        return False
    if task.status != TaskStatus.QUEUED:
        return False
    if task.schedule_type == ScheduleType.IMMEDIATE:
        return True
    if task.scheduled_for is None:
        return False
    return ensure_utc(task.scheduled_for) <= ensure_utc(now)


def select_eligible(tasks: Iterable[UploadTask], now: datetime) -> List[UploadTask]:
    """Filter tasks down to the eligible ones, keeping their order."""
    return [task for task in tasks if is_eligible(task, now)]
