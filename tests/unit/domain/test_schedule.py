"""Unit tests for schedule eligibility."""
from datetime import datetime, timedelta, timezone

import pytest

from domain.models import ScheduleType, SourceType, TaskStatus, UploadTask
from domain.schedule import is_eligible, select_eligible

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_task(task_id=1, status=TaskStatus.QUEUED, schedule_type=ScheduleType.IMMEDIATE, scheduled_for=None):
    return UploadTask(
        id=task_id,
        title="Test Video",
        description="Test description",
        source_type=SourceType.REMOTE,
        source_value="https://example.com/v.mp4",
        status=status,
        schedule_type=schedule_type,
        scheduled_for=scheduled_for,
    )


@pytest.mark.unit
class TestIsEligible:
    """Eligibility rules for the autopilot."""

    def test_immediate_queued_is_eligible(self):
        assert is_eligible(make_task(), NOW)

    @pytest.mark.parametrize(
        "status",
        [TaskStatus.PENDING, TaskStatus.UPLOADING, TaskStatus.PUBLISHED, TaskStatus.FAILED, TaskStatus.DRAFT],
    )
    def test_only_queued_status_is_admitted(self, status):
        assert not is_eligible(make_task(status=status), NOW)

    def test_draft_schedule_never_eligible(self):
        task = make_task(schedule_type=ScheduleType.DRAFT)
        assert not is_eligible(task, NOW)

    def test_scheduled_in_past_is_eligible(self):
        task = make_task(schedule_type=ScheduleType.SCHEDULED, scheduled_for=NOW - timedelta(minutes=5))
        assert is_eligible(task, NOW)

    def test_scheduled_exactly_now_is_eligible(self):
        """Boundary is inclusive: equality counts as due."""
        task = make_task(schedule_type=ScheduleType.SCHEDULED, scheduled_for=NOW)
        assert is_eligible(task, NOW)

    def test_scheduled_in_future_is_not_eligible(self):
        task = make_task(schedule_type=ScheduleType.SCHEDULED, scheduled_for=NOW + timedelta(seconds=1))
        assert not is_eligible(task, NOW)

    def test_scheduled_without_timestamp_is_not_eligible(self):
        task = make_task(schedule_type=ScheduleType.SCHEDULED)
        assert not is_eligible(task, NOW)

    def test_naive_times_are_treated_as_utc(self):
        task = make_task(schedule_type=ScheduleType.SCHEDULED, scheduled_for=datetime(2024, 5, 1, 12, 0))
        assert is_eligible(task, datetime(2024, 5, 1, 12, 0))
        assert is_eligible(task, NOW)

    def test_other_timezones_compare_by_instant(self):
        plus_two = timezone(timedelta(hours=2))
        task = make_task(
            schedule_type=ScheduleType.SCHEDULED,
            scheduled_for=datetime(2024, 5, 1, 14, 0, tzinfo=plus_two),
        )
        assert is_eligible(task, NOW)
        assert not is_eligible(task, NOW - timedelta(seconds=1))

    def test_is_pure(self):
        task = make_task()
        before = (task.status, task.failure_reason)
        for _ in range(3):
            is_eligible(task, NOW)
        assert (task.status, task.failure_reason) == before


@pytest.mark.unit
def test_select_eligible_keeps_insertion_order():
    tasks = [
        make_task(task_id=3),
        make_task(task_id=1, status=TaskStatus.PENDING),
        make_task(task_id=2),
        make_task(task_id=4, schedule_type=ScheduleType.DRAFT),
    ]

    selected = select_eligible(tasks, NOW)

    assert [t.id for t in selected] == [3, 2]
