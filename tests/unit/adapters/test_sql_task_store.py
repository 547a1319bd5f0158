"""Unit tests for SqlTaskStore."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

from adapters.sql_task_store import SqlTaskStore
from domain.models import ScheduleType, SourceType, TaskStatus, UploadTask, Visibility
from ports.task_store import (
    StatusConflictError,
    StoreUnavailableError,
    TaskNotFoundError,
    TaskValidationError,
)


@pytest.fixture
def store(engine):
    return SqlTaskStore(engine)


def new_task(**overrides):
    values = dict(
        id=None,
        title="Test Video",
        description="Test description",
        source_type=SourceType.FILE,
        source_value="videos/test.mp4",
        account_id=1,
        tags=["a", "b"],
        visibility=Visibility.UNLISTED,
        status=TaskStatus.QUEUED,
    )
    values.update(overrides)
    return UploadTask(**values)


@pytest.mark.unit
class TestCreateAndRead:

    def test_create_assigns_id_and_timestamps(self, store):
        created = store.create(new_task())

        assert created.id is not None
        assert created.created_at is not None
        assert created.updated_at == created.created_at

    def test_round_trip_preserves_fields(self, store):
        scheduled = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        created = store.create(
            new_task(
                schedule_type=ScheduleType.SCHEDULED,
                scheduled_for=scheduled,
                source_type=SourceType.REMOTE,
                source_value="https://cdn.example.com/v.mp4",
                made_for_kids=True,
                language="en",
            )
        )

        loaded = store.get(created.id)

        assert loaded.title == "Test Video"
        assert loaded.tags == ["a", "b"]
        assert loaded.visibility == Visibility.UNLISTED
        assert loaded.schedule_type == ScheduleType.SCHEDULED
        assert loaded.scheduled_for == scheduled
        assert loaded.source_type == SourceType.REMOTE
        assert loaded.made_for_kids is True
        assert loaded.status == TaskStatus.QUEUED

    def test_get_missing(self, store):
        assert store.get(404) is None

    def test_list_in_insertion_order(self, store):
        ids = [store.create(new_task(title=f"Video {i}")).id for i in range(3)]

        assert [t.id for t in store.list()] == ids

    def test_create_rejects_invalid_task(self, store):
        with pytest.raises(TaskValidationError):
            store.create(new_task(status=TaskStatus.FAILED))


@pytest.mark.unit
class TestGuardedUpdate:

    def test_update_when_status_matches(self, store):
        task = store.create(new_task())

        updated = store.update(
            task.id,
            {"status": TaskStatus.UPLOADING, "failure_reason": None},
            expected_status=TaskStatus.QUEUED,
        )

        assert updated.status == TaskStatus.UPLOADING
        assert updated.updated_at >= task.updated_at
        assert store.get(task.id).status == TaskStatus.UPLOADING

    def test_conflict_leaves_row_untouched(self, store):
        task = store.create(new_task())
        store.update(task.id, {"status": TaskStatus.UPLOADING}, expected_status=TaskStatus.QUEUED)

        with pytest.raises(StatusConflictError) as exc_info:
            store.update(task.id, {"status": TaskStatus.UPLOADING}, expected_status=TaskStatus.QUEUED)

        assert exc_info.value.actual == TaskStatus.UPLOADING
        assert store.get(task.id).status == TaskStatus.UPLOADING

    def test_unconditional_update(self, store):
        task = store.create(new_task())

        updated = store.update(task.id, {"title": "Renamed", "tags": ["x"]})

        assert updated.title == "Renamed"
        assert updated.tags == ["x"]
        assert updated.status == TaskStatus.QUEUED

    def test_failed_requires_reason(self, store):
        task = store.create(new_task(status=TaskStatus.UPLOADING))

        with pytest.raises(TaskValidationError):
            store.update(task.id, {"status": TaskStatus.FAILED}, expected_status=TaskStatus.UPLOADING)

        assert store.get(task.id).status == TaskStatus.UPLOADING

    def test_missing_task(self, store):
        with pytest.raises(TaskNotFoundError):
            store.update(404, {"title": "x"})

    def test_read_only_fields_rejected(self, store):
        task = store.create(new_task())

        with pytest.raises(TaskValidationError):
            store.update(task.id, {"id": 99})


@pytest.mark.unit
def test_delete(store):
    task = store.create(new_task())

    assert store.delete(task.id) is True
    assert store.get(task.id) is None
    assert store.delete(task.id) is False


@pytest.mark.unit
def test_unreachable_database(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'agent.db'}")
    store = SqlTaskStore(engine)

    with pytest.raises(StoreUnavailableError):
        store.list()
