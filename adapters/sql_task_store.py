"""SQL implementation of TaskStore."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields, replace
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from adapters.sql_schema import upload_tasks
from domain.models import TaskStatus, UploadTask, ensure_utc, utcnow
from ports.task_store import (
    StatusConflictError,
    StoreUnavailableError,
    TaskNotFoundError,
    TaskStore,
    TaskValidationError,
)

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}
UPDATABLE_FIELDS = {f.name for f in dataclass_fields(UploadTask)} - READ_ONLY_FIELDS


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _row_to_task(row: Mapping[str, Any]) -> UploadTask:
    return UploadTask(
        id=row["id"],
        account_id=row["account_id"],
        title=row["title"],
        description=row["description"] or "",
        tags=list(row["tags"] or []),
        category_id=row["category_id"],
        visibility=row["visibility"],
        language=row["language"],
        made_for_kids=bool(row["made_for_kids"]),
        schedule_type=row["schedule_type"],
        scheduled_for=ensure_utc(row["scheduled_for"]),
        source_type=row["source_type"],
        source_value=row["source_value"],
        thumbnail_url=row["thumbnail_url"],
        ai_summary=row["ai_summary"],
        automation_plan=row["automation_plan"],
        transcript=row["transcript"],
        status=row["status"],
        failure_reason=row["failure_reason"],
        created_at=ensure_utc(row["created_at"]),
        updated_at=ensure_utc(row["updated_at"]),
    )


class SqlTaskStore(TaskStore):
    """
    TaskStore backed by a SQL database through SQLAlchemy Core.

    The guarded update is a single
    ``UPDATE ... WHERE id = :id AND status = :expected`` statement; the
    affected row count tells whether the caller won.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(f"Task store error: {e}", exc_info=True)
            raise StoreUnavailableError(f"Task store unavailable: {e}") from e

    def get(self, task_id: int) -> Optional[UploadTask]:
        with self._transaction() as conn:
            row = conn.execute(
                select(upload_tasks).where(upload_tasks.c.id == task_id)
            ).mappings().first()
        return _row_to_task(row) if row else None

    def list(self) -> List[UploadTask]:
        with self._transaction() as conn:
            rows = conn.execute(
                select(upload_tasks).order_by(upload_tasks.c.id)
            ).mappings().all()
        return [_row_to_task(row) for row in rows]

    def create(self, task: UploadTask) -> UploadTask:
        task.validate()
        now = utcnow()
        values = {
            name: _to_column(getattr(task, name))
            for name in UPDATABLE_FIELDS
        }
        values["tags"] = list(task.tags)
        values["created_at"] = now
        values["updated_at"] = now

        with self._transaction() as conn:
            result = conn.execute(insert(upload_tasks).values(**values))
            task_id = result.inserted_primary_key[0]

        logger.info(f"Task {task_id} created (status={task.status.value})")
        return replace(task, id=task_id, created_at=now, updated_at=now)

    def update(
        self,
        task_id: int,
        fields: Mapping[str, Any],
        expected_status: Optional[TaskStatus] = None,
    ) -> UploadTask:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise TaskValidationError(f"Unknown or read-only task fields: {sorted(unknown)}")

        with self._transaction() as conn:
            row = conn.execute(
                select(upload_tasks).where(upload_tasks.c.id == task_id)
            ).mappings().first()
            if row is None:
                raise TaskNotFoundError(task_id)

            current = _row_to_task(row)
            if expected_status is not None and current.status != expected_status:
                raise StatusConflictError(task_id, expected_status, current.status)

            merged = replace(current, **dict(fields))
            merged.validate()

            values = {name: _to_column(value) for name, value in fields.items()}
            values["updated_at"] = utcnow()

            stmt = update(upload_tasks).where(upload_tasks.c.id == task_id)
            if expected_status is not None:
                stmt = stmt.where(upload_tasks.c.status == expected_status.value)
            result = conn.execute(stmt.values(**values))

            if result.rowcount == 0:
                actual = conn.execute(
                    select(upload_tasks.c.status).where(upload_tasks.c.id == task_id)
                ).scalar()
                if actual is None:
                    raise TaskNotFoundError(task_id)
                raise StatusConflictError(task_id, expected_status, TaskStatus(actual))

            row = conn.execute(
                select(upload_tasks).where(upload_tasks.c.id == task_id)
            ).mappings().first()

        return _row_to_task(row)

    def delete(self, task_id: int) -> bool:
        with self._transaction() as conn:
            result = conn.execute(delete(upload_tasks).where(upload_tasks.c.id == task_id))
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Task {task_id} deleted")
        return deleted
