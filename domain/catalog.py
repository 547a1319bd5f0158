"""Setup operations: register accounts, manage tasks and AI profiles."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields as dataclass_fields
from datetime import datetime
from typing import Any, List, Mapping, Optional

from domain.credentials import CredentialResolver
from domain.errors import AutopilotError, InvalidStateError, NotFoundError
from domain.models import (
    AIProfile,
    ScheduleType,
    SourceType,
    TaskStatus,
    UploadTask,
    Visibility,
    YoutubeAccount,
)
from ports.account_store import AccountStore
from ports.profile_store import ProfileStore
from ports.task_store import StatusConflictError, TaskNotFoundError, TaskStore, TaskValidationError

logger = logging.getLogger(__name__)

# New tasks enter the lifecycle before the claim; later statuses belong to
# the executor and the explicit lifecycle actions.
CREATABLE_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.QUEUED, TaskStatus.DRAFT})
EDITABLE_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.DRAFT, TaskStatus.QUEUED, TaskStatus.FAILED})
LIFECYCLE_FIELDS = frozenset({"status", "failure_reason"})
TASK_INPUT_FIELDS = frozenset(f.name for f in dataclass_fields(UploadTask)) - {"id", "created_at", "updated_at"}

_ENUM_FIELDS = {
    "status": TaskStatus,
    "visibility": Visibility,
    "schedule_type": ScheduleType,
    "source_type": SourceType,
}


def _coerce_task_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Convert JSON-style task values into UploadTask field values.

    Raises:
        TaskValidationError: On unknown fields or unparseable values.
    """
    unknown = set(data) - TASK_INPUT_FIELDS
    if unknown:
        raise TaskValidationError(f"Unknown task fields: {sorted(unknown)}")

    values = dict(data)
    try:
        for name, enum_type in _ENUM_FIELDS.items():
            if name in values and values[name] is None:
                del values[name]
            elif name in values:
                values[name] = enum_type(values[name])
        if isinstance(values.get("scheduled_for"), str):
            values["scheduled_for"] = datetime.fromisoformat(values["scheduled_for"])
    except ValueError as e:
        raise TaskValidationError(str(e)) from e

    if "tags" in values:
        tags = values["tags"] or []
        if not isinstance(tags, list):
            raise TaskValidationError("tags must be a list of strings")
        values["tags"] = [str(tag).strip() for tag in tags if str(tag).strip()]
    if values.get("category_id") is not None:
        values["category_id"] = str(values["category_id"])
    if "made_for_kids" in values:
        values["made_for_kids"] = bool(values["made_for_kids"])
    return values


def task_from_dict(data: Mapping[str, Any]) -> UploadTask:
    """
    Build a new (unsaved) task from a JSON-style mapping.

    ``title``, ``source_type`` and ``source_value`` are required; everything
    else takes the model defaults.

    Raises:
        TaskValidationError: If fields are missing, unknown or invalid.
    """
    values = _coerce_task_fields(data)
    missing = [name for name in ("title", "source_type", "source_value") if not values.get(name)]
    if missing:
        raise TaskValidationError(f"Missing required task fields: {missing}")
    values.setdefault("description", "")
    return UploadTask(id=None, **values)


@dataclass
class AccountRegistration:
    """A stored account plus the credential check outcome."""
    account: YoutubeAccount
    warning: Optional[str] = None


class CatalogService:
    """
    Record management around the lifecycle engine.

    Responsibilities:
    - Register accounts and check their credentials once (a failed check is
      a warning, the account is kept)
    - Create, edit and delete tasks without touching lifecycle fields
    - Upsert AI profiles
    - List accounts, tasks and profiles
    """

    def __init__(
        self,
        task_store: TaskStore,
        account_store: AccountStore,
        profile_store: ProfileStore,
        credentials: CredentialResolver,
    ):
        self.task_store = task_store
        self.account_store = account_store
        self.profile_store = profile_store
        self.credentials = credentials

    def register_account(self, data: Mapping[str, Any]) -> AccountRegistration:
        """
        Store an account, then redeem its refresh token once.

        Raises:
            ValueError: If required fields are missing or the label is too short.
            StoreUnavailableError: If the account store cannot be reached.
        """
        required = ("label", "client_id", "client_secret", "redirect_uri", "refresh_token")
        missing = [name for name in required if not data.get(name)]
        if missing:
            raise ValueError(f"Missing required account fields: {missing}")

        account = self.account_store.create(
            YoutubeAccount(
                id=None,
                label=str(data["label"]),
                client_id=str(data["client_id"]),
                client_secret=str(data["client_secret"]),
                redirect_uri=str(data["redirect_uri"]),
                refresh_token=str(data["refresh_token"]),
                scopes=list(data.get("scopes") or []),
            )
        )

        try:
            self.credentials.verify(account)
        except AutopilotError as e:
            logger.warning(f"Account {account.id} registered, but its credentials failed verification: {e}")
            return AccountRegistration(account, warning=e.describe())

        logger.info(f"Account {account.id} registered and verified")
        return AccountRegistration(account)

    def delete_account(self, account_id: int) -> bool:
        deleted = self.account_store.delete(account_id)
        if deleted:
            logger.info(f"Account {account_id} deleted")
        return deleted

    def create_task(self, data: Mapping[str, Any]) -> UploadTask:
        """
        Create a task in ``pending``, ``queued`` or ``draft``.

        Raises:
            TaskValidationError: If the task is invalid or starts in a later status.
        """
        task = task_from_dict(data)
        if task.status not in CREATABLE_STATUSES:
            raise TaskValidationError(
                f"New tasks must start in one of {sorted(s.value for s in CREATABLE_STATUSES)}"
            )
        return self.task_store.create(task)

    def edit_task(self, task_id: int, data: Mapping[str, Any]) -> UploadTask:
        """
        Change a task's content fields before it starts uploading.

        Status changes go through the lifecycle actions instead.

        Raises:
            NotFoundError: If the task does not exist.
            InvalidStateError: If the task is uploading or published, or its
                status changed while editing.
            TaskValidationError: If the edit breaks a record invariant.
        """
        lifecycle_fields = LIFECYCLE_FIELDS & set(data)
        if lifecycle_fields:
            raise TaskValidationError(
                f"Fields {sorted(lifecycle_fields)} are changed through queue/retry, not edits"
            )
        values = _coerce_task_fields(data)

        task = self.task_store.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        if task.status not in EDITABLE_STATUSES:
            raise InvalidStateError(f"Task {task_id} is '{task.status.value}' and can no longer be edited")

        try:
            updated = self.task_store.update(task_id, values, expected_status=task.status)
        except StatusConflictError as e:
            raise InvalidStateError(str(e)) from e
        except TaskNotFoundError as e:
            raise NotFoundError(str(e)) from e

        logger.info(f"Task {task_id}: edited {sorted(values)}")
        return updated

    def delete_task(self, task_id: int) -> bool:
        return self.task_store.delete(task_id)

    def save_profile(self, data: Mapping[str, Any]) -> AIProfile:
        """
        Insert or update an AI profile (matched by id, else by name).

        Raises:
            ValueError: If the name or prompt is missing or too short.
        """
        keywords = data.get("keywords") or []
        if isinstance(keywords, str):
            keywords = keywords.split(",")
        return self.profile_store.upsert(
            AIProfile(
                id=data.get("id"),
                name=str(data.get("name") or ""),
                prompt=str(data.get("prompt") or ""),
                tone=str(data.get("tone") or "balanced"),
                keywords=[str(k).strip() for k in keywords if str(k).strip()],
            )
        )

    def list_accounts(self) -> List[YoutubeAccount]:
        return self.account_store.list()

    def list_tasks(self) -> List[UploadTask]:
        return self.task_store.list()

    def list_profiles(self) -> List[AIProfile]:
        return self.profile_store.list()
