"""Domain models for upload automation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from domain.errors import ErrorCode, TaskValidationError

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/youtube.upload"]
DEFAULT_CATEGORY_ID = "22"  # People & Blogs
MAX_PLAN_TAGS = 12


class TaskStatus(str, Enum):
    """Upload task status."""
    PENDING = "pending"
    QUEUED = "queued"
    UPLOADING = "uploading"
    PUBLISHED = "published"
    FAILED = "failed"
    DRAFT = "draft"


class Visibility(str, Enum):
    """YouTube video privacy status."""
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


class ScheduleType(str, Enum):
    """When a task should be picked up by the autopilot."""
    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"
    DRAFT = "draft"


class SourceType(str, Enum):
    """Where the video bytes come from."""
    FILE = "file"
    REMOTE = "remote"


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class YoutubeAccount:
    """
    OAuth credential bundle bound to one destination channel.

    Tasks reference accounts by id only; an account never owns tasks.
    """
    id: Optional[int]
    label: str
    client_id: str
    client_secret: str
    redirect_uri: str
    refresh_token: str
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    created_at: Optional[datetime] = None


@dataclass
class UploadTask:
    """
    Unit of automation work: one video to be published.

    Only ``status`` and ``failure_reason`` are written by the executor.
    The AI fields are opaque strings produced by the planning aid.
    """
    # Required fields (no defaults)
    id: Optional[int]
    title: str
    description: str
    source_type: SourceType
    source_value: str

    # Destination
    account_id: Optional[int] = None

    # Video metadata
    tags: list[str] = field(default_factory=list)
    category_id: Optional[str] = None
    language: Optional[str] = None
    visibility: Visibility = Visibility.PRIVATE
    made_for_kids: bool = False
    thumbnail_url: Optional[str] = None

    # Schedule
    schedule_type: ScheduleType = ScheduleType.IMMEDIATE
    scheduled_for: Optional[datetime] = None

    # AI planning output (never interpreted here)
    ai_summary: Optional[str] = None
    automation_plan: Optional[str] = None
    transcript: Optional[str] = None

    # Lifecycle
    status: TaskStatus = TaskStatus.PENDING
    failure_reason: Optional[str] = None

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Convert string enums to proper enum types."""
        if isinstance(self.status, str):
            self.status = TaskStatus(self.status)
        if isinstance(self.visibility, str):
            self.visibility = Visibility(self.visibility)
        if isinstance(self.schedule_type, str):
            self.schedule_type = ScheduleType(self.schedule_type)
        if isinstance(self.source_type, str):
            self.source_type = SourceType(self.source_type)
        self.scheduled_for = ensure_utc(self.scheduled_for)

    def validate(self) -> None:
        """
        Check the record-level invariants.

        Raises:
            TaskValidationError: If any invariant is violated.
        """
        if not self.title or not self.title.strip():
            raise TaskValidationError("title must not be empty")
        if not self.source_value or not self.source_value.strip():
            raise TaskValidationError("source_value must not be empty")

        if self.schedule_type == ScheduleType.SCHEDULED and self.scheduled_for is None:
            raise TaskValidationError("scheduled_for is required when schedule_type is 'scheduled'")
        if self.schedule_type != ScheduleType.SCHEDULED and self.scheduled_for is not None:
            raise TaskValidationError(
                f"scheduled_for must be empty when schedule_type is '{self.schedule_type.value}'"
            )

        if self.status == TaskStatus.FAILED and not self.failure_reason:
            raise TaskValidationError("failure_reason is required when status is 'failed'")
        if self.status != TaskStatus.FAILED and self.failure_reason is not None:
            raise TaskValidationError(
                f"failure_reason must be empty when status is '{self.status.value}'"
            )


@dataclass
class AIProfile:
    """Reusable persona that biases AI-generated metadata."""
    id: Optional[int]
    name: str
    prompt: str
    tone: str = "balanced"
    keywords: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccessToken:
    """Short-lived access token redeemed from a refresh token."""
    token: str
    expires_at: Optional[datetime] = None

    def expires_soon(self, now: Optional[datetime] = None, skew: timedelta = timedelta(seconds=60)) -> bool:
        if self.expires_at is None:
            return False
        now = ensure_utc(now) if now else utcnow()
        return ensure_utc(self.expires_at) - skew <= now


@dataclass(frozen=True)
class UploadSource:
    """Validated video source handed to the uploader."""
    source_type: SourceType
    value: str


@dataclass
class UploadPayload:
    """Video metadata sent with an upload."""
    title: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    category_id: str = DEFAULT_CATEGORY_ID
    visibility: Visibility = Visibility.PRIVATE
    language: Optional[str] = None
    made_for_kids: bool = False
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_task(cls, task: UploadTask) -> "UploadPayload":
        return cls(
            title=task.title,
            description=task.description or "",
            tags=list(task.tags),
            category_id=task.category_id or DEFAULT_CATEGORY_ID,
            visibility=task.visibility,
            language=task.language,
            made_for_kids=task.made_for_kids,
            thumbnail_url=task.thumbnail_url,
        )


@dataclass
class UploadReceipt:
    """What the platform returned for a successful upload."""
    video_id: str
    thumbnail_uploaded: bool = False


@dataclass
class ExecutionResult:
    """
    Outcome of one task execution.

    Returned for every task the executor was asked to run, whether it
    succeeded, failed or was refused at the claim step.
    """
    task_id: int
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    retryable: bool = False
    video_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"taskId": self.task_id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error
        if self.error_code is not None:
            data["errorCode"] = self.error_code.value
            data["retryable"] = self.retryable
        if self.video_id is not None:
            data["videoId"] = self.video_id
        return data


@dataclass
class MetadataRequest:
    """Input for one AI metadata generation call."""
    topic: str
    transcript: Optional[str] = None
    target_keywords: list[str] = field(default_factory=list)
    tone: Optional[str] = None


@dataclass
class MetadataPlan:
    """Parsed AI-generated metadata for a video."""
    title: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    thumbnail_idea: Optional[str] = None
    hook: Optional[str] = None
    outline: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)
