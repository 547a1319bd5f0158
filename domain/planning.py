"""AI planning aid: generate metadata and pre-populate tasks with it."""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from domain.errors import InvalidStateError, NotFoundError
from domain.models import (
    MAX_PLAN_TAGS,
    AIProfile,
    MetadataPlan,
    MetadataRequest,
    TaskStatus,
    UploadTask,
)
from ports.metadata_generator import MetadataGenerationError, MetadataGenerator
from ports.profile_store import ProfileStore
from ports.task_store import StatusConflictError, TaskNotFoundError, TaskStore

logger = logging.getLogger(__name__)

TRANSCRIPT_LIMIT = 4000
DEFAULT_TONE = "energetic but professional"
PLANNABLE_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.DRAFT, TaskStatus.QUEUED, TaskStatus.FAILED})

OUTPUT_INSTRUCTION = (
    "Return JSON with keys: title, description, tags (array of <=12), "
    "thumbnailIdea, hook, outline (array of bullet points)."
)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_plan(payload: dict[str, Any]) -> MetadataPlan:
    """
    Convert a generator payload into a MetadataPlan.

    Raises:
        MetadataGenerationError: If the payload has no usable title.
    """
    title = str(payload.get("title") or "").strip()
    if not title:
        raise MetadataGenerationError("Generated metadata has no title")

    thumbnail_idea = payload.get("thumbnailIdea") or payload.get("thumbnail_idea")
    hook = payload.get("hook")
    return MetadataPlan(
        title=title,
        description=str(payload.get("description") or "").strip(),
        tags=_string_list(payload.get("tags"))[:MAX_PLAN_TAGS],
        thumbnail_idea=str(thumbnail_idea) if thumbnail_idea else None,
        hook=str(hook) if hook else None,
        outline=_string_list(payload.get("outline")),
        raw=dict(payload),
    )


class PlanningService:
    """
    Produces AI metadata plans and writes them onto tasks.

    Plans only touch metadata fields; status and failure_reason stay owned
    by the executor.
    """

    def __init__(
        self,
        generator: MetadataGenerator,
        task_store: TaskStore,
        profile_store: Optional[ProfileStore] = None,
    ):
        self.generator = generator
        self.task_store = task_store
        self.profile_store = profile_store

    def build_prompt(self, request: MetadataRequest, profile: Optional[AIProfile] = None) -> str:
        keywords = list(request.target_keywords)
        if profile:
            keywords += [k for k in profile.keywords if k not in keywords]

        tone = request.tone or (profile.tone if profile else None) or DEFAULT_TONE

        parts = [
            "You are an elite YouTube content strategist. Produce metadata for a video.",
            f"Topic: {request.topic}",
            f"Transcript: {request.transcript[:TRANSCRIPT_LIMIT]}" if request.transcript else "",
            f"Target keywords: {', '.join(keywords)}" if keywords else "",
            f"Tone: {tone}",
            profile.prompt.strip() if profile and profile.prompt else "",
            OUTPUT_INSTRUCTION,
        ]
        return "\n\n".join(part for part in parts if part)

    def generate_plan(self, request: MetadataRequest, profile_id: Optional[int] = None) -> MetadataPlan:
        """
        Generate a metadata plan, optionally biased by a stored profile.

        Raises:
            NotFoundError: If profile_id does not match a stored profile.
            MetadataGenerationError: If generation fails or returns no title.
        """
        profile = None
        if profile_id is not None:
            if self.profile_store is None:
                raise NotFoundError(f"AI profile {profile_id} not found")
            profile = self.profile_store.get(profile_id)
            if profile is None:
                raise NotFoundError(f"AI profile {profile_id} not found")

        prompt = self.build_prompt(request, profile)
        logger.info(
            f"Generating metadata for topic '{request.topic}'"
            + (f" with profile '{profile.name}'" if profile else "")
        )
        payload = self.generator.generate(prompt)
        return parse_plan(payload)

    def apply_plan(self, task_id: int, plan: MetadataPlan) -> UploadTask:
        """
        Write a plan onto a task that has not started uploading.

        Raises:
            NotFoundError: If the task does not exist.
            InvalidStateError: If the task is uploading or published, or its
                status changed while applying.
        """
        task = self.task_store.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        if task.status not in PLANNABLE_STATUSES:
            raise InvalidStateError(
                f"Task {task_id} is '{task.status.value}'; plans can only be applied before upload"
            )

        fields: dict[str, Any] = {
            "title": plan.title,
            "automation_plan": json.dumps(plan.raw or self._plan_document(plan), ensure_ascii=False),
        }
        if plan.description:
            fields["description"] = plan.description
        if plan.tags:
            fields["tags"] = plan.tags
        if plan.hook:
            fields["ai_summary"] = plan.hook

        try:
            updated = self.task_store.update(task_id, fields, expected_status=task.status)
        except StatusConflictError as e:
            raise InvalidStateError(str(e)) from e
        except TaskNotFoundError as e:
            raise NotFoundError(str(e)) from e

        logger.info(f"Task {task_id}: applied AI plan '{plan.title}'")
        return updated

    @staticmethod
    def _plan_document(plan: MetadataPlan) -> dict[str, Any]:
        return {
            "title": plan.title,
            "description": plan.description,
            "tags": plan.tags,
            "thumbnailIdea": plan.thumbnail_idea,
            "hook": plan.hook,
            "outline": plan.outline,
        }
