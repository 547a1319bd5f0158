"""Single-task execution pipeline."""
import logging
from typing import AbstractSet, Optional

from domain.credentials import CredentialResolver, TokenCache
from domain.errors import (
    AutopilotError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    TaskValidationError,
    UploadError,
)
from domain.lifecycle import CLAIMABLE_STATUSES, ensure_transition
from domain.models import ExecutionResult, TaskStatus, UploadPayload, UploadReceipt, UploadTask
from domain.source_validator import SourceValidator
from ports.media_uploader import MediaUploader, MediaUploaderError, PermanentError, RetryableError
from ports.task_store import StatusConflictError, TaskNotFoundError, TaskStore

logger = logging.getLogger(__name__)


def failure_result(task_id: int, error: AutopilotError) -> ExecutionResult:
    return ExecutionResult(
        task_id=task_id,
        success=False,
        error=error.describe(),
        error_code=error.code,
        retryable=error.retryable,
    )


class TaskExecutor:
    """
    Runs one upload task from claim to terminal status.

    Workflow:
    1. Load the task
    2. Claim it: conditional update queued/failed -> uploading
    3. Resolve an access token for the task's account
    4. Validate the source
    5. Upload with the metadata assembled from the task
    6. Record published or failed

    Once the claim succeeds, every exit path writes a terminal status.
    Errors inside the pipeline are recorded on the task and returned as a
    result; only store unavailability propagates.
    """

    def __init__(
        self,
        task_store: TaskStore,
        credential_resolver: CredentialResolver,
        source_validator: SourceValidator,
        media_uploader: MediaUploader,
    ):
        """
        Initialize task executor.

        Args:
            task_store: Task repository providing the conditional update.
            credential_resolver: Resolves access tokens for accounts.
            source_validator: Checks file reachability and URL syntax.
            media_uploader: Uploader for publishing videos.
        """
        self.task_store = task_store
        self.credential_resolver = credential_resolver
        self.source_validator = source_validator
        self.media_uploader = media_uploader

    def execute(
        self,
        task_id: int,
        token_cache: Optional[TokenCache] = None,
        claim_from: AbstractSet[TaskStatus] = CLAIMABLE_STATUSES,
    ) -> ExecutionResult:
        """
        Execute a single task.

        Args:
            task_id: Task to execute.
            token_cache: Run-scoped token cache. A fresh one is used if None.
            claim_from: Statuses the task may be claimed from. The batch
                passes only ``queued``; a failed task is run again only on
                demand.

        Returns:
            ExecutionResult describing the outcome.

        Raises:
            StoreUnavailableError: If the task store cannot be reached.
        """
        cache: TokenCache = token_cache if token_cache is not None else {}
        logger.info(f"Processing task {task_id}")

        task = self.task_store.get(task_id)
        if task is None:
            logger.warning(f"Task {task_id}: not found")
            return failure_result(task_id, NotFoundError(f"Task {task_id} not found"))

        claimed = self._claim(task, claim_from)
        if isinstance(claimed, ExecutionResult):
            return claimed
        task = claimed

        try:
            receipt = self._run_claimed(task, cache)
        except AutopilotError as e:
            return self._mark_failed(task, e)
        except Exception as e:
            logger.exception(f"Task {task.id}: unexpected error during execution: {e}")
            return self._mark_failed(task, InternalError(f"Unexpected error: {e}"))

        return self._mark_published(task, receipt)

    def _claim(self, task: UploadTask, claim_from: AbstractSet[TaskStatus]):
        """Claim the task, or return the refusal result."""
        if task.status not in claim_from:
            logger.info(f"Task {task.id}: not claimable in status '{task.status.value}', skipping")
            return failure_result(
                task.id,
                InvalidStateError(f"Task {task.id} is '{task.status.value}' and cannot be started"),
            )

        try:
            claimed = self.task_store.update(
                task.id,
                {"status": TaskStatus.UPLOADING, "failure_reason": None},
                expected_status=task.status,
            )
        except StatusConflictError as e:
            logger.info(f"Task {task.id}: claim lost: {e}")
            return failure_result(task.id, InvalidStateError(f"Claim failed: {e}"))
        except TaskNotFoundError as e:
            logger.warning(f"Task {task.id}: deleted before claim")
            return failure_result(task.id, NotFoundError(str(e)))
        except TaskValidationError as e:
            logger.error(f"Task {task.id}: stored record is invalid, not claimed: {e}")
            return failure_result(task.id, InvalidStateError(f"Task {task.id} record is invalid: {e}"))

        logger.info(f"Task {task.id}: claimed ({task.status.value} -> uploading)")
        return claimed

    def _run_claimed(self, task: UploadTask, cache: TokenCache) -> UploadReceipt:
        token = self.credential_resolver.resolve(task.account_id, cache)
        source = self.source_validator.validate(task)
        payload = UploadPayload.from_task(task)

        logger.info(f"Task {task.id}: starting upload ({source.source_type.value})")
        try:
            receipt = self.media_uploader.upload(token.token, payload, source)
        except RetryableError as e:
            logger.warning(f"Task {task.id}: upload failed (retryable): {e}")
            raise UploadError(str(e), retryable=True) from e
        except PermanentError as e:
            logger.error(f"Task {task.id}: upload failed (permanent): {e}")
            raise UploadError(str(e), retryable=False) from e
        except MediaUploaderError as e:
            logger.error(f"Task {task.id}: upload error: {e}")
            raise UploadError(str(e), retryable=False) from e
        except TimeoutError as e:
            logger.warning(f"Task {task.id}: upload timed out: {e}")
            raise UploadError(f"Upload timed out: {e}", retryable=True) from e
        except ConnectionError as e:
            logger.warning(f"Task {task.id}: connection lost during upload: {e}")
            raise UploadError(f"Connection lost: {e}", retryable=True) from e

        logger.info(f"Task {task.id}: upload succeeded (video_id={receipt.video_id})")
        return receipt

    def _mark_published(self, task: UploadTask, receipt: UploadReceipt) -> ExecutionResult:
        ensure_transition(TaskStatus.UPLOADING, TaskStatus.PUBLISHED)
        self._finalize(task, {"status": TaskStatus.PUBLISHED, "failure_reason": None})
        logger.info(f"Task {task.id}: published (video_id={receipt.video_id})")
        return ExecutionResult(task_id=task.id, success=True, video_id=receipt.video_id)

    def _mark_failed(self, task: UploadTask, error: AutopilotError) -> ExecutionResult:
        """
        Record a failure on a claimed task.

        Args:
            task: Claimed task.
            error: Error to record (its describe() becomes the failure reason).
        """
        ensure_transition(TaskStatus.UPLOADING, TaskStatus.FAILED)
        reason = error.describe()
        self._finalize(task, {"status": TaskStatus.FAILED, "failure_reason": reason})
        logger.error(f"Task {task.id}: marked as FAILED - {reason}")
        return failure_result(task.id, error)

    def _finalize(self, task: UploadTask, fields: dict) -> None:
        try:
            self.task_store.update(task.id, fields, expected_status=TaskStatus.UPLOADING)
        except TaskNotFoundError:
            logger.warning(f"Task {task.id}: deleted while uploading, outcome not recorded")
        except StatusConflictError as e:
            logger.error(f"Task {task.id}: status changed while uploading, outcome not recorded: {e}")
        except TaskValidationError as e:
            logger.error(f"Task {task.id}: record became invalid while uploading, outcome not recorded: {e}")
