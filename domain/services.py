"""Domain service for autopilot batch orchestration."""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from domain.credentials import TokenCache
from domain.errors import InternalError
from domain.executor import TaskExecutor, failure_result
from domain.models import ExecutionResult, TaskStatus, utcnow
from domain.schedule import select_eligible
from ports.task_store import StoreUnavailableError, TaskStore

logger = logging.getLogger(__name__)

# The list snapshot may be stale by the time a task is claimed; a task failed
# in between must stay failed until the user retries it.
BATCH_CLAIM_FROM = frozenset({TaskStatus.QUEUED})


def summarize(results: List[ExecutionResult]) -> dict:
    """
    Count outcomes of a batch.

    Returns:
        Summary dict with counts: processed, succeeded, failed, retryable.
    """
    stats = {
        "processed": len(results),
        "succeeded": 0,
        "failed": 0,
        "retryable": 0,
    }
    for result in results:
        if result.success:
            stats["succeeded"] += 1
        else:
            stats["failed"] += 1
            if result.retryable:
                stats["retryable"] += 1
    return stats


class AutopilotService:
    """
    Entry points for the periodic and on-demand triggers.

    Responsibilities:
    - List tasks and select the ones due at the current time
    - Execute each eligible task with one token cache per run
    - Keep going when a task fails; only store outages abort the run
    - Run a single task on demand with the same claim/execute contract
    """

    def __init__(
        self,
        task_store: TaskStore,
        executor: TaskExecutor,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize autopilot service.

        Args:
            task_store: Repository for upload tasks.
            executor: Single-task executor.
            clock: Source of the current UTC time.
        """
        self.task_store = task_store
        self.executor = executor
        self.clock = clock

    def run_autopilot(self, now: Optional[datetime] = None) -> List[ExecutionResult]:
        """
        Process all tasks that are due.

        Args:
            now: Evaluation time (defaults to the clock).

        Returns:
            One ExecutionResult per eligible task, in insertion order.

        Raises:
            StoreUnavailableError: If the task store cannot be reached.
        """
        now = now or self.clock()
        logger.info("Starting autopilot run")

        tasks = self.task_store.list()
        eligible = select_eligible(tasks, now)
        logger.info(f"Found {len(eligible)} eligible tasks out of {len(tasks)}")

        token_cache: TokenCache = {}
        results: List[ExecutionResult] = []

        for task in eligible:
            try:
                result = self.executor.execute(task.id, token_cache, claim_from=BATCH_CLAIM_FROM)
            except StoreUnavailableError:
                logger.error("Task store unavailable, aborting autopilot run", exc_info=True)
                raise
            except Exception as e:
                logger.exception(f"Unexpected error processing task {task.id}: {e}")
                result = failure_result(task.id, InternalError(f"Unexpected error: {e}"))
            results.append(result)

        stats = summarize(results)
        logger.info(
            f"Autopilot run completed: "
            f"processed={stats['processed']}, "
            f"succeeded={stats['succeeded']}, "
            f"failed={stats['failed']}, "
            f"retryable={stats['retryable']}"
        )
        return results

    def handle_single_upload(self, task_id: int) -> ExecutionResult:
        """
        Run one task now, regardless of its schedule.

        Raises:
            StoreUnavailableError: If the task store cannot be reached.
        """
        logger.info(f"On-demand run for task {task_id}")
        return self.executor.execute(task_id, {})
