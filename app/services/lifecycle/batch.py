# ============================================================================
# Batched Bulk Operation Runner
# ============================================================================
"""
Runs one operation over many targets in fixed-size groups.

Items inside a group run concurrently; groups run one after another so the
backing API never sees more than batch_size requests at once. Cancellation
is cooperative: it stops future groups but never interrupts a group that is
already dispatched.
"""
from typing import Any, Awaitable, Callable, List, Optional
import asyncio
import inspect
import logging

from app.core.exceptions import InvalidOperationError, InvalidStateError
from app.services.lifecycle.models import BatchJob, BatchResult, BatchState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

DEFAULT_BATCH_SIZE = 5


class BatchRunner:
    """Executes one BatchJob at a time"""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE):
        self.batch_size = batch_size
        self._job: Optional[BatchJob] = None

    @property
    def job(self) -> Optional[BatchJob]:
        return self._job

    @property
    def is_running(self) -> bool:
        return self._job is not None

    def cancel(self) -> bool:
        """Request cancellation of the running job; no-op when idle"""
        if self._job is None or self._job.cancelled:
            return False
        self._job.cancelled = True
        logger.info(
            f"Bulk job {self._job.job_id} cancellation requested "
            f"({self._job.completed}/{self._job.total} settled)"
        )
        return True

    async def run(
        self,
        items: List[Any],
        operation: Callable[[Any], Awaitable[Any]],
        batch_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> BatchResult:
        """
        Run an async operation over every item, group by group.

        Args:
            items: Targets, processed in input order
            operation: Coroutine function called once per item
            batch_size: Group size (defaults to the runner's)
            on_progress: Called with (completed, total) after every settled item

        Returns:
            Tally of settled, succeeded and failed items

        Raises:
            InvalidOperationError: operation is not callable, does not return an
                awaitable, or batch_size < 1
            InvalidStateError: another job is running on this runner
        """
        if not callable(operation):
            raise InvalidOperationError("Bulk operation must be callable")
        size = batch_size if batch_size is not None else self.batch_size
        if size < 1:
            raise InvalidOperationError(f"batch_size must be at least 1, got {size}")
        if self._job is not None:
            raise InvalidStateError(f"Bulk job {self._job.job_id} is still running")

        job = BatchJob(items=list(items), operation=operation, batch_size=size)
        self._job = job
        logger.info(f"Bulk job {job.job_id} started: {job.total} items in {job.group_count} group(s)")

        try:
            for index, group in enumerate(job.groups()):
                if job.cancelled:
                    job.state = BatchState.CANCELLED
                    break
                job.group_index = index
                outcomes = await asyncio.gather(
                    *(self._settle(job, item, on_progress) for item in group),
                    return_exceptions=True
                )
                misuse = next((o for o in outcomes if isinstance(o, InvalidOperationError)), None)
                if misuse is not None:
                    logger.error(f"Bulk job {job.job_id} aborted: {misuse.detail}")
                    raise misuse
            else:
                job.state = BatchState.FINISHED
        finally:
            self._job = None

        logger.info(
            f"Bulk job {job.job_id} {job.state.value}: "
            f"{job.succeeded} succeeded, {job.failed} failed, {job.total - job.completed} not started"
        )
        return BatchResult(
            completed=job.completed,
            succeeded=job.succeeded,
            failed=job.failed,
            total=job.total,
            cancelled=job.state is BatchState.CANCELLED
        )

    @staticmethod
    async def _settle(job: BatchJob, item: Any, on_progress: Optional[ProgressCallback]) -> None:
        try:
            pending = job.operation(item)
        except Exception as e:
            job.failed += 1
            logger.error(f"Bulk job {job.job_id} item {item!r} failed: {e}")
        else:
            if not inspect.isawaitable(pending):
                raise InvalidOperationError("Bulk operation must return an awaitable")
            try:
                await pending
            except Exception as e:
                job.failed += 1
                logger.error(f"Bulk job {job.job_id} item {item!r} failed: {e}")
            else:
                job.succeeded += 1

        job.completed += 1
        if on_progress:
            try:
                on_progress(job.completed, job.total)
            except Exception as e:
                logger.error(f"Bulk job {job.job_id} progress callback failed: {e}")
