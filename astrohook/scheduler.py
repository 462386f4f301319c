"""Fire-and-forget hand-off from the HTTP handler to the pipeline.

The webhook resource calls :meth:`TaskScheduler.schedule` and returns its
response straight away. The pipeline runs as a separate asyncio task that
outlives the request; its result is only visible through the journal.

Runs are serialized with a single lock so that two pushes in quick
succession never reset and build the same working copy at the same time.
A second run waits for the first instead of being dropped, so the last
push always ends up deployed.
"""

from __future__ import annotations

import asyncio
import typing as typ

from astrohook.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    from astrohook.events import WebhookEvent
    from astrohook.journal import DeployLog
    from astrohook.pipeline import DeploymentPipeline, DeploymentRun

__all__ = ["DeployScheduler", "TaskScheduler"]

logger = get_logger(__name__)


class DeployScheduler(typ.Protocol):
    """Accepts events whose deployment should start in the background."""

    def schedule(self, event: WebhookEvent) -> object:
        """Start deploying ``event`` without waiting for it to finish."""
        ...


class TaskScheduler:
    """Run each accepted event's pipeline as a detached asyncio task."""

    def __init__(self, pipeline: DeploymentPipeline, journal: DeployLog) -> None:
        """Configure the scheduler with the pipeline it launches."""
        self._pipeline = pipeline
        self._journal = journal
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[DeploymentRun]] = set()

    @property
    def pending(self) -> int:
        """Return the number of runs that have not finished yet."""
        return len(self._tasks)

    def schedule(self, event: WebhookEvent) -> asyncio.Task[DeploymentRun]:
        """Create the deployment task and return it without awaiting it.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(
            self._deploy(event), name=f"deploy-{event.repository_name}"
        )
        # The loop only keeps weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled run to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _deploy(self, event: WebhookEvent) -> DeploymentRun:
        if self._lock.locked():
            await self._journal.warning(
                "Deployment already running; push to %s (%s) will start after it",
                event.repository_name,
                event.branch_ref,
            )
        async with self._lock:
            await self._journal.info(
                "Starting deployment for %s (%s)",
                event.repository_name,
                event.branch_ref,
            )
            return await self._pipeline.run()

    def _finished(self, task: asyncio.Task[DeploymentRun]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_exception(logger, f"Deployment task {task.get_name()} crashed", exc)
