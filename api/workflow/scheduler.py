"""
Execution Scheduler

Runs each accepted execution as its own asyncio task, bounded by a
semaphore. Scheduled tasks outlive the HTTP request that submitted them;
shutdown() cancels whatever is still in flight.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List

from config.workflow_config import WorkflowConfig

logger = logging.getLogger(__name__)


class ExecutionScheduler:
    """One background task per execution, at most max_concurrent running"""

    def __init__(self, max_concurrent: int = None):
        self.max_concurrent = max_concurrent or WorkflowConfig.MAX_CONCURRENT_EXECUTIONS
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._tasks: Dict[str, asyncio.Task] = {}

    def schedule(self, execution_id: str, run: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """
        Start run() in the background once a concurrency slot frees up

        Args:
            execution_id: Execution the task drives
            run: Zero-argument coroutine factory

        Returns:
            The asyncio.Task
        """
        if execution_id in self._tasks:
            raise ValueError(f"Execution {execution_id} is already scheduled")

        async def guarded():
            async with self._semaphore:
                return await run()

        task = asyncio.create_task(guarded(), name=f"execution-{execution_id}")
        self._tasks[execution_id] = task
        task.add_done_callback(lambda t: self._on_done(execution_id, t))

        logger.debug(
            f"Scheduled execution {execution_id} "
            f"({len(self._tasks)} active, limit {self.max_concurrent})"
        )
        return task

    def _on_done(self, execution_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(execution_id, None)
        if task.cancelled():
            logger.warning(f"Execution task {execution_id} was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Execution task {execution_id} crashed: {error!r}")

    def is_scheduled(self, execution_id: str) -> bool:
        return execution_id in self._tasks

    def active_ids(self) -> List[str]:
        return list(self._tasks)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel all in-flight execution tasks and wait for them to unwind."""
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info(f"Cancelling {len(tasks)} in-flight executions")
        for task in tasks:
            task.cancel()

        done, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} executions did not stop within {timeout}s")
