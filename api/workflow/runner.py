"""
Task Runner

Runs one task template through its executor with:
- Per-task timeout (asyncio.wait_for)
- Retry logic with exponential backoff for retryable failures
- Unexpected executor exceptions wrapped into TaskExecutionError

The runner never writes state. It reports each new attempt through an
optional on_attempt callback so the engine can persist the attempt count.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional

from config.workflow_config import WorkflowConfig
from workflow.errors import TaskExecutionError
from workflow.executors.base import TaskExecutor, TaskContext
from workflow.workflows.definition import TaskTemplate

logger = logging.getLogger(__name__)

AttemptCallback = Callable[[int], Awaitable[None]]


def compute_backoff(
    attempt: int,
    base: float = 2,
    cap: Optional[float] = None,
    jitter: float = 0.0,
) -> float:
    """Exponential backoff (base ** attempt) with optional cap and jitter."""
    delay = base ** attempt
    if cap is not None:
        delay = min(delay, cap)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay


class TaskRunner:
    """Executes task templates with timeout and retry handling"""

    def __init__(
        self,
        timeout_seconds: float = None,
        retry_backoff_base: float = None,
        retry_backoff_cap: float = None,
    ):
        """
        Initialize task runner

        Args:
            timeout_seconds: Default per-attempt timeout (template may override)
            retry_backoff_base: Base for exponential backoff (seconds)
            retry_backoff_cap: Upper bound for a single backoff sleep
        """
        self.timeout_seconds = (
            WorkflowConfig.TASK_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self.retry_backoff_base = (
            WorkflowConfig.TASK_RETRY_BACKOFF if retry_backoff_base is None else retry_backoff_base
        )
        self.retry_backoff_cap = (
            WorkflowConfig.TASK_RETRY_BACKOFF_CAP if retry_backoff_cap is None else retry_backoff_cap
        )

    async def run_task(
        self,
        executor: TaskExecutor,
        template: TaskTemplate,
        context: TaskContext,
        on_attempt: Optional[AttemptCallback] = None,
    ) -> Dict[str, Any]:
        """
        Run a task until it succeeds or its retry budget is spent.

        Returns:
            Executor result payload

        Raises:
            TaskExecutionError: Final failure after all attempts
        """
        timeout = template.timeout_seconds or self.timeout_seconds
        max_attempts = template.max_retries + 1
        attempt = 0

        while True:
            attempt += 1
            if on_attempt is not None:
                await on_attempt(attempt)

            try:
                logger.info(
                    f"Executing task '{template.name}' ({executor.category}) "
                    f"attempt {attempt}/{max_attempts}"
                )
                return await self._run_once(executor, template, context, timeout)

            except TaskExecutionError as e:
                logger.warning(
                    f"Task '{template.name}' failed (attempt {attempt}/{max_attempts}): {e}"
                )
                if not e.retryable or attempt >= max_attempts:
                    if attempt > 1:
                        raise TaskExecutionError(
                            e.category,
                            f"Failed after {attempt} attempts: {e.message}",
                            retryable=e.retryable,
                        ) from e
                    raise

            backoff_seconds = compute_backoff(
                attempt, base=self.retry_backoff_base, cap=self.retry_backoff_cap
            )
            logger.info(f"Retrying task '{template.name}' in {backoff_seconds} seconds...")
            await asyncio.sleep(backoff_seconds)

    async def _run_once(
        self,
        executor: TaskExecutor,
        template: TaskTemplate,
        context: TaskContext,
        timeout: Optional[float],
    ) -> Dict[str, Any]:
        try:
            if timeout:
                return await asyncio.wait_for(executor.execute(template, context), timeout)
            return await executor.execute(template, context)
        except TaskExecutionError:
            raise
        except asyncio.TimeoutError as e:
            raise TaskExecutionError(
                executor.category,
                f"Task '{template.name}' timed out after {timeout} seconds",
                retryable=True,
            ) from e
        except Exception as e:
            logger.exception(f"Unexpected error in executor for '{template.name}'")
            raise TaskExecutionError(
                executor.category,
                f"Unexpected executor error: {type(e).__name__}: {e}",
            ) from e
