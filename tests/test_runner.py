"""TaskRunner: timeout, retry with backoff, error wrapping."""

import pytest

from helpers import BrokenExecutor, FailingExecutor, FlakyExecutor, SlowExecutor
from workflow.errors import TaskExecutionError
from workflow.executors.base import TaskContext
from workflow.models import TaskCategory
from workflow.runner import TaskRunner, compute_backoff
from workflow.workflows.definition import TaskTemplate

CONTEXT = TaskContext(execution_id="exec-1", workflow_id="test")


def email_task(**overrides) -> TaskTemplate:
    return TaskTemplate(name="Emails", category=TaskCategory.EMAIL_SEQUENCE_SETUP, **overrides)


@pytest.fixture
def runner() -> TaskRunner:
    return TaskRunner(timeout_seconds=5, retry_backoff_base=0, retry_backoff_cap=0)


def test_compute_backoff():
    assert compute_backoff(1, base=2) == 2
    assert compute_backoff(3, base=2) == 8
    assert compute_backoff(10, base=2, cap=60) == 60
    assert 4 <= compute_backoff(2, base=2, jitter=0.5) <= 4.5


async def test_retryable_failure_succeeds_within_budget(runner):
    executor = FlakyExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP, failures=2)
    attempts = []

    async def on_attempt(attempt):
        attempts.append(attempt)

    result = await runner.run_task(executor, email_task(max_retries=2), CONTEXT, on_attempt)

    assert result == {"calls": 3}
    assert attempts == [1, 2, 3]


async def test_retry_budget_exhausted(runner):
    executor = FlakyExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP, failures=5)

    with pytest.raises(TaskExecutionError, match="Failed after 2 attempts"):
        await runner.run_task(executor, email_task(max_retries=1), CONTEXT)

    assert executor.calls == 2


async def test_default_budget_fails_fast(runner):
    executor = FlakyExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP, failures=1)

    with pytest.raises(TaskExecutionError, match="rate limited"):
        await runner.run_task(executor, email_task(), CONTEXT)

    assert executor.calls == 1


async def test_non_retryable_error_is_not_retried(runner):
    executor = FailingExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP)

    with pytest.raises(TaskExecutionError, match="partner API rejected"):
        await runner.run_task(executor, email_task(max_retries=3), CONTEXT)

    assert executor.calls == 1


async def test_timeout_fails_task(runner):
    executor = SlowExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP, seconds=1)

    with pytest.raises(TaskExecutionError) as exc_info:
        await runner.run_task(executor, email_task(timeout_seconds=0.05), CONTEXT)

    assert "timed out" in exc_info.value.message
    assert exc_info.value.retryable is True


async def test_unexpected_exception_is_wrapped(runner):
    executor = BrokenExecutor(TaskCategory.EMAIL_SEQUENCE_SETUP)

    with pytest.raises(TaskExecutionError) as exc_info:
        await runner.run_task(executor, email_task(max_retries=2), CONTEXT)

    assert "KeyError" in exc_info.value.message
    assert exc_info.value.retryable is False
    assert isinstance(exc_info.value.__cause__, KeyError)
