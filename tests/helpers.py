"""Test executors and workflow definitions."""

import asyncio
import os
import random
from typing import Any, Dict

from jose import jwt

from workflow.attribution import HeuristicAttributionEstimator
from workflow.engine import WorkflowEngine
from workflow.executors import build_executors
from workflow.executors.base import TaskContext, TaskExecutor
from workflow.models import TaskCategory
from workflow.runner import TaskRunner
from workflow.scheduler import ExecutionScheduler
from workflow.workflows.definition import TaskTemplate, WorkflowDefinition


class FailingExecutor(TaskExecutor):
    """Always raises a non-retryable TaskExecutionError."""

    simulated_seconds = 0

    def __init__(self, category: TaskCategory, message: str = "partner API rejected the request"):
        super().__init__(delay_scale=0)
        self.category = category.value
        self.message = message
        self.calls = 0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        self.calls += 1
        raise self.fail(self.message)


class FlakyExecutor(TaskExecutor):
    """Fails with a retryable error `failures` times, then succeeds."""

    simulated_seconds = 0

    def __init__(self, category: TaskCategory, failures: int):
        super().__init__(delay_scale=0)
        self.category = category.value
        self.failures = failures
        self.calls = 0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.fail(f"rate limited (call {self.calls})", retryable=True)
        return {"calls": self.calls}


class SlowExecutor(TaskExecutor):
    """Sleeps for `seconds` before returning."""

    simulated_seconds = 0

    def __init__(self, category: TaskCategory, seconds: float):
        super().__init__(delay_scale=0)
        self.category = category.value
        self.seconds = seconds

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        await asyncio.sleep(self.seconds)
        return {"slept": self.seconds}


class BrokenExecutor(TaskExecutor):
    """Raises an unexpected (non-TaskExecutionError) exception."""

    simulated_seconds = 0

    def __init__(self, category: TaskCategory):
        super().__init__(delay_scale=0)
        self.category = category.value

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        raise KeyError("missing field")


CRITICAL_LAUNCH = WorkflowDefinition(
    id="test-critical-launch",
    name="Critical Launch",
    required_inputs=["productName"],
    tasks=[
        TaskTemplate(name="Copy", category=TaskCategory.CONTENT_GENERATION),
        TaskTemplate(
            name="Landing",
            category=TaskCategory.LANDING_PAGE_CREATION,
            depends_on=["Copy"],
            critical=True,
        ),
        TaskTemplate(name="Emails", category=TaskCategory.EMAIL_SEQUENCE_SETUP, depends_on=["Copy"]),
    ],
)

RETRYING_LAUNCH = WorkflowDefinition(
    id="test-retrying-launch",
    name="Retrying Launch",
    required_inputs=["productName"],
    tasks=[
        TaskTemplate(name="Copy", category=TaskCategory.CONTENT_GENERATION),
        TaskTemplate(name="Emails", category=TaskCategory.EMAIL_SEQUENCE_SETUP, max_retries=2),
    ],
)



def build_test_engine(state_manager, executors=None, **kwargs) -> WorkflowEngine:
    """Engine with zero delays and a seeded attribution RNG."""
    return WorkflowEngine(
        state_manager,
        scheduler=kwargs.pop("scheduler", None) or ExecutionScheduler(max_concurrent=10),
        runner=kwargs.pop("runner", None) or TaskRunner(timeout_seconds=5, retry_backoff_base=0),
        executors=executors if executors is not None else build_executors(delay_scale=0),
        attribution_estimator=HeuristicAttributionEstimator(rng=random.Random(7)),
        store_retry_backoff=0,
        **kwargs,
    )


def make_token(email: str, role: str = "user") -> str:
    return jwt.encode(
        {"sub": email, "role": role},
        os.environ["AUTH_SECRET_KEY"],
        algorithm=os.environ["AUTH_ALGORITHM"],
    )


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {make_token(user.email)}"}
