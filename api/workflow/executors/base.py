"""
Task Executor Base Class

Provides the foundation for all task executors:
- One executor per task category, registered with @register_executor
- Stateless execution (all state comes via the template and context)
- Executors never touch the state store; the engine is the single writer
- Simulated provider latency scaled by EXECUTOR_DELAY_SCALE

Usage:
    @register_executor(TaskCategory.SEO_OPTIMIZATION)
    class SEOOptimizationExecutor(TaskExecutor):
        simulated_seconds = 4.5

        async def run(self, template, context):
            return {"keywordsTargeted": 25}

Swapping in a real provider call means overriding run() and raising
TaskExecutionError on failure; timeout and retry are handled by the
TaskRunner regardless of whether the call is simulated.
"""

import asyncio
import hashlib
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field

from config.workflow_config import WorkflowConfig
from workflow.errors import TaskExecutionError
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate

logger = logging.getLogger(__name__)


class TaskContext(BaseModel):
    """
    Read-only context handed to an executor.

    prior_outputs only contains results of the tasks named in the template's
    depends_on list.
    """
    model_config = ConfigDict(frozen=True)

    execution_id: str
    workflow_id: str
    inputs: Dict[str, Any] = Field(default_factory=dict)
    prior_outputs: Dict[str, Any] = Field(default_factory=dict)

    def get_input(self, key: str, default: Any = None) -> Any:
        value = self.inputs.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        return value

    def short_id(self, prefix: str) -> str:
        """Deterministic identifier derived from the execution id."""
        digest = hashlib.sha1(f"{prefix}:{self.execution_id}".encode()).hexdigest()
        return f"{prefix}_{digest[:12]}"


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class TaskExecutor(ABC):
    """
    Base class for all task executors.

    Subclasses MUST define:
    - `async def run(self, template, context) -> Dict[str, Any]`

    Subclasses MAY override:
    - `simulated_seconds` (class attribute) - simulated provider latency
    """

    # Set by @register_executor decorator
    category: ClassVar[str] = ""
    executor_name: ClassVar[str] = ""

    simulated_seconds: ClassVar[float] = 1.0

    def __init__(self, delay_scale: float = None):
        self.delay_scale = WorkflowConfig.EXECUTOR_DELAY_SCALE if delay_scale is None else delay_scale

    async def execute(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        """
        Execute one task.

        Args:
            template: Task template from the workflow definition
            context: Execution inputs plus outputs of dependency tasks

        Returns:
            Category-specific result payload

        Raises:
            TaskExecutionError: If the unit of work fails
        """
        template_category = self.category_value(template.category)
        if template_category != self.category:
            raise TaskExecutionError(
                self.category,
                f"Executor for '{self.category}' cannot run '{template_category}' task '{template.name}'",
            )

        await self.simulate_latency()
        result = await self.run(template, context)
        if not isinstance(result, Mapping):
            raise TaskExecutionError(
                self.category,
                f"Executor returned {type(result).__name__}, expected a mapping",
            )
        return dict(result)

    @abstractmethod
    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        pass

    async def simulate_latency(self) -> None:
        delay = self.simulated_seconds * self.delay_scale
        if delay > 0:
            await asyncio.sleep(delay)

    def fail(self, message: str, retryable: bool = False) -> TaskExecutionError:
        """Build a TaskExecutionError for this executor's category."""
        return TaskExecutionError(self.category, message, retryable=retryable)

    @staticmethod
    def category_value(category: Any) -> str:
        return category.value if isinstance(category, TaskCategory) else str(category)
