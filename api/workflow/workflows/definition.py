"""
Workflow Definition DSL

Python DSL for defining marketing workflows as ordered task templates.

Usage:
    from workflow.workflows.definition import WorkflowDefinition, TaskTemplate
    from workflow.models import TaskCategory

    ProductLaunchWorkflow = WorkflowDefinition(
        id="product-launch",
        name="Product Launch Campaign",
        required_inputs=["productName"],
        tasks=[
            TaskTemplate(
                name="Market Research",
                category=TaskCategory.COMPETITOR_ANALYSIS,
                executor_hint="perplexity",
            ),
            TaskTemplate(
                name="Content Generation",
                category=TaskCategory.CONTENT_GENERATION,
                depends_on=["Market Research"],
            ),
            ...
        ]
    )

Templates run in list order. A task may only depend on tasks listed before it,
so list order is always a valid topological order.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Tuple

from workflow.models import TaskCategory


class TaskTemplate(BaseModel):
    """Task definition within a workflow."""
    model_config = ConfigDict(frozen=True)

    name: str                                  # Unique within the workflow
    category: TaskCategory                     # Selects the executor
    description: str = ""

    # Earlier task names whose outputs this task may read
    depends_on: List[str] = Field(default_factory=list)

    # Opaque provider hint (AI agent or fulfillment partner), passed through untouched
    executor_hint: Optional[str] = None

    # Deliverables shown in the catalog (documentation only)
    deliverables: List[str] = Field(default_factory=list)

    # Execution behavior
    critical: bool = False                     # Stop the execution if this fails?
    max_retries: int = 0                       # Retry budget for retryable failures
    timeout_seconds: Optional[float] = None    # Overrides TASK_TIMEOUT_SECONDS


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition.

    Immutable once registered. Executions copy what they need from it at
    creation time, so definitions may change between runs without breaking
    history.
    """
    model_config = ConfigDict(frozen=True)

    id: str                                    # Stable catalog id, e.g. "product-launch"
    name: str
    description: str = ""
    tasks: List[TaskTemplate]

    estimated_duration_minutes: int = 0        # Advisory only
    required_inputs: List[str] = Field(default_factory=list)

    # Catalog metadata
    category: str = ""
    difficulty: str = ""
    tags: List[str] = Field(default_factory=list)

    # Revenue range used by the attribution estimator (low, high) in USD
    potential_revenue: Optional[Tuple[int, int]] = None

    def get_task(self, name: str) -> Optional[TaskTemplate]:
        """Get a task template by name."""
        for task in self.tasks:
            if task.name == name:
                return task
        return None

    def get_task_names(self) -> List[str]:
        """Get all task names in definition order."""
        return [t.name for t in self.tasks]

    def missing_inputs(self, inputs: Dict[str, Any]) -> List[str]:
        """
        Return required input keys that are absent or empty.

        None, empty strings (after stripping) and empty collections count as
        missing; False and 0 are real values.
        """
        missing = []
        for key in self.required_inputs:
            value = inputs.get(key)
            if value is None:
                missing.append(key)
            elif isinstance(value, str) and not value.strip():
                missing.append(key)
            elif isinstance(value, (list, dict, tuple, set)) and not value:
                missing.append(key)
        return missing

    def validate_definition(self) -> List[str]:
        """
        Validate the workflow definition for internal consistency.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.tasks:
            errors.append(f"Workflow '{self.id}' has no tasks")

        names = [t.name for t in self.tasks]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            errors.append(f"Duplicate task names: {dupes}")

        seen = set()
        for task in self.tasks:
            for dep in task.depends_on:
                if dep == task.name:
                    errors.append(f"Task '{task.name}' depends on itself")
                elif dep not in seen:
                    errors.append(
                        f"Task '{task.name}' depends on '{dep}' which is not an earlier task"
                    )
            if task.max_retries < 0:
                errors.append(f"Task '{task.name}' has negative max_retries")
            if task.timeout_seconds is not None and task.timeout_seconds <= 0:
                errors.append(f"Task '{task.name}' has non-positive timeout_seconds")
            seen.add(task.name)

        if self.potential_revenue is not None:
            low, high = self.potential_revenue
            if low < 0 or high < low:
                errors.append(f"Invalid potential_revenue range {self.potential_revenue}")

        return errors
