"""
Workflow Engine Errors

Exception hierarchy shared by the catalog, executors, state store and engine.
Validation errors are raised synchronously to the caller; everything raised
after an execution is accepted ends up in the execution's observable state.
"""

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for all workflow engine errors"""

    code = "WorkflowError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidWorkflowType(WorkflowError, ValueError):
    """Requested workflow id is not in the catalog"""

    code = "InvalidWorkflowType"

    def __init__(self, workflow_type: str, available: Optional[List[str]] = None):
        self.workflow_type = workflow_type
        self.available = available or []
        super().__init__(
            f"Unknown workflow type '{workflow_type}'. "
            f"Available: {self.available}"
        )


class MissingRequiredInput(WorkflowError, ValueError):
    """One or more required input keys are absent or empty"""

    code = "MissingRequiredInput"

    def __init__(self, workflow_type: str, missing: List[str]):
        self.workflow_type = workflow_type
        self.missing = list(missing)
        super().__init__(
            f"Workflow '{workflow_type}' is missing required inputs: "
            f"{', '.join(self.missing)}"
        )


class ExecutionNotFound(WorkflowError, LookupError):
    """No execution stored under the given id"""

    code = "ExecutionNotFound"

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__(f"Execution {execution_id} not found")


class UnknownTaskCategory(WorkflowError, ValueError):
    """No executor registered for a task category"""

    code = "UnknownTaskCategory"


class TaskExecutionError(WorkflowError):
    """
    Raised by a task executor when its unit of work fails.

    Args:
        category: Task category of the failing executor
        message: Human-readable failure reason (stored on the task record)
        retryable: Whether the TaskRunner may spend retry budget on it
    """

    code = "TaskExecutionError"

    def __init__(self, category: str, message: str, retryable: bool = False):
        self.category = str(getattr(category, "value", category))
        self.retryable = retryable
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.category}] {self.message}"


class StoreError(WorkflowError):
    """Persistence backend failed to read or write execution state"""

    code = "StoreError"


class InvalidStatusTransition(WorkflowError):
    """Attempt to move an execution or task backwards in its state machine"""

    code = "InvalidStatusTransition"
