"""
Workflow Engine Package

Marketing workflow orchestration: catalog, executors, state and engine.
"""

from workflow.models import (
    WorkflowExecution,
    WorkflowTaskRecord,
    ExecutionStatus,
    TaskStatus,
    TaskCategory,
    Attribution,
    AttributionChannel,
)
from workflow.errors import (
    WorkflowError,
    InvalidWorkflowType,
    MissingRequiredInput,
    ExecutionNotFound,
    TaskExecutionError,
    StoreError,
)

__all__ = [
    "WorkflowExecution",
    "WorkflowTaskRecord",
    "ExecutionStatus",
    "TaskStatus",
    "TaskCategory",
    "Attribution",
    "AttributionChannel",
    "WorkflowError",
    "InvalidWorkflowType",
    "MissingRequiredInput",
    "ExecutionNotFound",
    "TaskExecutionError",
    "StoreError",
]
