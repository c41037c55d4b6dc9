"""
Workflow Engine Data Models

Pydantic models for workflow execution state:
- WorkflowExecution: One run of a workflow for an actor
- WorkflowTaskRecord: Individual unit of work within an execution
- Attribution: Post-hoc revenue/channel estimate for completed runs
- Status enums and the transitions allowed between them
"""

from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Status of a workflow execution"""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class TaskStatus(str, Enum):
    """Status of an individual task"""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TaskCategory(str, Enum):
    """Closed set of task categories, one executor per category"""
    CONTENT_GENERATION = "content_generation"
    LANDING_PAGE_CREATION = "landing_page_creation"
    EMAIL_SEQUENCE_SETUP = "email_sequence_setup"
    SOCIAL_CAMPAIGN_SETUP = "social_campaign_setup"
    COMPETITOR_ANALYSIS = "competitor_analysis"
    AD_CAMPAIGN_SETUP = "ad_campaign_setup"
    SEO_OPTIMIZATION = "seo_optimization"
    ANALYTICS_SETUP = "analytics_setup"
    GENERIC_FULFILLMENT = "generic_fulfillment"


TERMINAL_STATUSES = frozenset({
    ExecutionStatus.COMPLETED,
    ExecutionStatus.FAILED,
    ExecutionStatus.CANCELLED,
})

# RUNNING -> RUNNING is the progress-only update after each task
ALLOWED_TRANSITIONS: Dict[ExecutionStatus, frozenset] = {
    ExecutionStatus.PENDING: frozenset({
        ExecutionStatus.RUNNING,
        ExecutionStatus.FAILED,
        ExecutionStatus.CANCELLED,
    }),
    ExecutionStatus.RUNNING: frozenset({
        ExecutionStatus.RUNNING,
        ExecutionStatus.COMPLETED,
        ExecutionStatus.FAILED,
        ExecutionStatus.CANCELLED,
    }),
    ExecutionStatus.COMPLETED: frozenset(),
    ExecutionStatus.FAILED: frozenset(),
    ExecutionStatus.CANCELLED: frozenset(),
}

# RUNNING -> RUNNING records another retry attempt
TASK_TRANSITIONS: Dict[TaskStatus, frozenset] = {
    TaskStatus.PENDING: frozenset({TaskStatus.RUNNING, TaskStatus.FAILED}),
    TaskStatus.RUNNING: frozenset({
        TaskStatus.RUNNING,
        TaskStatus.COMPLETED,
        TaskStatus.FAILED,
    }),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class AttributionChannel(BaseModel):
    """One channel's share of the estimated revenue"""
    name: str = Field(..., description="Channel name (e.g., 'Organic Search')")
    contribution: int = Field(..., ge=0, le=100, description="Percent share, all channels sum to 100")
    revenue: int = Field(..., ge=0, description="Estimated revenue attributed to this channel")


class Attribution(BaseModel):
    """Post-hoc revenue attribution for a completed execution"""
    estimated_revenue: int = Field(..., ge=0, description="Estimated total revenue (USD)")
    confidence: int = Field(..., ge=0, le=100, description="Confidence percent")
    channels: List[AttributionChannel] = Field(default_factory=list)

    @property
    def total_contribution(self) -> int:
        return sum(c.contribution for c in self.channels)


class WorkflowTaskRecord(BaseModel):
    """Individual unit of work within an execution"""
    id: str = Field(..., description="Unique task ID (UUID)")
    execution_id: str = Field(..., description="Owning execution ID")
    order_index: int = Field(..., ge=0, description="Position within the execution")

    # Copied from the template at creation time
    name: str = Field(..., description="Human-readable task name")
    category: str = Field(..., description="Task category selecting the executor")
    executor_hint: Optional[str] = Field(None, description="Opaque provider hint passed to the executor")
    depends_on: List[str] = Field(default_factory=list, description="Earlier task names whose outputs are readable")
    critical: bool = Field(default=False, description="Stop the execution if this task fails?")
    max_retries: int = Field(default=0, description="Retry budget consumed by the task runner")

    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current task status")
    attempts: int = Field(default=0, description="Number of attempts started")

    # Results
    result: Optional[Dict[str, Any]] = Field(None, description="Executor payload once COMPLETED")
    error_message: Optional[str] = Field(None, description="Error message if FAILED")

    # Timing
    started_at: Optional[datetime] = Field(None, description="When task started")
    completed_at: Optional[datetime] = Field(None, description="When task completed")

    @property
    def is_finished(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


class WorkflowExecution(BaseModel):
    """One concrete, stateful run of a workflow"""
    id: str = Field(..., description="Unique execution ID (UUID)")
    workflow_id: str = Field(..., description="Catalog ID of the definition used (e.g., 'product-launch')")
    workflow_name: str = Field(default="", description="Display name of the definition at launch time")
    status: ExecutionStatus = Field(default=ExecutionStatus.PENDING, description="Current execution status")
    progress_percent: int = Field(default=0, ge=0, le=100, description="Derived from task counts, never set directly")

    # Ownership
    actor_id: str = Field(..., description="User who launched this execution")
    owner_id: str = Field(..., description="Organization/tenant the execution belongs to")

    # Input data
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Caller-supplied parameters")
    estimated_duration_minutes: int = Field(default=0, description="Advisory duration copied from the definition")

    # Execution tracking
    tasks: List[WorkflowTaskRecord] = Field(default_factory=list, description="Tasks in execution order")

    # Results
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Task name -> result, grows monotonically")
    attribution: Optional[Attribution] = Field(None, description="Set only when COMPLETED")
    errors: List[str] = Field(default_factory=list, description="Execution-level error messages")

    # Timing
    created_at: datetime = Field(default_factory=utcnow, description="When execution was created")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update time")
    completed_at: Optional[datetime] = Field(None, description="When execution reached a terminal state")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def get_task(self, task_id: str) -> Optional[WorkflowTaskRecord]:
        """Get a task by its ID"""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_task_by_name(self, name: str) -> Optional[WorkflowTaskRecord]:
        """Get a task by its name"""
        for task in self.tasks:
            if task.name == name:
                return task
        return None

    def get_current_task(self) -> Optional[WorkflowTaskRecord]:
        """Get the task currently running, if any"""
        for task in self.tasks:
            if task.status == TaskStatus.RUNNING:
                return task
        return None

    def recompute_progress(self) -> int:
        """Recalculate progress_percent from task counts"""
        total = len(self.tasks)
        finished = sum(1 for t in self.tasks if t.is_finished)
        self.progress_percent = round(100 * finished / total) if total else 0
        return self.progress_percent

    def get_progress_stats(self) -> Dict[str, Any]:
        """Calculate progress statistics"""
        total_tasks = len(self.tasks)
        completed = sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)
        failed = sum(1 for t in self.tasks if t.status == TaskStatus.FAILED)
        running = sum(1 for t in self.tasks if t.status == TaskStatus.RUNNING)

        return {
            "total_tasks": total_tasks,
            "completed": completed,
            "failed": failed,
            "running": running,
            "pending": total_tasks - completed - failed - running,
            "percent": self.progress_percent,
        }
