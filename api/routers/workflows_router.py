"""
Marketing Workflow Router

Launch, inspect, stream and cancel workflow executions. Executions are
scoped to the caller's organization.

Endpoints:
- GET /workflows - Workflow catalog
- POST /workflows/execute - Launch an execution (202)
- GET /workflows/running - IDs of running executions
- GET /workflows/executions - List executions (filterable by workflow_type, status)
- GET /workflows/{execution_id} - Execution detail with tasks and progress
- GET /workflows/{execution_id}/stream - Stream execution snapshots (SSE)
- POST /workflows/{execution_id}/cancel - Cancel an execution (idempotent)
"""

import logging
import asyncio
import json
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from typing import Dict, Any, Optional, List, Tuple
from pydantic import BaseModel, ConfigDict, Field

from dependencies import get_current_user, get_engine
from models.user import User

from workflow.engine import WorkflowEngine
from workflow.models import ExecutionStatus, WorkflowExecution

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/workflows",
    tags=["Marketing Workflows"]
)

KEEPALIVE_SECONDS = 15


# ==================== Request/Response Models ====================

class ExecuteWorkflowRequest(BaseModel):
    """Launch request (camelCase workflowType accepted)"""
    model_config = ConfigDict(populate_by_name=True)

    workflow_type: str = Field(..., alias="workflowType", description="Catalog workflow id")
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Workflow parameters")


class ExecuteWorkflowResponse(BaseModel):
    """Accepted execution"""
    id: str
    status: str
    progress: int
    workflow_type: str
    estimated_duration: int


class WorkflowCatalogItem(BaseModel):
    """Workflow definition summary"""
    id: str
    name: str
    description: str
    category: str
    difficulty: str
    task_count: int
    tasks: List[str]
    required_inputs: List[str]
    estimated_duration: int
    potential_revenue: Optional[Tuple[int, int]]
    tags: List[str]


class RunningWorkflowsResponse(BaseModel):
    running_workflows: List[str]
    count: int


class ExecutionListItem(BaseModel):
    """Execution summary for listing"""
    id: str
    workflow_type: str
    workflow_name: str
    status: str
    progress: int
    created_at: str
    completed_at: Optional[str]


class ExecutionListResponse(BaseModel):
    executions: List[ExecutionListItem]
    count: int


# ==================== Helpers ====================

def _organization_id(user: User) -> str:
    return str(user.organization_id)


async def _get_owned_execution(
    execution_id: str,
    current_user: User,
    engine: WorkflowEngine,
) -> WorkflowExecution:
    execution = await engine.get_execution(execution_id)
    if execution.owner_id != _organization_id(current_user):
        raise HTTPException(status_code=403, detail=f"Access denied to execution {execution_id}")
    return execution


def serialize_execution(execution: WorkflowExecution) -> Dict[str, Any]:
    """Execution as JSON-ready dict with progress stats"""
    data = execution.model_dump(mode="json")
    data["progress"] = execution.get_progress_stats()
    current_task = execution.get_current_task()
    data["current_task"] = current_task.name if current_task else None
    return data


def latest_snapshot_observer(queue: asyncio.Queue):
    """
    Observer that keeps only the newest undelivered snapshot in queue

    Never blocks, so a stalled or disconnected client cannot hold up the
    notifier.
    """
    def observer(snapshot: WorkflowExecution) -> None:
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(snapshot)

    return observer


def _sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


# ==================== API Endpoints ====================

@router.get("", response_model=List[WorkflowCatalogItem])
async def list_workflow_catalog(engine: WorkflowEngine = Depends(get_engine)):
    """List every workflow that can be launched"""
    return [
        WorkflowCatalogItem(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            category=definition.category,
            difficulty=definition.difficulty,
            task_count=len(definition.tasks),
            tasks=definition.get_task_names(),
            required_inputs=list(definition.required_inputs),
            estimated_duration=definition.estimated_duration_minutes,
            potential_revenue=definition.potential_revenue,
            tags=list(definition.tags),
        )
        for definition in engine.list_workflows()
    ]


@router.post("/execute", response_model=ExecuteWorkflowResponse, status_code=status.HTTP_202_ACCEPTED)
async def execute_workflow(
    request: ExecuteWorkflowRequest,
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """
    Launch a workflow execution

    Validation happens before anything is created: an unknown workflow type
    is a 400 and missing required inputs are a 422. On success the execution
    is PENDING and runs in the background.
    """
    execution = await engine.submit(
        request.workflow_type,
        actor_id=str(current_user.id),
        owner_id=_organization_id(current_user),
        inputs=request.inputs,
    )

    logger.info(f"User {current_user.email} launched {request.workflow_type} ({execution.id})")

    return ExecuteWorkflowResponse(
        id=execution.id,
        status=execution.status.value,
        progress=execution.progress_percent,
        workflow_type=execution.workflow_id,
        estimated_duration=execution.estimated_duration_minutes,
    )


@router.get("/running", response_model=RunningWorkflowsResponse)
async def get_running_workflows(
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """IDs of the organization's executions currently RUNNING"""
    running = await engine.running_execution_ids(owner_id=_organization_id(current_user))
    return RunningWorkflowsResponse(running_workflows=running, count=len(running))


@router.get("/executions", response_model=ExecutionListResponse)
async def list_executions(
    workflow_type: Optional[str] = None,
    status: Optional[ExecutionStatus] = None,
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """
    List the organization's executions, newest first

    Query Parameters:
    - workflow_type: Filter by workflow id (e.g., 'product-launch')
    - status: Filter by execution status (PENDING, RUNNING, COMPLETED, FAILED, CANCELLED)
    - limit: Maximum number of executions to return (default: 50)
    - offset: Offset for pagination (default: 0)
    """
    if limit < 1 or offset < 0:
        raise HTTPException(status_code=400, detail="limit must be >= 1 and offset >= 0")

    executions = await engine.list_executions(
        owner_id=_organization_id(current_user),
        workflow_id=workflow_type,
        status=status,
        limit=limit,
        offset=offset,
    )

    items = [
        ExecutionListItem(
            id=execution.id,
            workflow_type=execution.workflow_id,
            workflow_name=execution.workflow_name,
            status=execution.status.value,
            progress=execution.progress_percent,
            created_at=execution.created_at.isoformat(),
            completed_at=execution.completed_at.isoformat() if execution.completed_at else None,
        )
        for execution in executions
    ]
    return ExecutionListResponse(executions=items, count=len(items))


@router.get("/{execution_id}")
async def get_execution(
    execution_id: str,
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """
    Get execution detail

    Returns status, progress stats, every task with its status, result and
    error, accumulated outputs and (once COMPLETED) revenue attribution.
    """
    execution = await _get_owned_execution(execution_id, current_user, engine)
    return serialize_execution(execution)


@router.post("/{execution_id}/cancel")
async def cancel_execution(
    execution_id: str,
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """
    Cancel an execution

    The execution stops before its next task. Cancelling an execution that
    already finished returns it unchanged.
    """
    await _get_owned_execution(execution_id, current_user, engine)
    execution = await engine.cancel(execution_id)
    return serialize_execution(execution)


@router.get("/{execution_id}/stream")
async def stream_execution(
    execution_id: str,
    current_user: User = Depends(get_current_user),
    engine: WorkflowEngine = Depends(get_engine),
):
    """
    Stream execution snapshots via Server-Sent Events (SSE)

    Sends the current snapshot immediately, then one `snapshot` event per
    delivered state change. Intermediate states may be skipped for slow
    clients; the terminal snapshot is always sent and closes the stream.
    """
    await _get_owned_execution(execution_id, current_user, engine)

    queue: asyncio.Queue = asyncio.Queue(maxsize=1)
    unsubscribe = await engine.subscribe(execution_id, latest_snapshot_observer(queue))

    async def event_stream():
        try:
            yield _sse("connected", {"execution_id": execution_id})

            while True:
                try:
                    snapshot = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    # Keepalive comment prevents proxy timeouts
                    yield ": keepalive\n\n"
                    continue

                yield _sse("snapshot", serialize_execution(snapshot))

                if snapshot.is_terminal:
                    logger.info(
                        f"Execution {execution_id} reached terminal state "
                        f"{snapshot.status.value}, closing SSE stream"
                    )
                    return
        finally:
            unsubscribe()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"  # Disable nginx buffering
        }
    )
