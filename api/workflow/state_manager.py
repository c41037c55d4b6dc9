"""
Workflow State Manager

Single writer of execution state:
- Create executions with all task records in one write
- Apply task and execution transitions (backward moves are rejected)
- Recompute progress on every write
- Notify observers after every committed write
- Cancellation flags

Writes are serialized per execution id with an asyncio.Lock. Backends only
implement load/save/index primitives; the transition rules live here.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from config.workflow_config import WorkflowConfig
from workflow.errors import ExecutionNotFound, InvalidStatusTransition, StoreError, WorkflowError
from workflow.events import ExecutionNotifier, Observer, Subscription
from workflow.models import (
    ALLOWED_TRANSITIONS,
    TASK_TRANSITIONS,
    Attribution,
    ExecutionStatus,
    TaskStatus,
    WorkflowExecution,
    WorkflowTaskRecord,
    utcnow,
)
from workflow.workflows.definition import WorkflowDefinition

logger = logging.getLogger(__name__)


class BaseStateManager(ABC):
    """Transition rules, locking and notification shared by all backends"""

    def __init__(self, notifier: ExecutionNotifier = None):
        self.notifier = notifier or ExecutionNotifier()
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, execution_id: str) -> asyncio.Lock:
        lock = self._locks.get(execution_id)
        if lock is None:
            lock = self._locks[execution_id] = asyncio.Lock()
        return lock

    # ==================== Backend primitives ====================

    @abstractmethod
    async def _load(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Read one execution, None if absent"""

    @abstractmethod
    async def _save(self, execution: WorkflowExecution) -> None:
        """Persist one execution and keep the indexes current"""

    @abstractmethod
    async def _load_all(self) -> List[WorkflowExecution]:
        """All stored executions, newest first"""

    @abstractmethod
    async def list_running_ids(self) -> List[str]:
        """IDs of executions currently RUNNING"""

    @abstractmethod
    async def set_cancelled(self, execution_id: str) -> bool:
        """Raise the cancellation flag"""

    @abstractmethod
    async def is_cancelled(self, execution_id: str) -> bool:
        """Check the cancellation flag"""

    @abstractmethod
    async def clear_cancelled(self, execution_id: str) -> bool:
        """Drop the cancellation flag"""

    # ==================== Execution Operations ====================

    async def create_execution(
        self,
        definition: WorkflowDefinition,
        actor_id: str,
        owner_id: str,
        inputs: Dict[str, Any],
    ) -> WorkflowExecution:
        """
        Create an execution in PENDING with one PENDING task per template

        Args:
            definition: Workflow definition to instantiate
            actor_id: User launching the execution
            owner_id: Organization the execution belongs to
            inputs: Caller-supplied parameters

        Returns:
            The stored execution
        """
        execution_id = str(uuid.uuid4())
        tasks = [
            WorkflowTaskRecord(
                id=str(uuid.uuid4()),
                execution_id=execution_id,
                order_index=index,
                name=template.name,
                category=template.category.value,
                executor_hint=template.executor_hint,
                depends_on=list(template.depends_on),
                critical=template.critical,
                max_retries=template.max_retries,
            )
            for index, template in enumerate(definition.tasks)
        ]

        execution = WorkflowExecution(
            id=execution_id,
            workflow_id=definition.id,
            workflow_name=definition.name,
            actor_id=str(actor_id),
            owner_id=str(owner_id),
            inputs=dict(inputs or {}),
            estimated_duration_minutes=definition.estimated_duration_minutes,
            tasks=tasks,
        )

        async with self._lock(execution_id):
            await self._save(execution)
            self.notifier.publish(execution)

        logger.info(
            f"Created execution {execution_id} ({definition.id}) "
            f"with {len(tasks)} tasks for owner {owner_id}"
        )
        return execution.model_copy(deep=True)

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Retrieve an execution or None if not found"""
        return await self._load(execution_id)

    async def update_task(
        self,
        execution_id: str,
        task_id: str,
        status: TaskStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        attempts: Optional[int] = None,
    ) -> WorkflowExecution:
        """
        Move a task to a new status and recompute execution progress

        A COMPLETED task's result is also added to the execution's outputs
        under the task name.

        Raises:
            ExecutionNotFound: Unknown execution
            InvalidStatusTransition: Execution not RUNNING or backward task move
        """
        async with self._lock(execution_id):
            execution = await self._require(execution_id)

            if execution.status != ExecutionStatus.RUNNING:
                raise InvalidStatusTransition(
                    f"Execution {execution_id} is {execution.status.value}; "
                    f"tasks can only change while RUNNING"
                )

            task = execution.get_task(task_id)
            if task is None:
                raise WorkflowError(f"Task {task_id} not found in execution {execution_id}")

            if status not in TASK_TRANSITIONS[task.status]:
                raise InvalidStatusTransition(
                    f"Task '{task.name}' cannot move {task.status.value} -> {status.value}"
                )

            now = utcnow()
            task.status = status
            if attempts is not None:
                task.attempts = attempts

            if status == TaskStatus.RUNNING and task.started_at is None:
                task.started_at = now
            elif status == TaskStatus.COMPLETED:
                task.result = dict(result or {})
                task.completed_at = now
                execution.outputs[task.name] = task.result
            elif status == TaskStatus.FAILED:
                task.error_message = error or "Task failed"
                task.completed_at = now

            return await self._commit(execution)

    async def update_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        attribution: Optional[Attribution] = None,
        error: Optional[str] = None,
        expected_status: Optional[ExecutionStatus] = None,
    ) -> WorkflowExecution:
        """
        Move an execution to a new status

        Attribution is only stored on COMPLETED. Progress is recomputed from
        the tasks, never passed in. expected_status, when given, must match
        the stored status (compare-and-set).

        Raises:
            ExecutionNotFound: Unknown execution
            InvalidStatusTransition: Terminal execution, backward move or
                expected_status mismatch
        """
        async with self._lock(execution_id):
            execution = await self._require(execution_id)

            if expected_status is not None and execution.status != expected_status:
                raise InvalidStatusTransition(
                    f"Execution {execution_id} is {execution.status.value}, "
                    f"expected {expected_status.value}"
                )

            if status not in ALLOWED_TRANSITIONS[execution.status]:
                raise InvalidStatusTransition(
                    f"Execution {execution_id} cannot move "
                    f"{execution.status.value} -> {status.value}"
                )

            execution.status = status
            if error:
                execution.errors.append(error)
            if status == ExecutionStatus.COMPLETED and attribution is not None:
                execution.attribution = attribution
            if execution.is_terminal:
                execution.completed_at = utcnow()

            return await self._commit(execution)

    async def list_executions(
        self,
        owner_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[WorkflowExecution]:
        """
        List executions, newest first

        Args:
            owner_id: Only executions of this organization
            workflow_id: Only executions of this workflow type
            status: Only executions in this status
            limit: Maximum number of executions to return
            offset: Offset for pagination
        """
        executions = [
            e for e in await self._load_all()
            if (owner_id is None or e.owner_id == str(owner_id))
            and (workflow_id is None or e.workflow_id == workflow_id)
            and (status is None or e.status == status)
        ]
        return executions[offset:offset + limit]

    async def subscribe(self, execution_id: str, observer: Observer) -> Subscription:
        """
        Observe an execution; the current snapshot is delivered first

        Raises:
            ExecutionNotFound: Unknown execution
        """
        execution = await self._require(execution_id)
        if execution.is_terminal:
            # Terminal executions never change, so no lock is taken
            return self.notifier.subscribe(execution_id, observer, execution)

        async with self._lock(execution_id):
            execution = await self._require(execution_id)
            subscription = self.notifier.subscribe(execution_id, observer, execution)

        if execution.is_terminal:
            self._locks.pop(execution_id, None)
        return subscription

    async def close(self) -> None:
        self.notifier.close()

    # ==================== Internals ====================

    async def _require(self, execution_id: str) -> WorkflowExecution:
        execution = await self._load(execution_id)
        if execution is None:
            raise ExecutionNotFound(execution_id)
        return execution

    async def _commit(self, execution: WorkflowExecution) -> WorkflowExecution:
        execution.recompute_progress()
        execution.updated_at = utcnow()
        await self._save(execution)
        self.notifier.publish(execution)

        if execution.is_terminal:
            self._locks.pop(execution.id, None)
        return execution.model_copy(deep=True)


class InMemoryStateManager(BaseStateManager):
    """Process-local state store (single worker, development, tests)"""

    def __init__(self, notifier: ExecutionNotifier = None):
        super().__init__(notifier)
        self._executions: Dict[str, WorkflowExecution] = {}
        self._cancelled: set = set()

    async def _load(self, execution_id: str) -> Optional[WorkflowExecution]:
        execution = self._executions.get(execution_id)
        return execution.model_copy(deep=True) if execution else None

    async def _save(self, execution: WorkflowExecution) -> None:
        self._executions[execution.id] = execution.model_copy(deep=True)

    async def _load_all(self) -> List[WorkflowExecution]:
        executions = sorted(
            self._executions.values(), key=lambda e: e.created_at, reverse=True
        )
        return [e.model_copy(deep=True) for e in executions]

    async def list_running_ids(self) -> List[str]:
        return [
            e.id for e in self._executions.values()
            if e.status == ExecutionStatus.RUNNING
        ]

    async def set_cancelled(self, execution_id: str) -> bool:
        self._cancelled.add(execution_id)
        return True

    async def is_cancelled(self, execution_id: str) -> bool:
        return execution_id in self._cancelled

    async def clear_cancelled(self, execution_id: str) -> bool:
        self._cancelled.discard(execution_id)
        return True


class RedisStateManager(BaseStateManager):
    """Manages workflow state in Redis (async)"""

    INDEX_KEY = "workflow:executions:index"
    RUNNING_KEY = "workflow:executions:running"

    def __init__(self, redis_client: redis.Redis, notifier: ExecutionNotifier = None, ttl_seconds: int = None):
        """
        Initialize state manager

        Args:
            redis_client: Async Redis client instance (decode_responses=True)
            notifier: In-process observer fan-out
            ttl_seconds: Execution key TTL (defaults to EXECUTION_TTL_DAYS)
        """
        super().__init__(notifier)
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or WorkflowConfig.execution_ttl_seconds()

    @staticmethod
    def _key(execution_id: str) -> str:
        return f"workflow:executions:{execution_id}"

    @classmethod
    def _cancel_key(cls, execution_id: str) -> str:
        return f"{cls._key(execution_id)}:cancelled"

    async def _call(self, operation: str, awaitable):
        try:
            return await awaitable
        except RedisError as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise StoreError(f"Redis {operation} failed: {e}") from e

    async def _load(self, execution_id: str) -> Optional[WorkflowExecution]:
        data = await self._call("GET", self.redis.get(self._key(execution_id)))
        if not data:
            return None
        return WorkflowExecution.model_validate_json(data)

    async def _save(self, execution: WorkflowExecution) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.setex(self._key(execution.id), self.ttl_seconds, execution.model_dump_json())
            pipe.zadd(self.INDEX_KEY, {execution.id: execution.created_at.timestamp()})
            if execution.status == ExecutionStatus.RUNNING:
                pipe.sadd(self.RUNNING_KEY, execution.id)
            else:
                pipe.srem(self.RUNNING_KEY, execution.id)
            await self._call("save", pipe.execute())

    async def _load_all(self) -> List[WorkflowExecution]:
        execution_ids = await self._call("ZREVRANGE", self.redis.zrevrange(self.INDEX_KEY, 0, -1))
        if not execution_ids:
            return []

        keys = [self._key(execution_id) for execution_id in execution_ids]
        data_list = await self._call("MGET", self.redis.mget(keys))

        executions = []
        expired = []
        for execution_id, data in zip(execution_ids, data_list):
            if data:
                executions.append(WorkflowExecution.model_validate_json(data))
            else:
                expired.append(execution_id)

        # Index entries outlive their TTL'd keys
        if expired:
            await self._call("ZREM", self.redis.zrem(self.INDEX_KEY, *expired))
        return executions

    async def list_running_ids(self) -> List[str]:
        members = await self._call("SMEMBERS", self.redis.smembers(self.RUNNING_KEY))
        return sorted(members)

    async def set_cancelled(self, execution_id: str) -> bool:
        await self._call("SETEX", self.redis.setex(self._cancel_key(execution_id), self.ttl_seconds, "1"))
        return True

    async def is_cancelled(self, execution_id: str) -> bool:
        result = await self._call("GET", self.redis.get(self._cancel_key(execution_id)))
        return result in ("1", b"1")

    async def clear_cancelled(self, execution_id: str) -> bool:
        await self._call("DEL", self.redis.delete(self._cancel_key(execution_id)))
        return True


def create_state_manager(backend: str = None, redis_client: redis.Redis = None) -> BaseStateManager:
    """Build the configured state backend ('redis' or 'memory')."""
    backend = (backend or WorkflowConfig.STATE_BACKEND).lower()
    if backend == "memory":
        return InMemoryStateManager()
    if backend == "redis":
        if redis_client is None:
            raise ValueError("Redis backend requires a redis client")
        return RedisStateManager(redis_client)
    raise ValueError(f"Unknown state backend '{backend}'. Use 'redis' or 'memory'")
