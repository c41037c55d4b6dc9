"""
Workflow Event Publishing

Two delivery paths for execution state changes:
- ExecutionNotifier: in-process observers with latest-state-wins delivery
- WorkflowEventPublisher: Redis pub/sub for cross-process monitoring
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from redis.exceptions import RedisError

from workflow.models import WorkflowExecution, WorkflowTaskRecord, utcnow

logger = logging.getLogger(__name__)

Observer = Callable[[WorkflowExecution], Union[None, Awaitable[None]]]


class Subscription:
    """
    One observer attached to one execution.

    Holds a single latest-state slot drained by a pump task. A slow observer
    skips intermediate snapshots but always receives the terminal one, after
    which the subscription ends on its own.
    """

    def __init__(self, execution_id: str, observer: Observer):
        self.execution_id = execution_id
        self.observer = observer
        self._latest: Optional[WorkflowExecution] = None
        self._wakeup = asyncio.Event()
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, initial: WorkflowExecution) -> None:
        self.offer(initial)
        self._task = asyncio.create_task(
            self._pump(), name=f"notify-{self.execution_id}"
        )

    def offer(self, snapshot: WorkflowExecution) -> None:
        if self._closed:
            return
        self._latest = snapshot
        self._wakeup.set()

    def close(self) -> None:
        self._closed = True
        self._latest = None
        self._wakeup.set()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _pump(self) -> None:
        while not self._closed:
            await self._wakeup.wait()
            self._wakeup.clear()

            snapshot, self._latest = self._latest, None
            if snapshot is None:
                continue

            await self._deliver(snapshot)
            if snapshot.is_terminal:
                self._closed = True

    async def _deliver(self, snapshot: WorkflowExecution) -> None:
        try:
            result = self.observer(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                f"Observer for execution {self.execution_id} raised; continuing"
            )


class ExecutionNotifier:
    """Fans execution snapshots out to in-process observers"""

    def __init__(self):
        self._subscriptions: Dict[str, Set[Subscription]] = {}

    def subscribe(
        self,
        execution_id: str,
        observer: Observer,
        current: WorkflowExecution,
    ) -> Subscription:
        """
        Attach an observer and deliver the current snapshot immediately.

        Args:
            execution_id: Execution to observe
            observer: Sync or async callable receiving WorkflowExecution copies
            current: Snapshot at subscription time

        Returns:
            Subscription (call .close() to unsubscribe)
        """
        subscription = Subscription(execution_id, observer)
        subscription.start(current.model_copy(deep=True))

        if current.is_terminal:
            return subscription

        self._subscriptions.setdefault(execution_id, set()).add(subscription)
        logger.debug(f"Observer subscribed to execution {execution_id}")
        return subscription

    def publish(self, execution: WorkflowExecution) -> None:
        """Offer a new snapshot to every observer of the execution."""
        subscriptions = self._subscriptions.get(execution.id)
        if not subscriptions:
            return

        for subscription in list(subscriptions):
            if subscription.closed:
                subscriptions.discard(subscription)
                continue
            subscription.offer(execution.model_copy(deep=True))

        if execution.is_terminal:
            self._subscriptions.pop(execution.id, None)

    def subscriber_count(self, execution_id: str) -> int:
        return sum(
            1 for s in self._subscriptions.get(execution_id, ()) if not s.closed
        )

    def close(self) -> None:
        """Close every open subscription."""
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.close()
        self._subscriptions.clear()


class WorkflowEventPublisher:
    """Publishes workflow events to Redis pub/sub (async)"""

    def __init__(self, redis_client):
        """
        Initialize event publisher

        Args:
            redis_client: Async Redis client instance
        """
        self.redis = redis_client

    @staticmethod
    def channel(execution_id: str) -> str:
        return f"workflow:events:{execution_id}"

    async def _publish_event(self, execution_id: str, event_type: str, data: Dict[str, Any]):
        """
        Publish event to Redis pub/sub

        Args:
            execution_id: Execution ID
            event_type: Event type (e.g., 'execution_started', 'task_completed')
            data: Event data
        """
        channel = self.channel(execution_id)

        event = {
            "type": event_type,
            "timestamp": utcnow().isoformat(),
            "data": data
        }

        try:
            await self.redis.publish(channel, json.dumps(event, default=str))
            logger.debug(f"Published event {event_type} to channel {channel}")
        except RedisError as e:
            logger.error(f"Failed to publish event {event_type}: {str(e)}")

    async def execution_started(self, execution: WorkflowExecution):
        """Publish execution started event"""
        await self._publish_event(execution.id, "execution_started", {
            "execution_id": execution.id,
            "workflow_id": execution.workflow_id,
            "workflow_name": execution.workflow_name,
            "total_tasks": len(execution.tasks),
        })

    async def execution_finished(self, execution: WorkflowExecution):
        """Publish terminal event (completed, failed or cancelled)"""
        await self._publish_event(execution.id, f"execution_{execution.status.value.lower()}", {
            "execution_id": execution.id,
            "status": execution.status.value,
            "progress": execution.get_progress_stats(),
            "errors": execution.errors,
            "duration_seconds": (
                (execution.completed_at - execution.created_at).total_seconds()
                if execution.completed_at and execution.created_at else None
            )
        })

    async def task_started(self, execution_id: str, task: WorkflowTaskRecord):
        """Publish task started event"""
        await self._publish_event(execution_id, "task_started", {
            "task_id": task.id,
            "task_name": task.name,
            "category": task.category,
            "attempt": task.attempts,
        })

    async def task_finished(self, execution_id: str, task: WorkflowTaskRecord):
        """Publish task completed/failed event"""
        await self._publish_event(execution_id, "task_completed", {
            "task_id": task.id,
            "task_name": task.name,
            "status": task.status.value,
            "error": task.error_message,
            "duration_seconds": task.duration_seconds,
        })

    async def snapshot(self, execution: WorkflowExecution):
        """Publish the full execution snapshot"""
        await self._publish_event(
            execution.id, "snapshot", execution.model_dump(mode="json")
        )

    async def message(self, execution_id: str, message: str, level: str = "info", details: Dict[str, Any] = None):
        """
        Publish a status message for display in the UI

        Args:
            execution_id: Execution ID
            message: Human-readable status message
            level: Message level (info, warning, error, success)
            details: Optional additional details
        """
        await self._publish_event(execution_id, "message", {
            "message": message,
            "level": level,
            "details": details or {}
        })

