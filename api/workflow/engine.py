"""
Workflow Engine

Main orchestrator for marketing workflow executions:
- Synchronous validation and creation (submit)
- Background execution via the ExecutionScheduler
- Sequential task execution in definition order
- Failure policy (critical vs non-critical tasks)
- Cooperative cancellation between tasks
- Revenue attribution on successful completion

The engine is the only component that drives state transitions; all
writes go through the state manager.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from config.workflow_config import WorkflowConfig
from workflow.attribution import AttributionEstimator, HeuristicAttributionEstimator
from workflow.errors import (
    ExecutionNotFound,
    InvalidStatusTransition,
    MissingRequiredInput,
    StoreError,
    TaskExecutionError,
    WorkflowError,
)
from workflow.events import Observer, WorkflowEventPublisher
from workflow.executors import TaskContext, TaskExecutor, build_executors
from workflow.models import (
    ExecutionStatus,
    TaskStatus,
    WorkflowExecution,
)
from workflow.runner import TaskRunner, compute_backoff
from workflow.scheduler import ExecutionScheduler
from workflow.state_manager import BaseStateManager
from workflow.workflows import get_all_workflows, get_workflow
from workflow.workflows.definition import TaskTemplate, WorkflowDefinition

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Execution cancelled by user"
SHUTDOWN_MESSAGE = "Execution interrupted by shutdown"


class WorkflowEngine:
    """Orchestrates workflow executions"""

    def __init__(
        self,
        state_manager: BaseStateManager,
        scheduler: ExecutionScheduler = None,
        runner: TaskRunner = None,
        executors: Dict[str, TaskExecutor] = None,
        attribution_estimator: AttributionEstimator = None,
        event_publisher: WorkflowEventPublisher = None,
        store_write_retries: int = None,
        store_retry_backoff: float = None,
    ):
        """
        Initialize workflow engine

        Args:
            state_manager: State store (memory or Redis)
            scheduler: Background task scheduler
            runner: Task runner (timeout + retry)
            executors: category -> executor instance (defaults to all registered)
            attribution_estimator: Revenue attribution for completed executions
            event_publisher: Optional Redis pub/sub publisher for real-time updates
            store_write_retries: Retries for a failed state write during a run
            store_retry_backoff: Initial backoff between store write retries
        """
        self.state_manager = state_manager
        self.scheduler = scheduler or ExecutionScheduler()
        self.runner = runner or TaskRunner()
        self.executors = executors if executors is not None else build_executors()
        self.attribution_estimator = attribution_estimator or HeuristicAttributionEstimator()
        self.event_publisher = event_publisher
        self.store_write_retries = (
            WorkflowConfig.STORE_WRITE_RETRIES if store_write_retries is None else store_write_retries
        )
        self.store_retry_backoff = (
            WorkflowConfig.STORE_RETRY_BACKOFF if store_retry_backoff is None else store_retry_backoff
        )

    # ==================== Catalog ====================

    def list_workflows(self) -> List[WorkflowDefinition]:
        """All catalog definitions, sorted by id"""
        workflows = get_all_workflows()
        return [workflows[key] for key in sorted(workflows)]

    # ==================== Submission ====================

    async def submit(
        self,
        workflow_type: str,
        actor_id: str,
        owner_id: str,
        inputs: Dict[str, Any],
    ) -> WorkflowExecution:
        """
        Validate, create and schedule an execution

        Returns immediately with the PENDING execution; tasks run in the
        background.

        Raises:
            InvalidWorkflowType: Unknown workflow id (nothing created)
            MissingRequiredInput: Required inputs absent (nothing created)
        """
        definition = get_workflow(workflow_type)

        inputs = dict(inputs or {})
        missing = definition.missing_inputs(inputs)
        if missing:
            raise MissingRequiredInput(workflow_type, missing)

        execution = await self.state_manager.create_execution(
            definition, actor_id=actor_id, owner_id=owner_id, inputs=inputs
        )
        self.scheduler.schedule(execution.id, lambda: self.run(execution.id))

        logger.info(
            f"📥 Accepted {definition.id} execution {execution.id} "
            f"(actor={actor_id}, owner={owner_id})"
        )
        return execution

    # ==================== Execution ====================

    async def run(self, execution_id: str) -> WorkflowExecution:
        """
        Drive an execution to a terminal state

        Never raises for task or store failures; those end up in the
        execution's status and errors.
        """
        execution = await self.get_execution(execution_id)
        if execution.is_terminal:
            return execution

        definition = get_workflow(execution.workflow_id)
        logger.info(f"🚀 Starting workflow {definition.name} (execution_id={execution_id})")

        try:
            execution = await self._run(execution, definition)

        except InvalidStatusTransition as e:
            # Another writer finished the execution (e.g. cancelled directly)
            logger.warning(f"Execution {execution_id} stopped: {e}")
            execution = await self.get_execution(execution_id)

        except StoreError as e:
            logger.error(f"❌ State store failed for execution {execution_id}: {e}")
            execution = await self._fail_best_effort(
                execution, f"State store error: {e.message}"
            )

        except asyncio.CancelledError:
            logger.warning(f"🛑 Execution {execution_id} interrupted by shutdown")
            await self._fail_best_effort(execution, SHUTDOWN_MESSAGE)
            raise

        except Exception as e:
            logger.exception(f"❌ Workflow execution failed: {str(e)}")
            execution = await self._fail_best_effort(
                execution, f"Workflow execution error: {str(e)}"
            )

        if execution.is_terminal:
            await self.state_manager.clear_cancelled(execution_id)
            if self.event_publisher:
                await self.event_publisher.execution_finished(execution)

        return execution

    async def _run(self, execution: WorkflowExecution, definition: WorkflowDefinition) -> WorkflowExecution:
        execution_id = execution.id

        if await self.state_manager.is_cancelled(execution_id):
            logger.info(f"🛑 Execution {execution_id} cancelled before start")
            return await self._write(
                self.state_manager.update_execution,
                execution_id, ExecutionStatus.CANCELLED, error=CANCELLED_MESSAGE,
            )

        execution = await self._write(
            self.state_manager.update_execution, execution_id, ExecutionStatus.RUNNING
        )
        if self.event_publisher:
            await self.event_publisher.execution_started(execution)

        for template in definition.tasks:
            # Check for cancellation before starting each task
            if await self.state_manager.is_cancelled(execution_id):
                logger.info(f"🛑 Execution {execution_id} cancelled - stopping before '{template.name}'")
                return await self._write(
                    self.state_manager.update_execution,
                    execution_id, ExecutionStatus.CANCELLED, error=CANCELLED_MESSAGE,
                )

            execution, error = await self._execute_task(execution, template)

            if error is not None and template.critical:
                logger.error(f"❌ Critical task '{template.name}' failed - stopping workflow")
                return await self._write(
                    self.state_manager.update_execution,
                    execution_id,
                    ExecutionStatus.FAILED,
                    error=f"Critical task '{template.name}' failed: {error.message}",
                )

        return await self._finish(execution, definition)

    async def _execute_task(
        self,
        execution: WorkflowExecution,
        template: TaskTemplate,
    ) -> Tuple[WorkflowExecution, Optional[TaskExecutionError]]:
        """
        Run one task and persist its terminal state

        Returns:
            (latest execution snapshot, the failure or None)
        """
        execution_id = execution.id
        record = execution.get_task_by_name(template.name)
        if record is None:
            raise WorkflowError(f"Execution {execution_id} has no task '{template.name}'")

        context = TaskContext(
            execution_id=execution_id,
            workflow_id=execution.workflow_id,
            inputs=execution.inputs,
            prior_outputs={
                name: execution.outputs[name]
                for name in template.depends_on
                if name in execution.outputs
            },
        )

        latest = execution

        async def on_attempt(attempt: int) -> None:
            nonlocal latest
            latest = await self._write(
                self.state_manager.update_task,
                execution_id, record.id, TaskStatus.RUNNING, attempts=attempt,
            )
            if self.event_publisher:
                await self.event_publisher.task_started(execution_id, latest.get_task(record.id))

        executor = self.executors.get(template.category.value)
        try:
            if executor is None:
                await on_attempt(1)
                raise TaskExecutionError(
                    template.category,
                    f"No executor registered for category '{template.category.value}'",
                )
            result = await self.runner.run_task(executor, template, context, on_attempt=on_attempt)

        except TaskExecutionError as e:
            logger.error(f"Task '{template.name}' failed in execution {execution_id}: {e}")
            latest = await self._write(
                self.state_manager.update_task,
                execution_id, record.id, TaskStatus.FAILED, error=e.message,
            )
            failure = e
        else:
            logger.info(f"Task '{template.name}' completed in execution {execution_id}")
            latest = await self._write(
                self.state_manager.update_task,
                execution_id, record.id, TaskStatus.COMPLETED, result=result,
            )
            failure = None

        if self.event_publisher:
            await self.event_publisher.task_finished(execution_id, latest.get_task(record.id))
        return latest, failure

    async def _finish(self, execution: WorkflowExecution, definition: WorkflowDefinition) -> WorkflowExecution:
        """Determine final status once every task has run"""
        failed = [t.name for t in execution.tasks if t.status == TaskStatus.FAILED]

        if failed:
            logger.error(f"❌ Workflow {definition.name} finished with {len(failed)} failed task(s)")
            return await self._write(
                self.state_manager.update_execution,
                execution.id,
                ExecutionStatus.FAILED,
                error=f"{len(failed)} task(s) failed: {', '.join(failed)}",
            )

        attribution = self.attribution_estimator.estimate(definition, execution)
        execution = await self._write(
            self.state_manager.update_execution,
            execution.id, ExecutionStatus.COMPLETED, attribution=attribution,
        )
        logger.info(f"✅ Workflow {definition.name} completed (execution_id={execution.id})")
        return execution

    async def _write(self, operation, *args, **kwargs) -> WorkflowExecution:
        """Apply a state write, retrying StoreError with backoff"""
        attempt = 0
        while True:
            try:
                execution = await operation(*args, **kwargs)
            except StoreError as e:
                attempt += 1
                if attempt > self.store_write_retries:
                    raise
                backoff_seconds = self.store_retry_backoff * compute_backoff(attempt - 1)
                logger.warning(
                    f"State write failed (retry {attempt}/{self.store_write_retries} "
                    f"in {backoff_seconds}s): {e}"
                )
                await asyncio.sleep(backoff_seconds)
            else:
                await self._publish_snapshot(execution)
                return execution

    async def _publish_snapshot(self, execution: WorkflowExecution) -> None:
        if self.event_publisher:
            await self.event_publisher.snapshot(execution)

    async def _fail_best_effort(self, execution: WorkflowExecution, message: str) -> WorkflowExecution:
        """Mark an execution FAILED, logging (not raising) if that write fails too"""
        try:
            failed = await self.state_manager.update_execution(
                execution.id, ExecutionStatus.FAILED, error=message
            )
            await self._publish_snapshot(failed)
            return failed
        except WorkflowError as e:
            logger.error(f"Could not mark execution {execution.id} FAILED: {e}")

        try:
            current = await self.state_manager.get_execution(execution.id)
        except StoreError as e:
            logger.error(f"Could not reload execution {execution.id}: {e}")
            return execution
        return current or execution

    # ==================== Cancellation ====================

    async def cancel(self, execution_id: str) -> WorkflowExecution:
        """
        Request cancellation

        Idempotent: a terminal execution is returned unchanged. A RUNNING
        execution stops before its next task, whichever worker drives it.
        A PENDING execution not scheduled by this engine is marked
        CANCELLED directly.

        Raises:
            ExecutionNotFound: Unknown execution
        """
        execution = await self.get_execution(execution_id)
        if execution.is_terminal:
            return execution

        await self.state_manager.set_cancelled(execution_id)
        logger.info(f"🛑 Cancellation requested for execution {execution_id}")

        if self.scheduler.is_scheduled(execution_id) or execution.status == ExecutionStatus.RUNNING:
            # The driving worker sees the flag between tasks
            if self.event_publisher:
                await self.event_publisher.message(execution_id, "Cancellation requested", level="warning")
            return await self.get_execution(execution_id)

        try:
            execution = await self.state_manager.update_execution(
                execution_id, ExecutionStatus.CANCELLED, error=CANCELLED_MESSAGE,
                expected_status=ExecutionStatus.PENDING,
            )
        except InvalidStatusTransition:
            # Picked up by a worker in the meantime; the flag still applies
            execution = await self.get_execution(execution_id)
            if not execution.is_terminal:
                return execution

        await self.state_manager.clear_cancelled(execution_id)
        await self._publish_snapshot(execution)
        if self.event_publisher:
            await self.event_publisher.execution_finished(execution)
        return execution

    # ==================== Queries ====================

    async def get_execution(self, execution_id: str) -> WorkflowExecution:
        """
        Raises:
            ExecutionNotFound: Unknown execution
        """
        execution = await self.state_manager.get_execution(execution_id)
        if execution is None:
            raise ExecutionNotFound(execution_id)
        return execution

    async def list_executions(
        self,
        owner_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[WorkflowExecution]:
        return await self.state_manager.list_executions(
            owner_id=owner_id, workflow_id=workflow_id, status=status,
            limit=limit, offset=offset,
        )

    async def running_execution_ids(self, owner_id: Optional[str] = None) -> List[str]:
        """IDs of RUNNING executions, optionally only those of one organization"""
        execution_ids = await self.state_manager.list_running_ids()
        if owner_id is None:
            return execution_ids

        owned = []
        for execution_id in execution_ids:
            execution = await self.state_manager.get_execution(execution_id)
            if execution and execution.owner_id == str(owner_id):
                owned.append(execution_id)
        return owned

    # ==================== Observation ====================

    async def subscribe(self, execution_id: str, observer: Observer):
        """
        Observe an execution

        The current snapshot is delivered immediately; the terminal snapshot
        is always delivered and ends the subscription.

        Returns:
            Zero-argument unsubscribe callable
        """
        subscription = await self.state_manager.subscribe(execution_id, observer)
        return subscription.close

    async def wait_for(self, execution_id: str, timeout: Optional[float] = None) -> WorkflowExecution:
        """
        Wait until an execution reaches a terminal state

        Raises:
            ExecutionNotFound: Unknown execution
            asyncio.TimeoutError: Not terminal within timeout
        """
        finished = asyncio.Event()

        def observer(snapshot: WorkflowExecution) -> None:
            if snapshot.is_terminal:
                finished.set()

        unsubscribe = await self.subscribe(execution_id, observer)
        try:
            await asyncio.wait_for(finished.wait(), timeout)
        finally:
            unsubscribe()
        return await self.get_execution(execution_id)

    async def shutdown(self) -> None:
        """
        Cancel in-flight executions and close observers

        Executions this engine had scheduled, including those still queued
        for a concurrency slot, end FAILED rather than staying PENDING or
        RUNNING.
        """
        interrupted = self.scheduler.active_ids()
        await self.scheduler.shutdown()
        for execution_id in interrupted:
            await self._fail_unfinished(execution_id, SHUTDOWN_MESSAGE)
        await self.state_manager.close()
        logger.info("Workflow engine stopped")

    async def _fail_unfinished(self, execution_id: str, message: str) -> None:
        try:
            execution = await self.state_manager.get_execution(execution_id)
        except StoreError as e:
            logger.error(f"Could not reload execution {execution_id}: {e}")
            return

        if execution is None or execution.is_terminal:
            return
        logger.warning(f"🛑 Execution {execution_id} stopped before it finished")
        await self._fail_best_effort(execution, message)
