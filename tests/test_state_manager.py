"""State store: transitions, progress, indexes and both backends."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from workflow.errors import ExecutionNotFound, InvalidStatusTransition, StoreError
from workflow.models import Attribution, ExecutionStatus, TaskStatus
from workflow.state_manager import create_state_manager, InMemoryStateManager, RedisStateManager
from workflow.workflows import get_workflow

INPUTS = {"productName": "Widget", "industry": "SaaS"}


@pytest.fixture(params=["memory", "redis"])
def state_manager(request, memory_state_manager, redis_state_manager):
    return memory_state_manager if request.param == "memory" else redis_state_manager


async def create(state_manager, workflow_id="product-launch", owner_id="org-1"):
    return await state_manager.create_execution(
        get_workflow(workflow_id), actor_id="user-1", owner_id=owner_id, inputs=INPUTS
    )


async def test_create_execution(state_manager):
    execution = await create(state_manager)

    assert execution.status == ExecutionStatus.PENDING
    assert execution.progress_percent == 0
    assert len(execution.tasks) == 8
    assert all(t.status == TaskStatus.PENDING for t in execution.tasks)
    assert [t.order_index for t in execution.tasks] == list(range(8))
    assert execution.tasks[1].depends_on == ["Market Research"]

    stored = await state_manager.get_execution(execution.id)
    assert stored == execution


async def test_get_unknown_execution(state_manager):
    assert await state_manager.get_execution("missing") is None

    with pytest.raises(ExecutionNotFound):
        await state_manager.update_execution("missing", ExecutionStatus.RUNNING)


async def test_task_updates_recompute_progress(state_manager):
    execution = await create(state_manager)
    await state_manager.update_execution(execution.id, ExecutionStatus.RUNNING)

    first, second = execution.tasks[0], execution.tasks[1]
    await state_manager.update_task(execution.id, first.id, TaskStatus.RUNNING, attempts=1)
    updated = await state_manager.update_task(
        execution.id, first.id, TaskStatus.COMPLETED, result={"insights": ["x"]}
    )

    assert updated.progress_percent == round(100 * 1 / 8)
    assert updated.outputs == {"Market Research": {"insights": ["x"]}}
    assert updated.tasks[0].started_at is not None
    assert updated.tasks[0].attempts == 1

    await state_manager.update_task(execution.id, second.id, TaskStatus.RUNNING)
    updated = await state_manager.update_task(
        execution.id, second.id, TaskStatus.FAILED, error="copywriter unavailable"
    )

    assert updated.progress_percent == 25
    assert updated.tasks[1].error_message == "copywriter unavailable"
    assert "Content Generation" not in updated.outputs


async def test_backward_task_transition_rejected(state_manager):
    execution = await create(state_manager)
    await state_manager.update_execution(execution.id, ExecutionStatus.RUNNING)
    task = execution.tasks[0]
    await state_manager.update_task(execution.id, task.id, TaskStatus.RUNNING)
    await state_manager.update_task(execution.id, task.id, TaskStatus.COMPLETED, result={})

    with pytest.raises(InvalidStatusTransition):
        await state_manager.update_task(execution.id, task.id, TaskStatus.RUNNING)


async def test_tasks_only_change_while_running(state_manager):
    execution = await create(state_manager)

    with pytest.raises(InvalidStatusTransition):
        await state_manager.update_task(execution.id, execution.tasks[0].id, TaskStatus.RUNNING)


async def test_terminal_states_never_change(state_manager):
    execution = await create(state_manager)
    await state_manager.update_execution(execution.id, ExecutionStatus.RUNNING)
    done = await state_manager.update_execution(
        execution.id,
        ExecutionStatus.COMPLETED,
        attribution=Attribution(estimated_revenue=100, confidence=90, channels=[]),
    )

    assert done.completed_at is not None
    assert done.attribution.estimated_revenue == 100

    for status in ExecutionStatus:
        with pytest.raises(InvalidStatusTransition):
            await state_manager.update_execution(execution.id, status)


async def test_attribution_only_stored_on_completion(state_manager):
    execution = await create(state_manager)
    failed = await state_manager.update_execution(
        execution.id,
        ExecutionStatus.FAILED,
        attribution=Attribution(estimated_revenue=100, confidence=90, channels=[]),
        error="boom",
    )

    assert failed.attribution is None
    assert failed.errors == ["boom"]


async def test_list_executions_filters(state_manager):
    first = await create(state_manager, "product-launch", owner_id="org-1")
    second = await create(state_manager, "viral-content", owner_id="org-1")
    await create(state_manager, "product-launch", owner_id="org-2")
    await state_manager.update_execution(second.id, ExecutionStatus.CANCELLED)

    owned = await state_manager.list_executions(owner_id="org-1")
    assert {e.id for e in owned} == {first.id, second.id}

    launches = await state_manager.list_executions(owner_id="org-1", workflow_id="product-launch")
    assert [e.id for e in launches] == [first.id]

    cancelled = await state_manager.list_executions(status=ExecutionStatus.CANCELLED)
    assert [e.id for e in cancelled] == [second.id]

    assert len(await state_manager.list_executions(limit=2)) == 2
    assert len(await state_manager.list_executions(limit=2, offset=2)) == 1


async def test_running_ids_follow_status(state_manager):
    execution = await create(state_manager)
    assert await state_manager.list_running_ids() == []

    await state_manager.update_execution(execution.id, ExecutionStatus.RUNNING)
    assert await state_manager.list_running_ids() == [execution.id]

    await state_manager.update_execution(execution.id, ExecutionStatus.CANCELLED)
    assert await state_manager.list_running_ids() == []


async def test_cancellation_flag(state_manager):
    assert await state_manager.is_cancelled("exec-1") is False
    await state_manager.set_cancelled("exec-1")
    assert await state_manager.is_cancelled("exec-1") is True
    await state_manager.clear_cancelled("exec-1")
    assert await state_manager.is_cancelled("exec-1") is False


async def test_returned_snapshots_are_copies(state_manager):
    execution = await create(state_manager)
    execution.inputs["productName"] = "Tampered"

    stored = await state_manager.get_execution(execution.id)
    assert stored.inputs["productName"] == "Widget"


async def test_redis_keys_and_ttl(fake_redis):
    state_manager = RedisStateManager(fake_redis, ttl_seconds=3600)
    execution = await create(state_manager)

    key = f"workflow:executions:{execution.id}"
    assert 0 < await fake_redis.ttl(key) <= 3600
    assert await fake_redis.zscore(RedisStateManager.INDEX_KEY, execution.id) is not None


async def test_redis_prunes_expired_index_entries(fake_redis, redis_state_manager):
    execution = await create(redis_state_manager)
    await fake_redis.delete(f"workflow:executions:{execution.id}")

    assert await redis_state_manager.list_executions() == []
    assert await fake_redis.zcard(RedisStateManager.INDEX_KEY) == 0


async def test_redis_errors_become_store_errors(fake_redis, redis_state_manager, monkeypatch):
    async def unavailable(*args, **kwargs):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(fake_redis, "get", unavailable)

    with pytest.raises(StoreError, match="connection refused"):
        await redis_state_manager.get_execution("exec-1")


async def test_expected_status_guards_transition(state_manager):
    execution = await create(state_manager)
    await state_manager.update_execution(execution.id, ExecutionStatus.RUNNING)

    with pytest.raises(InvalidStatusTransition, match="expected PENDING"):
        await state_manager.update_execution(
            execution.id, ExecutionStatus.CANCELLED, expected_status=ExecutionStatus.PENDING
        )

    stored = await state_manager.get_execution(execution.id)
    assert stored.status == ExecutionStatus.RUNNING
    assert stored.errors == []


async def test_subscribing_to_finished_execution_keeps_no_lock(state_manager):
    execution = await create(state_manager)
    await state_manager.update_execution(execution.id, ExecutionStatus.CANCELLED)
    received = []

    for _ in range(3):
        subscription = await state_manager.subscribe(execution.id, received.append)
        await subscription.wait_closed()

    assert [s.status for s in received] == [ExecutionStatus.CANCELLED] * 3
    assert execution.id not in state_manager._locks


async def test_create_state_manager(fake_redis):
    assert isinstance(create_state_manager("memory"), InMemoryStateManager)
    assert isinstance(create_state_manager("redis", redis_client=fake_redis), RedisStateManager)

    with pytest.raises(ValueError):
        create_state_manager("redis")
    with pytest.raises(ValueError):
        create_state_manager("postgres")
