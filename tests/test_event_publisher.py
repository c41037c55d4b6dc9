"""WorkflowEventPublisher wired into the engine."""

import json

from redis.exceptions import ConnectionError as RedisConnectionError

from helpers import FailingExecutor, build_test_engine
from workflow.events import WorkflowEventPublisher
from workflow.executors import build_executors
from workflow.models import TaskCategory
from workflow.workflows import get_workflow


class RecordingRedis:
    """Captures PUBLISH calls."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published = []

    async def publish(self, channel, message):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.published.append((channel, json.loads(message)))
        return 1


async def test_engine_publishes_lifecycle_events(memory_state_manager):
    redis = RecordingRedis()
    engine = build_test_engine(memory_state_manager, event_publisher=WorkflowEventPublisher(redis))

    execution = await engine.submit("event-marketing", "user-1", "org-1", {"eventName": "Summit"})
    await engine.wait_for(execution.id, timeout=5)
    await engine.shutdown()

    channels = {channel for channel, _ in redis.published}
    types = [event["type"] for _, event in redis.published]
    assert channels == {f"workflow:events:{execution.id}"}
    lifecycle = [event_type for event_type in types if event_type != "snapshot"]
    assert lifecycle[0] == "execution_started"
    assert lifecycle[-1] == "execution_completed"
    assert lifecycle.count("task_started") == 4
    assert lifecycle.count("task_completed") == 4
    assert redis.published[-1][1]["data"]["progress"]["completed"] == 4


async def test_failed_execution_event(memory_state_manager):
    redis = RecordingRedis()
    executors = build_executors(delay_scale=0)
    executors[TaskCategory.GENERIC_FULFILLMENT.value] = FailingExecutor(TaskCategory.GENERIC_FULFILLMENT)
    engine = build_test_engine(
        memory_state_manager, executors=executors, event_publisher=WorkflowEventPublisher(redis)
    )

    execution = await engine.submit("event-marketing", "user-1", "org-1", {"eventName": "Summit"})
    await engine.wait_for(execution.id, timeout=5)
    await engine.shutdown()

    finished = redis.published[-1][1]
    assert finished["type"] == "execution_failed"
    assert finished["data"]["errors"] == ["1 task(s) failed: Registration System"]


async def test_publish_errors_do_not_fail_execution(memory_state_manager):
    engine = build_test_engine(
        memory_state_manager, event_publisher=WorkflowEventPublisher(RecordingRedis(fail=True))
    )

    execution = await engine.submit("event-marketing", "user-1", "org-1", {"eventName": "Summit"})
    done = await engine.wait_for(execution.id, timeout=5)
    await engine.shutdown()

    assert done.status.value == "COMPLETED"


async def test_snapshot_published_after_every_write(memory_state_manager):
    redis = RecordingRedis()
    engine = build_test_engine(memory_state_manager, event_publisher=WorkflowEventPublisher(redis))

    execution = await engine.submit("event-marketing", "user-1", "org-1", {"eventName": "Summit"})
    await engine.wait_for(execution.id, timeout=5)
    await engine.shutdown()

    snapshots = [event["data"] for _, event in redis.published if event["type"] == "snapshot"]
    # execution RUNNING, two writes per task, execution COMPLETED
    assert len(snapshots) == 1 + 2 * 4 + 1
    assert snapshots[0]["status"] == "RUNNING"
    assert snapshots[-1]["status"] == "COMPLETED"
    assert snapshots[-1]["attribution"] is not None
    assert snapshots[-1]["outputs"].keys() == {t.name for t in execution.tasks}
    progress = [s["progress_percent"] for s in snapshots]
    assert progress == sorted(progress)


async def test_direct_cancel_publishes_snapshot(memory_state_manager):
    redis = RecordingRedis()
    engine = build_test_engine(memory_state_manager, event_publisher=WorkflowEventPublisher(redis))
    execution = await memory_state_manager.create_execution(
        get_workflow("event-marketing"), actor_id="user-1", owner_id="org-1", inputs={"eventName": "Summit"}
    )

    await engine.cancel(execution.id)

    types = [event["type"] for _, event in redis.published]
    assert types == ["snapshot", "execution_cancelled"]
    assert redis.published[0][1]["data"]["status"] == "CANCELLED"
