"""ExecutionNotifier: immediate snapshot, coalescing, terminal delivery."""

import asyncio

from workflow.events import ExecutionNotifier
from workflow.models import ExecutionStatus, WorkflowExecution


def snapshot(status=ExecutionStatus.PENDING, progress=0) -> WorkflowExecution:
    return WorkflowExecution(
        id="exec-1",
        workflow_id="product-launch",
        actor_id="user-1",
        owner_id="org-1",
        status=status,
        progress_percent=progress,
    )


async def test_current_snapshot_delivered_on_subscribe():
    notifier = ExecutionNotifier()
    received = []

    subscription = notifier.subscribe("exec-1", received.append, snapshot())
    await asyncio.sleep(0)

    assert [s.status for s in received] == [ExecutionStatus.PENDING]
    assert notifier.subscriber_count("exec-1") == 1
    subscription.close()


async def test_slow_observer_gets_latest_and_terminal():
    notifier = ExecutionNotifier()
    received = []
    gate = asyncio.Event()

    async def slow_observer(state):
        received.append(state)
        await gate.wait()

    subscription = notifier.subscribe("exec-1", slow_observer, snapshot())
    await asyncio.sleep(0)  # pump delivers the initial snapshot and blocks

    for progress in (10, 20, 30):
        notifier.publish(snapshot(ExecutionStatus.RUNNING, progress))
    notifier.publish(snapshot(ExecutionStatus.COMPLETED, 100))

    gate.set()
    await asyncio.wait_for(subscription.wait_closed(), timeout=1)

    assert [s.status for s in received] == [ExecutionStatus.PENDING, ExecutionStatus.COMPLETED]
    assert subscription.closed
    assert notifier.subscriber_count("exec-1") == 0


async def test_every_state_delivered_to_fast_observer():
    notifier = ExecutionNotifier()
    received = []

    subscription = notifier.subscribe("exec-1", received.append, snapshot())
    for progress in (10, 20):
        await asyncio.sleep(0)
        notifier.publish(snapshot(ExecutionStatus.RUNNING, progress))
    await asyncio.sleep(0)
    notifier.publish(snapshot(ExecutionStatus.FAILED, 20))

    await asyncio.wait_for(subscription.wait_closed(), timeout=1)

    assert [s.progress_percent for s in received] == [0, 10, 20, 20]
    assert received[-1].status == ExecutionStatus.FAILED


async def test_subscribe_to_terminal_execution_ends_immediately():
    notifier = ExecutionNotifier()
    received = []

    subscription = notifier.subscribe(
        "exec-1", received.append, snapshot(ExecutionStatus.CANCELLED)
    )
    await asyncio.wait_for(subscription.wait_closed(), timeout=1)

    assert [s.status for s in received] == [ExecutionStatus.CANCELLED]
    assert notifier.subscriber_count("exec-1") == 0


async def test_failing_observer_does_not_break_delivery():
    notifier = ExecutionNotifier()
    received = []

    def flaky_observer(state):
        received.append(state)
        if state.status == ExecutionStatus.PENDING:
            raise RuntimeError("observer bug")

    subscription = notifier.subscribe("exec-1", flaky_observer, snapshot())
    await asyncio.sleep(0)
    notifier.publish(snapshot(ExecutionStatus.COMPLETED, 100))

    await asyncio.wait_for(subscription.wait_closed(), timeout=1)

    assert [s.status for s in received] == [ExecutionStatus.PENDING, ExecutionStatus.COMPLETED]


async def test_observers_receive_copies():
    notifier = ExecutionNotifier()
    received = []
    original = snapshot()

    subscription = notifier.subscribe("exec-1", received.append, original)
    await asyncio.sleep(0)
    received[0].inputs["productName"] = "Tampered"

    assert original.inputs == {}
    subscription.close()


async def test_unsubscribed_observer_gets_nothing_more():
    notifier = ExecutionNotifier()
    received = []

    subscription = notifier.subscribe("exec-1", received.append, snapshot())
    await asyncio.sleep(0)
    subscription.close()
    notifier.publish(snapshot(ExecutionStatus.COMPLETED, 100))
    await asyncio.wait_for(subscription.wait_closed(), timeout=1)

    assert len(received) == 1
