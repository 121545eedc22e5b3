import asyncio
import random

import pytest

from app.models.domain.queue_domain import DeliveryOutcome
from app.services.delivery_queue import DeliveryQueue


async def wait_idle(queue: DeliveryQueue, max_iterations: int = 1000) -> None:
    for _ in range(max_iterations):
        if not queue.is_processing:
            return
        await asyncio.sleep(0)
    raise AssertionError("queue did not drain")


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_delivers_in_enqueue_order_and_drains(processor):
    queue = DeliveryQueue(processor, min_delay_ms=0, max_delay_ms=0)

    for body in ("A", "B", "C"):
        queue.enqueue("111", body)

    await wait_idle(queue)

    assert [item.body for item in processor.calls] == ["A", "B", "C"]
    assert all(item.recipient == "111" for item in processor.calls)
    status = queue.get_status()
    assert status["item_count"] == 0
    assert status["is_processing"] is False
    assert status["delivered"] == 3


@pytest.mark.asyncio
async def test_enqueue_returns_unique_ids(processor):
    queue = DeliveryQueue(processor, min_delay_ms=0, max_delay_ms=0)

    ids = [queue.enqueue("111", f"msg {i}") for i in range(20)]
    await wait_idle(queue)

    assert len(set(ids)) == 20
    assert [item.id for item in processor.calls] == ids


@pytest.mark.asyncio
async def test_deliveries_never_overlap():
    in_flight = 0
    max_in_flight = 0
    delivered = []

    async def slow_processor(item):
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        in_flight -= 1
        delivered.append(item.body)
        return DeliveryOutcome(item_id=item.id, success=True)

    queue = DeliveryQueue(slow_processor, min_delay_ms=0, max_delay_ms=0)
    for i in range(10):
        queue.enqueue("111", str(i))

    await wait_idle(queue)

    assert max_in_flight == 1
    assert delivered == [str(i) for i in range(10)]


@pytest.mark.asyncio
async def test_failed_items_are_attempted_once_and_removed(processor_factory):
    processor = processor_factory(fail=True)
    queue = DeliveryQueue(processor, min_delay_ms=0, max_delay_ms=0)

    queue.enqueue("111", "A")
    queue.enqueue("222", "B")
    await wait_idle(queue)

    assert [item.body for item in processor.calls] == ["A", "B"]
    status = queue.get_status()
    assert status["item_count"] == 0
    assert status["failed"] == 2
    assert status["delivered"] == 0


@pytest.mark.asyncio
async def test_raising_processor_does_not_stop_worker():
    calls = []

    async def flaky(item):
        calls.append(item.body)
        if item.body == "boom":
            raise RuntimeError("socket closed")
        return DeliveryOutcome(item_id=item.id, success=True)

    queue = DeliveryQueue(flaky, min_delay_ms=0, max_delay_ms=0)
    queue.enqueue("111", "boom")
    queue.enqueue("111", "after")
    await wait_idle(queue)

    assert calls == ["boom", "after"]
    assert queue.failed == 1
    assert queue.delivered == 1


@pytest.mark.asyncio
async def test_hung_delivery_times_out_as_failure():
    calls = []

    async def hangs_first(item):
        calls.append(item.body)
        if item.body == "hang":
            await asyncio.Event().wait()
        return DeliveryOutcome(item_id=item.id, success=True)

    queue = DeliveryQueue(hangs_first, min_delay_ms=0, max_delay_ms=0, delivery_timeout_seconds=0.01)
    queue.enqueue("111", "hang")
    queue.enqueue("111", "next")

    for _ in range(200):
        if not queue.is_processing:
            break
        await asyncio.sleep(0.005)

    assert calls == ["hang", "next"]
    assert queue.failed == 1
    assert queue.delivered == 1


@pytest.mark.asyncio
async def test_inter_delivery_delay_within_bounds(processor):
    sleep = RecordingSleep()
    queue = DeliveryQueue(
        processor,
        min_delay_ms=2000,
        max_delay_ms=4000,
        rng=random.Random(42),
        sleep=sleep,
    )

    for i in range(50):
        queue.enqueue("111", str(i))
    await wait_idle(queue, max_iterations=10_000)

    assert len(sleep.delays) == 50
    assert all(2.0 <= delay <= 4.0 for delay in sleep.delays)
    assert len(set(sleep.delays)) > 1


@pytest.mark.asyncio
async def test_fixed_delay_when_bounds_equal(processor):
    sleep = RecordingSleep()
    queue = DeliveryQueue(processor, min_delay_ms=1500, max_delay_ms=1500, sleep=sleep)

    queue.enqueue("111", "A")
    queue.enqueue("111", "B")
    await wait_idle(queue)

    assert sleep.delays == [1.5, 1.5]


def test_invalid_delay_bounds_rejected(processor):
    with pytest.raises(ValueError):
        DeliveryQueue(processor, min_delay_ms=500, max_delay_ms=100)


@pytest.mark.asyncio
async def test_status_preview_while_processing():
    gate = asyncio.Event()

    async def gated(item):
        await gate.wait()
        return DeliveryOutcome(item_id=item.id, success=True)

    queue = DeliveryQueue(gated, min_delay_ms=0, max_delay_ms=0)
    ids = [queue.enqueue(f"62{i}", f"body {i}") for i in range(5)]
    await asyncio.sleep(0)

    status = queue.get_status()
    assert status["is_processing"] is True
    assert status["item_count"] == 5
    assert [preview["id"] for preview in status["next_items"]] == ids[:3]
    assert set(status["next_items"][0]) == {"id", "recipient", "enqueued_at"}

    gate.set()
    await wait_idle(queue)
    assert queue.get_status()["item_count"] == 0


@pytest.mark.asyncio
async def test_worker_restarts_after_queue_empties(processor):
    queue = DeliveryQueue(processor, min_delay_ms=0, max_delay_ms=0)

    queue.enqueue("111", "first")
    await wait_idle(queue)
    assert queue.is_processing is False

    queue.enqueue("111", "second")
    assert queue.is_processing is True
    await wait_idle(queue)

    assert [item.body for item in processor.calls] == ["first", "second"]


@pytest.mark.asyncio
async def test_remove_pending_item():
    gate = asyncio.Event()
    delivered = []

    async def gated(item):
        await gate.wait()
        delivered.append(item.body)
        return DeliveryOutcome(item_id=item.id, success=True)

    queue = DeliveryQueue(gated, min_delay_ms=0, max_delay_ms=0)
    queue.enqueue("111", "A")
    second = queue.enqueue("111", "B")
    queue.enqueue("111", "C")

    assert queue.remove(second) is True
    assert queue.remove("missing") is False

    gate.set()
    await wait_idle(queue)
    assert delivered == ["A", "C"]


@pytest.mark.asyncio
async def test_close_drops_pending_items():
    async def hangs(item):
        await asyncio.Event().wait()

    queue = DeliveryQueue(hangs, min_delay_ms=0, max_delay_ms=0, delivery_timeout_seconds=None)
    queue.enqueue("111", "A")
    queue.enqueue("111", "B")
    await asyncio.sleep(0)

    await queue.close()

    assert queue.get_status()["item_count"] == 0
    assert queue.is_processing is False


@pytest.mark.asyncio
async def test_join_waits_for_every_attempt(processor):
    sleep = RecordingSleep()
    queue = DeliveryQueue(processor, min_delay_ms=10, max_delay_ms=20, sleep=sleep)

    for body in ("A", "B", "C"):
        queue.enqueue("111", body)
    await queue.join()

    assert [item.body for item in processor.calls] == ["A", "B", "C"]
    assert queue.is_processing is False
    assert len(sleep.delays) == 3


@pytest.mark.asyncio
async def test_join_on_idle_queue_returns(processor):
    queue = DeliveryQueue(processor, min_delay_ms=0, max_delay_ms=0)

    await queue.join()

    assert processor.calls == []
