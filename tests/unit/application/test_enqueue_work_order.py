"""Tests for EnqueueWorkOrderUseCase."""

import pytest

from app.application.use_cases.enqueue_work_order import (
    EnqueueWorkOrderUseCase,
    WorkOrderAlreadyAssignedError,
)
from app.domain.value_objects.enums import QueueStatus
from tests.factories import NOW, make_work_order
from tests.unit.application.fakes import FakeQueueRepo, FakeWorkOrderRepo


def _uc(work_orders, queue=None, **options):
    queue = queue or FakeQueueRepo()
    uc = EnqueueWorkOrderUseCase(
        FakeWorkOrderRepo(work_orders), queue, clock=lambda: NOW, **options
    )
    return uc, queue


@pytest.mark.asyncio
async def test_enqueue_creates_pending_item():
    uc, queue = _uc([make_work_order(100)], default_max_retries=5)
    item = await uc.execute(100, priority=3)

    assert item.id == 1
    assert item.status == QueueStatus.PENDING
    assert item.priority == 3
    assert item.max_retries == 5
    assert item.added_at == NOW
    assert queue.items[1] is item


@pytest.mark.asyncio
async def test_enqueue_explicit_max_retries():
    uc, _ = _uc([make_work_order(100)])
    item = await uc.execute(100, max_retries=1)
    assert item.max_retries == 1


@pytest.mark.asyncio
async def test_enqueue_is_idempotent_while_pending():
    uc, queue = _uc([make_work_order(100)])
    first = await uc.execute(100)
    second = await uc.execute(100, priority=9)

    assert second is first
    assert len(queue.items) == 1


@pytest.mark.asyncio
async def test_enqueue_unknown_work_order():
    uc, _ = _uc([])
    with pytest.raises(LookupError):
        await uc.execute(404)


@pytest.mark.asyncio
async def test_enqueue_assigned_work_order_rejected():
    uc, queue = _uc([make_work_order(100, assigned_technician_id=3)])
    with pytest.raises(WorkOrderAlreadyAssignedError):
        await uc.execute(100)
    assert queue.items == {}
