"""EnqueueWorkOrderUseCase — request auto-assignment for one work order."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from app.application.ports.queue_repo import AssignmentQueueRepository
from app.application.ports.work_order_repo import WorkOrderRepository
from app.domain.entities.queue_item import AssignmentQueueItem

logger = logging.getLogger(__name__)


class WorkOrderAlreadyAssignedError(ValueError):
    pass


class EnqueueWorkOrderUseCase:
    def __init__(
        self,
        work_order_repo: WorkOrderRepository,
        queue_repo: AssignmentQueueRepository,
        *,
        default_max_retries: int = 3,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._work_orders = work_order_repo
        self._queue = queue_repo
        self._default_max_retries = default_max_retries
        self._clock = clock

    async def execute(
        self,
        work_order_id: int,
        priority: int = 0,
        max_retries: int | None = None,
    ) -> AssignmentQueueItem:
        """Queue the work order; an existing pending entry is returned unchanged.

        Raises:
            LookupError: the work order does not exist.
            WorkOrderAlreadyAssignedError: a technician is already assigned.
        """
        work_order = await self._work_orders.get_by_id(work_order_id)
        if work_order is None:
            raise LookupError(f"Work order {work_order_id} not found")
        if work_order.is_assigned():
            raise WorkOrderAlreadyAssignedError(
                f"Work order {work_order_id} is already assigned"
            )

        existing = await self._queue.get_pending_for_work_order(work_order_id)
        if existing is not None:
            return existing

        item = await self._queue.enqueue(
            AssignmentQueueItem(
                id=None,
                work_order_id=work_order_id,
                priority=priority,
                added_at=self._clock(),
                max_retries=max_retries or self._default_max_retries,
            )
        )
        logger.info("Queued work order %s for auto-assignment (priority %d)", work_order_id, priority)
        return item
