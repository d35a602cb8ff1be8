"""Port interface for the assignment queue."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.queue_item import AssignmentQueueItem


class AssignmentQueueRepository(ABC):
    @abstractmethod
    async def get_due(self, now: datetime, limit: int) -> list[AssignmentQueueItem]:
        """Pending items with next_retry_at <= now (or unset).

        Ordered by priority DESC, then added_at ASC.
        """
        ...

    @abstractmethod
    async def get_pending_for_work_order(self, work_order_id: int) -> AssignmentQueueItem | None:
        ...

    @abstractmethod
    async def enqueue(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        ...

    @abstractmethod
    async def mark_assigned(self, item_id: int, assigned_at: datetime) -> None:
        ...

    @abstractmethod
    async def mark_failed(self, item_id: int, retry_count: int, reason: str) -> None:
        ...

    @abstractmethod
    async def reschedule(self, item_id: int, retry_count: int, next_retry_at: datetime) -> None:
        ...
