"""AssignmentQueueItem entity — a pending request to auto-assign one work order."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import QueueStatus


@dataclass
class AssignmentQueueItem:
    id: int | None
    work_order_id: int
    priority: int = 0
    added_at: datetime | None = None
    status: QueueStatus = QueueStatus.PENDING
    retry_count: int = 0
    max_retries: int = 3
    next_retry_at: datetime | None = None
    assigned_at: datetime | None = None
    failed_reason: str | None = None

    def is_due(self, now: datetime) -> bool:
        if self.status != QueueStatus.PENDING:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now
