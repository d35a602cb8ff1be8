"""Port interface for the append-only assignment audit log."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment_log import AssignmentLogEntry


class AssignmentLogRepository(ABC):
    @abstractmethod
    async def append(self, entry: AssignmentLogEntry) -> AssignmentLogEntry:
        ...

    @abstractmethod
    async def list_recent(
        self, work_order_id: int | None = None, limit: int = 100
    ) -> list[AssignmentLogEntry]:
        """Newest first."""
        ...
