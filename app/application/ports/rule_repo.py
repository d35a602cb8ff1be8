"""Port interface for assignment rule persistence."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.assignment_rule import AssignmentRule


class AssignmentRuleRepository(ABC):
    @abstractmethod
    async def get_active_ordered(self) -> list[AssignmentRule]:
        """Active rules, highest priority first, ties by id ascending."""
        ...

    @abstractmethod
    async def get_all(self) -> list[AssignmentRule]:
        ...

    @abstractmethod
    async def get_by_id(self, rule_id: int) -> AssignmentRule | None:
        ...

    @abstractmethod
    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        ...

    @abstractmethod
    async def update(self, rule: AssignmentRule) -> AssignmentRule:
        ...

    @abstractmethod
    async def delete(self, rule_id: int) -> bool:
        ...

    @abstractmethod
    async def record_execution(self, rule_id: int, executed_at: datetime) -> None:
        """Increment execution_count and stamp last_executed_at."""
        ...
