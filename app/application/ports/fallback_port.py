"""Port interface for fallback actions (escalation / manager notification)."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.work_order import WorkOrder
from app.domain.value_objects.enums import FallbackAction


class FallbackDispatcher(ABC):
    @abstractmethod
    async def dispatch(
        self,
        action: FallbackAction,
        work_order: WorkOrder,
        rule: AssignmentRule,
        reason: str,
    ) -> None:
        """Perform the remedial step for a work order nobody could take."""
        ...
