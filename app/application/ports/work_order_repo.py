"""Port interface for work order persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.work_order import WorkOrder
from app.domain.value_objects.enums import WorkOrderStatus


class WorkOrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, work_order_id: int) -> WorkOrder | None:
        ...

    @abstractmethod
    async def assign_if_unassigned(
        self,
        work_order_id: int,
        technician_id: int,
        status: WorkOrderStatus,
    ) -> bool:
        """Set technician + status only where assigned_technician_id IS NULL.

        Returns False when another writer assigned the work order first.
        """
        ...
