"""WorkOrder entity — a unit of field or bay service work."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import WorkOrderStatus
from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class ServiceCategory:
    id: int | None
    name: str
    specialization_required: str | None = None


@dataclass
class WorkOrder:
    id: int | None
    work_order_number: str | None
    status: WorkOrderStatus
    assigned_technician_id: int | None = None
    service_category_id: int | None = None
    service_category: ServiceCategory | None = None
    customer_location: GeoPoint | None = None
    priority: str | None = None
    location_id: int | None = None
    created_at: datetime | None = None

    def is_assigned(self) -> bool:
        return self.assigned_technician_id is not None

    def has_category(self) -> bool:
        return self.service_category_id is not None

    @property
    def required_specialization(self) -> str | None:
        if self.service_category is None:
            return None
        return self.service_category.specialization_required
