"""Technician entity — a service staff member who can take work orders."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.enums import ShiftStatus, TechnicianStatus
from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class Shift:
    start: datetime
    end: datetime
    status: ShiftStatus = ShiftStatus.SCHEDULED

    def covers(self, moment: datetime) -> bool:
        return self.status == ShiftStatus.SCHEDULED and self.start <= moment <= self.end


@dataclass
class Technician:
    id: int | None
    name: str
    status: TechnicianStatus = TechnicianStatus.ACTIVE
    specializations: set[str] = field(default_factory=set)
    location: GeoPoint | None = None
    max_concurrent_orders: int | None = None
    location_id: int | None = None
    shifts: list[Shift] = field(default_factory=list)

    def is_active(self) -> bool:
        return self.status == TechnicianStatus.ACTIVE

    def has_specialization(self, tag: str) -> bool:
        return tag in self.specializations

    def capacity(self) -> int | None:
        """Configured concurrent-order cap; zero is treated as not configured."""
        return self.max_concurrent_orders or None

    def has_shift_data(self) -> bool:
        return bool(self.shifts)

    def is_on_shift(self, now: datetime) -> bool:
        return any(shift.covers(now) for shift in self.shifts)
