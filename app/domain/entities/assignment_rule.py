"""AssignmentRule entity — scoring weights and eligibility filters for auto-assignment."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.entities.work_order import WorkOrder
from app.domain.value_objects.enums import FallbackAction
from app.domain.value_objects.scores import ScoreWeights


@dataclass
class AssignmentRule:
    id: int | None
    name: str
    weights: ScoreWeights
    is_active: bool = True
    priority: int = 0
    max_distance_km: float | None = None
    require_specialization_match: bool = False
    respect_max_concurrent_orders: bool = True
    allowed_locations: list[int] = field(default_factory=list)
    allowed_service_categories: list[int] = field(default_factory=list)
    priority_levels: list[str] = field(default_factory=list)
    fallback_action: FallbackAction = FallbackAction.QUEUE
    fallback_user_id: int | None = None
    execution_count: int = 0
    last_executed_at: datetime | None = None

    def covers(self, work_order: WorkOrder) -> str | None:
        """Return why this rule does not apply to the work order, or None if it does."""
        if self.allowed_service_categories and (
            work_order.service_category_id not in self.allowed_service_categories
        ):
            return f"Service category {work_order.service_category_id} not covered by rule"
        if self.priority_levels and work_order.priority not in self.priority_levels:
            return f"Priority '{work_order.priority}' not covered by rule"
        return None
