"""AssignmentLogEntry — append-only audit record of one assignment decision."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.enums import AssignmentOutcome, FallbackAction
from app.domain.value_objects.scores import ComponentScores


@dataclass(frozen=True)
class AssignmentLogEntry:
    id: int | None
    work_order_id: int
    rule_id: int | None
    status: AssignmentOutcome
    technician_id: int | None = None
    total_score: float | None = None
    scores: ComponentScores | None = None
    candidates_evaluated: int = 0
    candidates_data: list[dict] = field(default_factory=list)
    execution_time_ms: int = 0
    decision_factors: dict = field(default_factory=dict)
    failure_reason: str | None = None
    fallback_action_taken: FallbackAction | None = None
    created_at: datetime | None = None
