"""ScoringPolicy — weighted multi-factor score of one technician for one work order."""

from __future__ import annotations

import logging
from datetime import datetime

from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.candidate import AssignmentCandidate
from app.domain.entities.technician import Technician
from app.domain.entities.work_order import WorkOrder
from app.domain.value_objects.scores import ComponentScores, ScoreWeights

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Availability
ON_SHIFT_SCORE = 100.0
OFF_SHIFT_SCORE = 30.0
NO_SHIFT_DATA_SCORE = 50.0

# Specialization
SPECIALIZATION_MATCH_SCORE = 100.0
SPECIALIZATION_MISMATCH_SCORE = 25.0
NO_REQUIREMENT_SCORE = 75.0
NO_CATEGORY_SCORE = 50.0

# Proximity
UNKNOWN_DISTANCE_SCORE = 50.0
DEFAULT_MAX_DISTANCE_KM = 50.0

# Workload
DEFAULT_WORKLOAD_CAP = 10

# Performance: neutral until a historical metrics source is wired in
PERFORMANCE_PLACEHOLDER_SCORE = 75.0


def clamp(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def availability_score(technician: Technician, now: datetime) -> float:
    """100 on an active scheduled shift, 30 off shift, 50 when shifts are unknown."""
    if not technician.has_shift_data():
        return NO_SHIFT_DATA_SCORE
    return ON_SHIFT_SCORE if technician.is_on_shift(now) else OFF_SHIFT_SCORE


def specialization_score(technician: Technician, work_order: WorkOrder) -> float:
    if not work_order.has_category():
        return NO_CATEGORY_SCORE
    required = work_order.required_specialization
    if not required:
        return NO_REQUIREMENT_SCORE
    if technician.has_specialization(required):
        return SPECIALIZATION_MATCH_SCORE
    return SPECIALIZATION_MISMATCH_SCORE


def distance_km(technician: Technician, work_order: WorkOrder) -> float | None:
    """Great-circle distance between technician and customer, None if either is unknown."""
    if technician.location is None or work_order.customer_location is None:
        return None
    return technician.location.haversine_km(work_order.customer_location)


def proximity_score(distance: float | None, max_distance_km: float | None) -> float:
    """Linear falloff up to the rule's max distance (or 50 km).

    Returns 0 when a configured max distance is exceeded; callers treat that as
    disqualifying, not merely a low score.
    """
    if distance is None:
        return UNKNOWN_DISTANCE_SCORE
    if max_distance_km and distance > max_distance_km:
        return MIN_SCORE
    effective_max = max_distance_km or DEFAULT_MAX_DISTANCE_KM
    return clamp(MAX_SCORE - (distance / effective_max) * MAX_SCORE)


def workload_score(current_workload: int, max_concurrent_orders: int | None) -> float:
    cap = max_concurrent_orders or DEFAULT_WORKLOAD_CAP
    return clamp(MAX_SCORE - (current_workload / cap) * MAX_SCORE)


def performance_score(technician: Technician) -> float:
    # TODO: derive from completed work order quality once completion metrics are stored
    return PERFORMANCE_PLACEHOLDER_SCORE


def composite_score(scores: ComponentScores, weights: ScoreWeights) -> float:
    """Weighted average of the component scores: sum(score * weight) / sum(weights)."""
    total_weight = weights.total
    if total_weight <= 0:
        logger.warning("All assignment weights are zero; composite score defaults to 0")
        return MIN_SCORE

    weight_map = weights.as_dict()
    weighted = sum(value * weight_map[name] for name, value in scores.as_dict().items())
    return clamp(weighted / total_weight)


def score(
    work_order: WorkOrder,
    technician: Technician,
    current_workload: int,
    rule: AssignmentRule,
    now: datetime,
) -> AssignmentCandidate:
    """Pure function: compute the full candidate record for one technician."""
    distance = distance_km(technician, work_order)
    components = ComponentScores(
        availability=clamp(availability_score(technician, now)),
        specialization=clamp(specialization_score(technician, work_order)),
        proximity=proximity_score(distance, rule.max_distance_km),
        workload=workload_score(current_workload, technician.capacity()),
        performance=clamp(performance_score(technician)),
    )
    total = composite_score(components, rule.weights)

    return AssignmentCandidate(
        technician_id=technician.id,
        technician_name=technician.name,
        scores=components.rounded(),
        total_score=round(total, 2),
        current_workload=current_workload,
        distance_km=round(distance, 2) if distance is not None else None,
        reason=f"Score: {round(total)}/100",
        exact_score=total,
    )
