"""EligibilityPolicy — hard filters applied to technicians before scoring."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.technician import Technician
from app.domain.entities.work_order import WorkOrder
from app.domain.policies.scoring import distance_km


@dataclass(frozen=True)
class Exclusion:
    """A technician removed from the pool, and why."""

    technician_id: int | None
    reason: str


def exclusion_reason(
    work_order: WorkOrder,
    technician: Technician,
    current_workload: int,
    rule: AssignmentRule,
) -> str | None:
    """Return the first filter the technician fails, or None if eligible.

    Filters, in order:
      1. Technician must be active.
      2. Capacity: workload must stay below the configured cap
         (only when the rule respects max concurrent orders).
      3. Specialization: required tag must be present
         (only when the rule requires a match and the category names one).
      4. Location allow-list.
      5. Max distance, when both coordinates are known.
    """
    if not technician.is_active():
        return "Technician is not active"

    cap = technician.capacity()
    if rule.respect_max_concurrent_orders and cap is not None and current_workload >= cap:
        return f"At capacity ({current_workload}/{cap})"

    required = work_order.required_specialization
    if rule.require_specialization_match and required and not technician.has_specialization(required):
        return f"Missing specialization '{required}'"

    if rule.allowed_locations and technician.location_id not in rule.allowed_locations:
        return f"Location {technician.location_id} not allowed by rule"

    if rule.max_distance_km:
        distance = distance_km(technician, work_order)
        if distance is not None and distance > rule.max_distance_km:
            return f"Too far ({distance:.1f} km > {rule.max_distance_km:g} km)"

    return None


def filter_eligible(
    work_order: WorkOrder,
    technicians: list[Technician],
    workload_by_technician: Mapping[int, int],
    rule: AssignmentRule,
) -> tuple[list[Technician], list[Exclusion]]:
    """Split the pool into eligible technicians and exclusions.

    When the rule does not cover the work order (service category or priority
    allow-lists), every technician is excluded with the rule's reason.
    """
    not_covered = rule.covers(work_order)
    if not_covered:
        return [], [Exclusion(t.id, not_covered) for t in technicians]

    eligible: list[Technician] = []
    excluded: list[Exclusion] = []
    for technician in technicians:
        reason = exclusion_reason(
            work_order, technician, workload_by_technician.get(technician.id, 0), rule
        )
        if reason is None:
            eligible.append(technician)
        else:
            excluded.append(Exclusion(technician.id, reason))
    return eligible, excluded
