"""SelectionPolicy — deterministic pick of the best scored candidate."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.candidate import AssignmentCandidate
from app.domain.entities.technician import Technician
from app.domain.entities.work_order import WorkOrder
from app.domain.policies.eligibility import Exclusion, filter_eligible
from app.domain.policies.scoring import score


@dataclass(frozen=True)
class Selection:
    """Everything the selector saw: ranked candidates plus who was filtered out."""

    best: AssignmentCandidate | None
    candidates: list[AssignmentCandidate] = field(default_factory=list)
    excluded: list[Exclusion] = field(default_factory=list)


def rank_candidates(candidates: list[AssignmentCandidate]) -> list[AssignmentCandidate]:
    """Sort by exact composite DESC, then current workload ASC, then technician id ASC."""
    return sorted(
        candidates,
        key=lambda c: (-c.ranking_score, c.current_workload, c.technician_id),
    )


def evaluate(
    work_order: WorkOrder,
    technicians: list[Technician],
    workload_by_technician: Mapping[int, int],
    rule: AssignmentRule,
    now: datetime,
) -> Selection:
    eligible, excluded = filter_eligible(work_order, technicians, workload_by_technician, rule)
    candidates = [
        score(work_order, t, workload_by_technician.get(t.id, 0), rule, now)
        for t in eligible
    ]
    ranked = rank_candidates(candidates)
    return Selection(
        best=ranked[0] if ranked else None,
        candidates=ranked,
        excluded=excluded,
    )


def select_best(
    work_order: WorkOrder,
    technicians: list[Technician],
    workload_by_technician: Mapping[int, int],
    rule: AssignmentRule,
    now: datetime,
) -> AssignmentCandidate | None:
    """Best candidate for the work order, or None when nobody survives filtering."""
    return evaluate(work_order, technicians, workload_by_technician, rule, now).best
