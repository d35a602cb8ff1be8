"""AssignmentCandidate — a technician paired with scores for one work order."""

from dataclasses import dataclass

from app.domain.value_objects.scores import ComponentScores


@dataclass(frozen=True)
class AssignmentCandidate:
    technician_id: int
    technician_name: str
    scores: ComponentScores
    total_score: float
    current_workload: int
    distance_km: float | None = None
    reason: str = ""
    # Unrounded composite; total_score is the two-decimal display value
    exact_score: float | None = None

    @property
    def ranking_score(self) -> float:
        return self.total_score if self.exact_score is None else self.exact_score

    def snapshot(self) -> dict:
        """Serializable form stored in the audit log."""
        return {
            "technician_id": self.technician_id,
            "technician_name": self.technician_name,
            "total_score": self.total_score,
            **{f"{name}_score": value for name, value in self.scores.as_dict().items()},
            "distance_km": self.distance_km,
            "current_workload": self.current_workload,
            "reason": self.reason,
        }
