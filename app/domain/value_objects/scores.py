"""Score value objects — the five assignment factors, as weights and as scores."""

from __future__ import annotations

from dataclasses import asdict, dataclass

FACTORS = ("availability", "specialization", "proximity", "workload", "performance")


@dataclass(frozen=True)
class ScoreWeights:
    availability: float = 0.0
    specialization: float = 0.0
    proximity: float = 0.0
    workload: float = 0.0
    performance: float = 0.0

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if value < 0:
                raise ValueError(f"Weight '{name}' must be non-negative, got {value}")

    @property
    def total(self) -> float:
        return sum(asdict(self).values())

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ComponentScores:
    """Per-factor scores of one technician for one work order, each in [0, 100]."""

    availability: float
    specialization: float
    proximity: float
    workload: float
    performance: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    def rounded(self, ndigits: int = 2) -> ComponentScores:
        return ComponentScores(**{k: round(v, ndigits) for k, v in asdict(self).items()})
