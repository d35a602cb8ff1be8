"""Port interface for technician workload counts."""

from abc import ABC, abstractmethod


class WorkloadRepository(ABC):
    @abstractmethod
    async def count_active_by_technician(self, technician_ids: list[int]) -> dict[int, int]:
        """Number of non-terminal work orders per technician (missing = 0)."""
        ...
