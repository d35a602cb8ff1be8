"""Port interface for technician snapshots."""

from abc import ABC, abstractmethod

from app.domain.entities.technician import Technician


class TechnicianRepository(ABC):
    @abstractmethod
    async def get_active(self, location_ids: list[int] | None = None) -> list[Technician]:
        """Active technicians with their shift windows loaded.

        An empty or None location_ids means every location.
        """
        ...
