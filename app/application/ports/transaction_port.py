"""Port interface for per-item transactional scopes."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class TransactionManager(ABC):
    @abstractmethod
    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Scope whose writes are rolled back together if the block raises."""
        ...
