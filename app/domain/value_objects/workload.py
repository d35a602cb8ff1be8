"""WorkloadLedger — persisted workload counts plus assignments made in this run."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping


class WorkloadLedger:
    """Read-your-own-writes view of technician workload within one batch.

    The base counts come from the workload source once per batch; every
    successful assignment in the batch is recorded here so later items see it.
    """

    def __init__(self, base: Mapping[int, int] | None = None):
        self._base: dict[int, int] = dict(base or {})
        self._overlay: Counter[int] = Counter()

    def count(self, technician_id: int) -> int:
        return self._base.get(technician_id, 0) + self._overlay[technician_id]

    def record_assignment(self, technician_id: int) -> None:
        self._overlay[technician_id] += 1

    def assigned_in_batch(self, technician_id: int) -> int:
        return self._overlay[technician_id]

    def snapshot(self) -> dict[int, int]:
        keys = set(self._base) | set(self._overlay)
        return {tid: self.count(tid) for tid in keys}
