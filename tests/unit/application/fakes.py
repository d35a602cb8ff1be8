"""In-memory port implementations shared by the use case tests."""

from __future__ import annotations

import copy
from contextlib import asynccontextmanager
from dataclasses import replace

from app.application.ports.assignment_log_repo import AssignmentLogRepository
from app.application.ports.fallback_port import FallbackDispatcher
from app.application.ports.queue_repo import AssignmentQueueRepository
from app.application.ports.rule_repo import AssignmentRuleRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.application.ports.transaction_port import TransactionManager
from app.application.ports.work_order_repo import WorkOrderRepository
from app.application.ports.workload_repo import WorkloadRepository
from app.domain.entities.queue_item import AssignmentQueueItem
from app.domain.value_objects.enums import QueueStatus


def _snapshot_rows(rows: dict) -> dict:
    return {key: copy.copy(row) for key, row in rows.items()}


def _restore_rows(rows: dict, saved: dict) -> None:
    """Undo writes in place so callers holding row objects see the rollback."""
    for key in list(rows):
        if key not in saved:
            del rows[key]
    for key, row in saved.items():
        if key in rows:
            vars(rows[key]).update(vars(row))
        else:
            rows[key] = row


class FakeWorkOrderRepo(WorkOrderRepository):
    def __init__(self, work_orders, lose_race_for: set[int] | None = None):
        self.work_orders = {wo.id: wo for wo in work_orders}
        self._lose_race_for = lose_race_for or set()

    async def get_by_id(self, work_order_id):
        return self.work_orders.get(work_order_id)

    async def assign_if_unassigned(self, work_order_id, technician_id, status):
        wo = self.work_orders[work_order_id]
        if work_order_id in self._lose_race_for or wo.assigned_technician_id is not None:
            return False
        wo.assigned_technician_id = technician_id
        wo.status = status
        return True

    def snapshot(self):
        return _snapshot_rows(self.work_orders)

    def restore(self, saved):
        _restore_rows(self.work_orders, saved)


class FakeTechnicianRepo(TechnicianRepository):
    def __init__(self, technicians):
        self._technicians = technicians

    async def get_active(self, location_ids=None):
        return [
            t for t in self._technicians
            if t.is_active() and (not location_ids or t.location_id in location_ids)
        ]


class FakeWorkloadRepo(WorkloadRepository):
    def __init__(self, counts: dict[int, int] | None = None):
        self._counts = counts or {}

    async def count_active_by_technician(self, technician_ids):
        return {tid: self._counts[tid] for tid in technician_ids if tid in self._counts}


class FakeRuleRepo(AssignmentRuleRepository):
    def __init__(self, rules=()):
        self.rules = {r.id: r for r in rules}
        self._next_id = max(self.rules, default=0) + 1

    async def get_active_ordered(self):
        active = [r for r in self.rules.values() if r.is_active]
        return sorted(active, key=lambda r: (-r.priority, r.id))

    async def get_all(self):
        return list(self.rules.values())

    async def get_by_id(self, rule_id):
        return self.rules.get(rule_id)

    async def save(self, rule):
        saved = replace(rule, id=self._next_id)
        self._next_id += 1
        self.rules[saved.id] = saved
        return saved

    async def update(self, rule):
        self.rules[rule.id] = rule
        return rule

    async def delete(self, rule_id):
        return self.rules.pop(rule_id, None) is not None

    async def record_execution(self, rule_id, executed_at):
        rule = self.rules[rule_id]
        rule.execution_count += 1
        rule.last_executed_at = executed_at

    def snapshot(self):
        return _snapshot_rows(self.rules)

    def restore(self, saved):
        _restore_rows(self.rules, saved)


class FakeQueueRepo(AssignmentQueueRepository):
    def __init__(self, items=()):
        self.items: dict[int, AssignmentQueueItem] = {i.id: i for i in items}
        self.get_due_calls = 0

    async def get_due(self, now, limit):
        self.get_due_calls += 1
        due = [i for i in self.items.values() if i.is_due(now)]
        due.sort(key=lambda i: (-i.priority, i.added_at))
        return due[:limit]

    async def get_pending_for_work_order(self, work_order_id):
        return next(
            (
                i for i in self.items.values()
                if i.work_order_id == work_order_id and i.status == QueueStatus.PENDING
            ),
            None,
        )

    async def enqueue(self, item):
        saved = replace(item, id=len(self.items) + 1)
        self.items[saved.id] = saved
        return saved

    async def mark_assigned(self, item_id, assigned_at):
        item = self.items[item_id]
        item.status = QueueStatus.ASSIGNED
        item.assigned_at = assigned_at

    async def mark_failed(self, item_id, retry_count, reason):
        item = self.items[item_id]
        item.status = QueueStatus.FAILED
        item.retry_count = retry_count
        item.failed_reason = reason

    async def reschedule(self, item_id, retry_count, next_retry_at):
        item = self.items[item_id]
        item.retry_count = retry_count
        item.next_retry_at = next_retry_at

    def snapshot(self):
        return _snapshot_rows(self.items)

    def restore(self, saved):
        _restore_rows(self.items, saved)


class FakeLogRepo(AssignmentLogRepository):
    def __init__(self, fail_for: set[int] | None = None):
        self.entries = []
        self._fail_for = fail_for or set()

    async def append(self, entry):
        if entry.work_order_id in self._fail_for:
            raise RuntimeError("audit log unavailable")
        saved = replace(entry, id=len(self.entries) + 1)
        self.entries.append(saved)
        return saved

    async def list_recent(self, work_order_id=None, limit=100):
        entries = [
            e for e in reversed(self.entries)
            if work_order_id is None or e.work_order_id == work_order_id
        ]
        return entries[:limit]

    def snapshot(self):
        return len(self.entries)

    def restore(self, saved):
        del self.entries[saved:]


class FakeFallback(FallbackDispatcher):
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self._error = error

    async def dispatch(self, action, work_order, rule, reason):
        self.calls.append((action, work_order.id, rule.id, reason))
        if self._error is not None:
            raise self._error


class FakeTransactions(TransactionManager):
    """Savepoints over the fake stores: an exception restores their prior state."""

    def __init__(self, *stores):
        self._stores = stores
        self.opened = 0
        self.rolled_back = 0

    @asynccontextmanager
    async def _scope(self):
        self.opened += 1
        saved = [store.snapshot() for store in self._stores]
        try:
            yield
        except Exception:
            for store, state in zip(self._stores, saved):
                store.restore(state)
            self.rolled_back += 1
            raise

    def savepoint(self):
        return self._scope()
