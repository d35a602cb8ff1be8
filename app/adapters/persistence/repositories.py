"""SQLAlchemy repository implementations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import (
    AssignmentLogModel,
    AssignmentQueueModel,
    AssignmentRuleModel,
    ServiceCategoryModel,
    ShiftModel,
    TechnicianModel,
    WorkOrderModel,
)
from app.application.ports.assignment_log_repo import AssignmentLogRepository
from app.application.ports.queue_repo import AssignmentQueueRepository
from app.application.ports.rule_repo import AssignmentRuleRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.application.ports.transaction_port import TransactionManager
from app.application.ports.work_order_repo import WorkOrderRepository
from app.application.ports.workload_repo import WorkloadRepository
from app.domain.entities.assignment_log import AssignmentLogEntry
from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.queue_item import AssignmentQueueItem
from app.domain.entities.technician import Shift, Technician
from app.domain.entities.work_order import ServiceCategory, WorkOrder
from app.domain.value_objects.enums import (
    ACTIVE_WORKLOAD_STATUSES,
    AssignmentOutcome,
    FallbackAction,
    QueueStatus,
    ShiftStatus,
    TechnicianStatus,
    WorkOrderStatus,
)
from app.domain.value_objects.geo_point import GeoPoint
from app.domain.value_objects.scores import ComponentScores, ScoreWeights

# ─── Mappers ─────────────────────────────────────────────────────────


def _category_to_domain(m: ServiceCategoryModel) -> ServiceCategory:
    return ServiceCategory(id=m.id, name=m.name, specialization_required=m.specialization_required)


def _shift_to_domain(m: ShiftModel) -> Shift:
    return Shift(start=m.start_datetime, end=m.end_datetime, status=ShiftStatus(m.status))


def _technician_to_domain(m: TechnicianModel) -> Technician:
    return Technician(
        id=m.id,
        name=m.name,
        status=TechnicianStatus(m.status),
        specializations=set(m.specializations) if m.specializations else set(),
        location=GeoPoint.from_coordinates(m.lat, m.lng),
        max_concurrent_orders=m.max_concurrent_orders,
        location_id=m.location_id,
        shifts=[_shift_to_domain(s) for s in m.shifts],
    )


def _work_order_to_domain(m: WorkOrderModel) -> WorkOrder:
    return WorkOrder(
        id=m.id,
        work_order_number=m.work_order_number,
        status=WorkOrderStatus(m.status),
        assigned_technician_id=m.assigned_technician_id,
        service_category_id=m.service_category_id,
        service_category=_category_to_domain(m.service_category) if m.service_category else None,
        customer_location=GeoPoint.from_coordinates(m.customer_lat, m.customer_lng),
        priority=m.priority,
        location_id=m.location_id,
        created_at=m.created_at,
    )


def _rule_to_domain(m: AssignmentRuleModel) -> AssignmentRule:
    return AssignmentRule(
        id=m.id,
        name=m.name,
        weights=ScoreWeights(
            availability=m.weight_availability,
            specialization=m.weight_specialization,
            proximity=m.weight_proximity,
            workload=m.weight_workload,
            performance=m.weight_performance,
        ),
        is_active=m.is_active,
        priority=m.priority,
        max_distance_km=m.max_distance_km,
        require_specialization_match=m.require_specialization_match,
        respect_max_concurrent_orders=m.respect_max_concurrent_orders,
        allowed_locations=list(m.allowed_locations or []),
        allowed_service_categories=list(m.allowed_service_categories or []),
        priority_levels=list(m.priority_levels or []),
        fallback_action=FallbackAction(m.fallback_action),
        fallback_user_id=m.fallback_user_id,
        execution_count=m.execution_count,
        last_executed_at=m.last_executed_at,
    )


def _rule_columns(rule: AssignmentRule) -> dict:
    return {
        "name": rule.name,
        "is_active": rule.is_active,
        "priority": rule.priority,
        "weight_availability": rule.weights.availability,
        "weight_specialization": rule.weights.specialization,
        "weight_proximity": rule.weights.proximity,
        "weight_workload": rule.weights.workload,
        "weight_performance": rule.weights.performance,
        "max_distance_km": rule.max_distance_km,
        "require_specialization_match": rule.require_specialization_match,
        "respect_max_concurrent_orders": rule.respect_max_concurrent_orders,
        "allowed_locations": list(rule.allowed_locations) or None,
        "allowed_service_categories": list(rule.allowed_service_categories) or None,
        "priority_levels": list(rule.priority_levels) or None,
        "fallback_action": rule.fallback_action.value,
        "fallback_user_id": rule.fallback_user_id,
    }


def _queue_item_to_domain(m: AssignmentQueueModel) -> AssignmentQueueItem:
    return AssignmentQueueItem(
        id=m.id,
        work_order_id=m.work_order_id,
        priority=m.priority,
        added_at=m.added_at,
        status=QueueStatus(m.status),
        retry_count=m.retry_count,
        max_retries=m.max_retries,
        next_retry_at=m.next_retry_at,
        assigned_at=m.assigned_at,
        failed_reason=m.failed_reason,
    )


def _log_to_domain(m: AssignmentLogModel) -> AssignmentLogEntry:
    scores = None
    if m.assignment_score is not None:
        scores = ComponentScores(
            availability=m.availability_score or 0.0,
            specialization=m.specialization_score or 0.0,
            proximity=m.proximity_score or 0.0,
            workload=m.workload_score or 0.0,
            performance=m.performance_score or 0.0,
        )
    return AssignmentLogEntry(
        id=m.id,
        work_order_id=m.work_order_id,
        rule_id=m.rule_id,
        status=AssignmentOutcome(m.status),
        technician_id=m.assigned_technician_id,
        total_score=m.assignment_score,
        scores=scores,
        candidates_evaluated=m.candidates_evaluated,
        candidates_data=list(m.candidates_data or []),
        execution_time_ms=m.execution_time_ms,
        decision_factors=dict(m.decision_factors or {}),
        failure_reason=m.failure_reason,
        fallback_action_taken=FallbackAction(m.fallback_action_taken) if m.fallback_action_taken else None,
        created_at=m.assigned_at,
    )


def _log_to_model(entry: AssignmentLogEntry) -> AssignmentLogModel:
    scores = entry.scores.as_dict() if entry.scores else {}
    m = AssignmentLogModel(
        work_order_id=entry.work_order_id,
        rule_id=entry.rule_id,
        assigned_technician_id=entry.technician_id,
        status=entry.status.value,
        assignment_score=entry.total_score,
        availability_score=scores.get("availability"),
        specialization_score=scores.get("specialization"),
        proximity_score=scores.get("proximity"),
        workload_score=scores.get("workload"),
        performance_score=scores.get("performance"),
        candidates_evaluated=entry.candidates_evaluated,
        candidates_data=list(entry.candidates_data),
        execution_time_ms=entry.execution_time_ms,
        decision_factors=dict(entry.decision_factors),
        failure_reason=entry.failure_reason,
        fallback_action_taken=entry.fallback_action_taken.value if entry.fallback_action_taken else None,
    )
    if entry.created_at is not None:
        m.assigned_at = entry.created_at
    return m


# ─── Repositories ────────────────────────────────────────────────────


class SqlTransactionManager(TransactionManager):
    def __init__(self, session: AsyncSession):
        self._s = session

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        async with self._s.begin_nested():
            yield


class SqlWorkOrderRepository(WorkOrderRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, work_order_id: int) -> WorkOrder | None:
        # populate_existing: the idempotency re-check must see the current row
        m = await self._s.get(WorkOrderModel, work_order_id, populate_existing=True)
        return _work_order_to_domain(m) if m else None

    async def assign_if_unassigned(
        self,
        work_order_id: int,
        technician_id: int,
        status: WorkOrderStatus,
    ) -> bool:
        result = await self._s.execute(
            update(WorkOrderModel)
            .where(
                WorkOrderModel.id == work_order_id,
                WorkOrderModel.assigned_technician_id.is_(None),
            )
            .values(assigned_technician_id=technician_id, status=status.value)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlTechnicianRepository(TechnicianRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_active(self, location_ids: list[int] | None = None) -> list[Technician]:
        query = select(TechnicianModel).where(
            TechnicianModel.status == TechnicianStatus.ACTIVE.value
        )
        if location_ids:
            query = query.where(TechnicianModel.location_id.in_(location_ids))
        result = await self._s.execute(query.order_by(TechnicianModel.id))
        return [_technician_to_domain(m) for m in result.scalars()]


class SqlWorkloadRepository(WorkloadRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def count_active_by_technician(self, technician_ids: list[int]) -> dict[int, int]:
        if not technician_ids:
            return {}
        result = await self._s.execute(
            select(WorkOrderModel.assigned_technician_id, func.count(WorkOrderModel.id))
            .where(
                WorkOrderModel.assigned_technician_id.in_(technician_ids),
                WorkOrderModel.status.in_([s.value for s in ACTIVE_WORKLOAD_STATUSES]),
            )
            .group_by(WorkOrderModel.assigned_technician_id)
        )
        return {tech_id: count for tech_id, count in result.all()}


class SqlAssignmentRuleRepository(AssignmentRuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_active_ordered(self) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(AssignmentRuleModel.is_active.is_(True))
            .order_by(AssignmentRuleModel.priority.desc(), AssignmentRuleModel.id)
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_all(self) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel).order_by(
                AssignmentRuleModel.priority.desc(), AssignmentRuleModel.id
            )
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_by_id(self, rule_id: int) -> AssignmentRule | None:
        m = await self._s.get(AssignmentRuleModel, rule_id)
        return _rule_to_domain(m) if m else None

    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        m = AssignmentRuleModel(**_rule_columns(rule))
        self._s.add(m)
        await self._s.flush()
        rule.id = m.id
        return rule

    async def update(self, rule: AssignmentRule) -> AssignmentRule:
        await self._s.execute(
            update(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule.id)
            .values(**_rule_columns(rule))
        )
        await self._s.flush()
        return rule

    async def delete(self, rule_id: int) -> bool:
        result = await self._s.execute(
            delete(AssignmentRuleModel).where(AssignmentRuleModel.id == rule_id)
        )
        await self._s.flush()
        return result.rowcount > 0

    async def record_execution(self, rule_id: int, executed_at: datetime) -> None:
        await self._s.execute(
            update(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule_id)
            .values(
                execution_count=AssignmentRuleModel.execution_count + 1,
                last_executed_at=executed_at,
            )
        )
        await self._s.flush()


class SqlAssignmentQueueRepository(AssignmentQueueRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_due(self, now: datetime, limit: int) -> list[AssignmentQueueItem]:
        result = await self._s.execute(
            select(AssignmentQueueModel)
            .where(
                AssignmentQueueModel.status == QueueStatus.PENDING.value,
                (AssignmentQueueModel.next_retry_at.is_(None))
                | (AssignmentQueueModel.next_retry_at <= now),
            )
            .order_by(
                AssignmentQueueModel.priority.desc(),
                AssignmentQueueModel.added_at,
                AssignmentQueueModel.id,
            )
            .limit(limit)
        )
        return [_queue_item_to_domain(m) for m in result.scalars()]

    async def get_pending_for_work_order(self, work_order_id: int) -> AssignmentQueueItem | None:
        result = await self._s.execute(
            select(AssignmentQueueModel)
            .where(
                AssignmentQueueModel.work_order_id == work_order_id,
                AssignmentQueueModel.status == QueueStatus.PENDING.value,
            )
            .order_by(AssignmentQueueModel.id)
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _queue_item_to_domain(m) if m else None

    async def enqueue(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        m = AssignmentQueueModel(
            work_order_id=item.work_order_id,
            priority=item.priority,
            status=item.status.value,
            retry_count=item.retry_count,
            max_retries=item.max_retries,
            next_retry_at=item.next_retry_at,
        )
        if item.added_at is not None:
            m.added_at = item.added_at
        self._s.add(m)
        await self._s.flush()
        item.id = m.id
        return item

    async def mark_assigned(self, item_id: int, assigned_at: datetime) -> None:
        await self._set(item_id, status=QueueStatus.ASSIGNED.value, assigned_at=assigned_at)

    async def mark_failed(self, item_id: int, retry_count: int, reason: str) -> None:
        await self._set(
            item_id,
            status=QueueStatus.FAILED.value,
            retry_count=retry_count,
            failed_reason=reason,
        )

    async def reschedule(self, item_id: int, retry_count: int, next_retry_at: datetime) -> None:
        await self._set(item_id, retry_count=retry_count, next_retry_at=next_retry_at)

    async def _set(self, item_id: int, **values) -> None:
        await self._s.execute(
            update(AssignmentQueueModel)
            .where(AssignmentQueueModel.id == item_id)
            .values(**values)
        )
        await self._s.flush()


class SqlAssignmentLogRepository(AssignmentLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, entry: AssignmentLogEntry) -> AssignmentLogEntry:
        m = _log_to_model(entry)
        self._s.add(m)
        await self._s.flush()
        return replace(entry, id=m.id)

    async def list_recent(
        self, work_order_id: int | None = None, limit: int = 100
    ) -> list[AssignmentLogEntry]:
        query = select(AssignmentLogModel)
        if work_order_id is not None:
            query = query.where(AssignmentLogModel.work_order_id == work_order_id)
        result = await self._s.execute(
            query.order_by(AssignmentLogModel.assigned_at.desc(), AssignmentLogModel.id.desc())
            .limit(limit)
        )
        return [_log_to_domain(m) for m in result.scalars()]
