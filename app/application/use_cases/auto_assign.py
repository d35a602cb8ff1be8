"""AutoAssignUseCase — drain the assignment queue and place work orders with technicians."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from app.application.ports.assignment_log_repo import AssignmentLogRepository
from app.application.ports.fallback_port import FallbackDispatcher
from app.application.ports.queue_repo import AssignmentQueueRepository
from app.application.ports.rule_repo import AssignmentRuleRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.application.ports.transaction_port import TransactionManager
from app.application.ports.work_order_repo import WorkOrderRepository
from app.application.ports.workload_repo import WorkloadRepository
from app.domain.entities.assignment_log import AssignmentLogEntry
from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.queue_item import AssignmentQueueItem
from app.domain.entities.technician import Technician
from app.domain.entities.work_order import WorkOrder
from app.domain.policies.retry import DEFAULT_RETRY_DELAY, plan_retry
from app.domain.policies.selection import Selection, evaluate
from app.domain.value_objects.enums import (
    AssignmentMode,
    AssignmentOutcome,
    FallbackAction,
    WorkOrderStatus,
)
from app.domain.value_objects.workload import WorkloadLedger

logger = logging.getLogger(__name__)

NO_CANDIDATE_REASON = "No suitable technician found"


@dataclass
class AssignmentResult:
    """Outcome for one processed work order."""

    work_order_id: int
    success: bool
    outcome: AssignmentOutcome | None = None
    assigned_technician_id: int | None = None
    assigned_technician_name: str | None = None
    score: float | None = None
    error: str | None = None
    candidates_evaluated: int = 0
    execution_time_ms: int = 0
    fallback_action: FallbackAction | None = None


@dataclass
class BatchResult:
    """Aggregate outcome of one run. Skipped items are counted, not listed."""

    mode: AssignmentMode
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    execution_time_ms: int = 0
    message: str | None = None
    rule_id: int | None = None
    results: list[AssignmentResult] = field(default_factory=list)


@dataclass
class _Decision:
    result: AssignmentResult
    work_order: WorkOrder
    miss_reason: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


class AutoAssignUseCase:
    """Orchestrates scoring, persistence and fallback for a bounded batch.

    Items are processed sequentially so that every assignment made earlier in
    the batch is visible, through the workload ledger, to later items.
    """

    def __init__(
        self,
        work_order_repo: WorkOrderRepository,
        technician_repo: TechnicianRepository,
        workload_repo: WorkloadRepository,
        rule_repo: AssignmentRuleRepository,
        queue_repo: AssignmentQueueRepository,
        log_repo: AssignmentLogRepository,
        fallback: FallbackDispatcher,
        transactions: TransactionManager,
        *,
        enabled: bool = True,
        default_batch_size: int = 50,
        retry_delay: timedelta = DEFAULT_RETRY_DELAY,
        backoff_multiplier: float = 1.0,
        log_top_candidates: int = 10,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._work_orders = work_order_repo
        self._technicians = technician_repo
        self._workload = workload_repo
        self._rules = rule_repo
        self._queue = queue_repo
        self._log = log_repo
        self._fallback = fallback
        self._tx = transactions
        self._enabled = enabled
        self._default_batch_size = default_batch_size
        self._retry_delay = retry_delay
        self._backoff_multiplier = backoff_multiplier
        self._log_top = log_top_candidates
        self._clock = clock

    # ─── Entry points ────────────────────────────────────────────────

    async def run_batch(self, max_items: int | None = None) -> BatchResult:
        """Queue mode: process up to max_items due queue entries.

        Failures to load the queue or the rules propagate: they are fatal for
        the whole batch.
        """
        started = time.perf_counter()
        if not self._enabled:
            return BatchResult(mode=AssignmentMode.QUEUE, message="Auto-assignment is disabled")

        limit = max_items or self._default_batch_size
        items = await self._queue.get_due(self._clock(), limit)
        if not items:
            return BatchResult(
                mode=AssignmentMode.QUEUE,
                message="No work orders in queue",
                execution_time_ms=_elapsed_ms(started),
            )

        logger.info("Auto-assign batch: %d queue item(s) due", len(items))
        return await self._run(items, AssignmentMode.QUEUE, started)

    async def assign_work_orders(self, work_order_ids: list[int]) -> BatchResult:
        """Direct mode: assign explicit work orders without queue bookkeeping."""
        started = time.perf_counter()
        now = self._clock()
        items = [
            AssignmentQueueItem(id=None, work_order_id=wo_id, added_at=now)
            for wo_id in work_order_ids
        ]
        return await self._run(items, AssignmentMode.DIRECT, started)

    # ─── Batch loop ──────────────────────────────────────────────────

    async def _run(
        self,
        items: list[AssignmentQueueItem],
        mode: AssignmentMode,
        started: float,
    ) -> BatchResult:
        rule = await self._select_rule()
        if rule is None:
            logger.error("Auto-assign aborted: no active assignment rule")
            return BatchResult(
                mode=mode,
                message="No active auto-assignment rules found",
                execution_time_ms=_elapsed_ms(started),
            )

        technicians = await self._technicians.get_active(rule.allowed_locations or None)
        if not technicians:
            logger.error("Auto-assign aborted: no active technicians (rule %s)", rule.id)
            return BatchResult(
                mode=mode,
                rule_id=rule.id,
                message="No active technicians available",
                execution_time_ms=_elapsed_ms(started),
            )

        counts = await self._workload.count_active_by_technician([t.id for t in technicians])
        workload = WorkloadLedger(counts)

        batch = BatchResult(mode=mode, rule_id=rule.id)
        for item in items:
            result = await self._process_item(item, rule, technicians, workload, mode)
            if result is None:
                batch.skipped += 1
                continue
            batch.results.append(result)

        await self._record_rule_execution(rule)

        batch.processed = len(batch.results)
        batch.succeeded = sum(1 for r in batch.results if r.success)
        batch.failed = batch.processed - batch.succeeded
        batch.execution_time_ms = _elapsed_ms(started)
        batch.message = "Auto-assignment completed"
        logger.info(
            "Auto-assign batch complete (%s): %d processed, %d assigned, %d failed, %d skipped",
            mode.value, batch.processed, batch.succeeded, batch.failed, batch.skipped,
        )
        return batch

    async def _select_rule(self) -> AssignmentRule | None:
        """Highest-priority active rule; ties resolved by the repository's id order."""
        rules = [r for r in await self._rules.get_active_ordered() if r.is_active]
        if not rules:
            return None
        if len(rules) > 1 and rules[0].priority == rules[1].priority:
            logger.warning(
                "Rules %s and %s share priority %d; using %s",
                rules[0].id, rules[1].id, rules[0].priority, rules[0].id,
            )
        return rules[0]

    async def _process_item(
        self,
        item: AssignmentQueueItem,
        rule: AssignmentRule,
        technicians: list[Technician],
        workload: WorkloadLedger,
        mode: AssignmentMode,
    ) -> AssignmentResult | None:
        started = time.perf_counter()
        try:
            async with self._tx.savepoint():
                decision = await self._decide(item, rule, technicians, workload, mode, started)
        except Exception as e:
            # Writes for this item were rolled back; the queue item stays pending
            logger.exception("Error assigning work order %s", item.work_order_id)
            return AssignmentResult(
                work_order_id=item.work_order_id,
                success=False,
                outcome=AssignmentOutcome.FAILED,
                error=str(e),
                execution_time_ms=_elapsed_ms(started),
            )

        if decision is None:
            return None

        result = decision.result
        if result.success:
            workload.record_assignment(result.assigned_technician_id)
        elif decision.miss_reason is not None:
            await self._dispatch_fallback(decision.work_order, rule, decision.miss_reason)
        return result

    async def _decide(
        self,
        item: AssignmentQueueItem,
        rule: AssignmentRule,
        technicians: list[Technician],
        workload: WorkloadLedger,
        mode: AssignmentMode,
        started: float,
    ) -> _Decision | None:
        work_order = await self._work_orders.get_by_id(item.work_order_id)
        if work_order is None:
            raise LookupError(f"Work order {item.work_order_id} not found")

        if work_order.is_assigned():
            logger.info(
                "Work order %s already assigned to technician %s, skipping",
                work_order.id, work_order.assigned_technician_id,
            )
            return None

        now = self._clock()
        selection = evaluate(work_order, technicians, workload.snapshot(), rule, now)

        if selection.best is not None:
            return await self._persist_success(
                item, work_order, rule, selection, technicians, mode, now, started
            )
        return await self._persist_miss(
            item, work_order, rule, selection, technicians, mode, now, started
        )

    # ─── Persistence ─────────────────────────────────────────────────

    async def _persist_success(
        self,
        item: AssignmentQueueItem,
        work_order: WorkOrder,
        rule: AssignmentRule,
        selection: Selection,
        technicians: list[Technician],
        mode: AssignmentMode,
        now: datetime,
        started: float,
    ) -> _Decision | None:
        best = selection.best
        assigned = await self._work_orders.assign_if_unassigned(
            work_order.id, best.technician_id, WorkOrderStatus.IN_PROGRESS
        )
        if not assigned:
            logger.info("Work order %s was assigned concurrently, skipping", work_order.id)
            return None

        if mode == AssignmentMode.QUEUE:
            await self._queue.mark_assigned(item.id, now)

        factors = self._decision_factors(item, work_order, selection, technicians, mode)
        factors.update(
            final_score=best.total_score,
            distance_km=best.distance_km,
            current_workload=best.current_workload,
        )
        elapsed = _elapsed_ms(started)
        await self._log.append(
            AssignmentLogEntry(
                id=None,
                work_order_id=work_order.id,
                rule_id=rule.id,
                status=AssignmentOutcome.SUCCESS,
                technician_id=best.technician_id,
                total_score=best.total_score,
                scores=best.scores,
                candidates_evaluated=len(selection.candidates),
                candidates_data=[c.snapshot() for c in selection.candidates[: self._log_top]],
                execution_time_ms=elapsed,
                decision_factors=factors,
                created_at=now,
            )
        )
        logger.info(
            "Work order %s → technician %s (%s), score %.2f, %d candidate(s)",
            work_order.id, best.technician_id, best.technician_name,
            best.total_score, len(selection.candidates),
        )

        return _Decision(
            result=AssignmentResult(
                work_order_id=work_order.id,
                success=True,
                outcome=AssignmentOutcome.SUCCESS,
                assigned_technician_id=best.technician_id,
                assigned_technician_name=best.technician_name,
                score=best.total_score,
                candidates_evaluated=len(selection.candidates),
                execution_time_ms=elapsed,
            ),
            work_order=work_order,
        )

    async def _persist_miss(
        self,
        item: AssignmentQueueItem,
        work_order: WorkOrder,
        rule: AssignmentRule,
        selection: Selection,
        technicians: list[Technician],
        mode: AssignmentMode,
        now: datetime,
        started: float,
    ) -> _Decision:
        reason = self._miss_reason(work_order, rule)
        factors = self._decision_factors(item, work_order, selection, technicians, mode)

        outcome = AssignmentOutcome.FALLBACK
        if mode == AssignmentMode.QUEUE:
            retry = plan_retry(
                item.retry_count,
                item.max_retries,
                now,
                delay=self._retry_delay,
                multiplier=self._backoff_multiplier,
            )
            factors["retry_count"] = retry.retry_count
            if retry.exhausted:
                outcome = AssignmentOutcome.FAILED
                await self._queue.mark_failed(
                    item.id, retry.retry_count, f"{reason} after max retries"
                )
            else:
                factors["next_retry_at"] = retry.next_retry_at.isoformat()
                await self._queue.reschedule(item.id, retry.retry_count, retry.next_retry_at)

        action_taken: FallbackAction | None = rule.fallback_action
        if outcome == AssignmentOutcome.FAILED and rule.fallback_action == FallbackAction.QUEUE:
            action_taken = None

        elapsed = _elapsed_ms(started)
        await self._log.append(
            AssignmentLogEntry(
                id=None,
                work_order_id=work_order.id,
                rule_id=rule.id,
                status=outcome,
                candidates_evaluated=len(selection.candidates),
                execution_time_ms=elapsed,
                decision_factors=factors,
                failure_reason=reason,
                fallback_action_taken=action_taken,
                created_at=now,
            )
        )
        logger.warning(
            "Work order %s: %s (%s, fallback=%s)",
            work_order.id, reason, outcome.value, rule.fallback_action.value,
        )

        return _Decision(
            result=AssignmentResult(
                work_order_id=work_order.id,
                success=False,
                outcome=outcome,
                error=reason,
                candidates_evaluated=len(selection.candidates),
                execution_time_ms=elapsed,
                fallback_action=rule.fallback_action,
            ),
            work_order=work_order,
            miss_reason=reason,
        )

    async def _dispatch_fallback(self, work_order: WorkOrder, rule: AssignmentRule, reason: str) -> None:
        """Fire-and-forget: dispatcher errors never change the item outcome."""
        if rule.fallback_action == FallbackAction.QUEUE:
            return
        try:
            await self._fallback.dispatch(rule.fallback_action, work_order, rule, reason)
        except Exception:
            logger.exception(
                "Fallback '%s' failed for work order %s",
                rule.fallback_action.value, work_order.id,
            )

    async def _record_rule_execution(self, rule: AssignmentRule) -> None:
        try:
            async with self._tx.savepoint():
                await self._rules.record_execution(rule.id, self._clock())
        except Exception:
            logger.exception("Could not record execution of rule %s", rule.id)

    # ─── Audit helpers ───────────────────────────────────────────────

    @staticmethod
    def _miss_reason(work_order: WorkOrder, rule: AssignmentRule) -> str:
        return rule.covers(work_order) or NO_CANDIDATE_REASON

    @staticmethod
    def _decision_factors(
        item: AssignmentQueueItem,
        work_order: WorkOrder,
        selection: Selection,
        technicians: list[Technician],
        mode: AssignmentMode,
    ) -> dict:
        return {
            "mode": mode.value,
            "work_order_number": work_order.work_order_number,
            "queue_priority": item.priority,
            "required_specialization": work_order.required_specialization,
            "technicians_considered": len(technicians),
            "excluded": [
                {"technician_id": e.technician_id, "reason": e.reason}
                for e in selection.excluded
            ],
        }
