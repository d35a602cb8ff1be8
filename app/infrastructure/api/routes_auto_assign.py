"""Auto-assignment endpoints — run a batch, assign directly, enqueue, audit log."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import SqlAssignmentLogRepository
from app.application.use_cases.auto_assign import (
    AssignmentResult,
    AutoAssignUseCase,
    BatchResult,
)
from app.application.use_cases.enqueue_work_order import (
    EnqueueWorkOrderUseCase,
    WorkOrderAlreadyAssignedError,
)
from app.domain.entities.assignment_log import AssignmentLogEntry
from app.infrastructure.api.dependencies import (
    get_auto_assign_uc,
    get_enqueue_uc,
    get_log_repo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auto-assign", tags=["auto-assignment"])


class EnqueueRequest(BaseModel):
    work_order_id: int
    priority: int = 0
    max_retries: int | None = Field(default=None, ge=1)


@router.post("/run")
async def run_batch(
    max_items: int | None = Query(default=None, ge=1),
    uc: AutoAssignUseCase = Depends(get_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
):
    """Process due queue items (queue mode)."""
    try:
        batch = await uc.run_batch(max_items)
        await session.commit()
    except Exception as e:
        logger.exception("Auto-assignment batch failed")
        raise HTTPException(status_code=500, detail=str(e))
    return serialize_batch(batch)


@router.post("/work-orders/{work_order_id}")
async def assign_work_order(
    work_order_id: int,
    uc: AutoAssignUseCase = Depends(get_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
):
    """Assign a single work order now (direct mode, no queue bookkeeping)."""
    try:
        batch = await uc.assign_work_orders([work_order_id])
        await session.commit()
    except Exception as e:
        logger.exception("Direct auto-assignment failed for work order %s", work_order_id)
        raise HTTPException(status_code=500, detail=str(e))

    if batch.skipped:
        return {
            "success": False,
            "work_order_id": work_order_id,
            "message": "Work order is already assigned",
        }
    if not batch.results:
        return {"success": False, "work_order_id": work_order_id, "message": batch.message}
    return {**_result_to_dict(batch.results[0]), "rule_id": batch.rule_id}


@router.post("/queue", status_code=201)
async def enqueue(
    body: EnqueueRequest,
    uc: EnqueueWorkOrderUseCase = Depends(get_enqueue_uc),
    session: AsyncSession = Depends(get_session),
):
    """Request auto-assignment for a work order."""
    try:
        item = await uc.execute(body.work_order_id, body.priority, body.max_retries)
    except WorkOrderAlreadyAssignedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    await session.commit()

    return {
        "id": item.id,
        "work_order_id": item.work_order_id,
        "priority": item.priority,
        "status": item.status.value,
        "retry_count": item.retry_count,
        "max_retries": item.max_retries,
        "added_at": item.added_at.isoformat() if item.added_at else None,
        "next_retry_at": item.next_retry_at.isoformat() if item.next_retry_at else None,
    }


@router.get("/logs")
async def list_logs(
    work_order_id: int | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    log_repo: SqlAssignmentLogRepository = Depends(get_log_repo),
):
    """Audit trail of assignment decisions, newest first."""
    entries = await log_repo.list_recent(work_order_id=work_order_id, limit=limit)
    return {"total": len(entries), "logs": [_log_to_dict(e) for e in entries]}


def serialize_batch(batch: BatchResult) -> dict:
    return {
        "message": batch.message,
        "mode": batch.mode.value,
        "rule_id": batch.rule_id,
        "processed": batch.processed,
        "succeeded": batch.succeeded,
        "failed": batch.failed,
        "skipped": batch.skipped,
        "execution_time_ms": batch.execution_time_ms,
        "results": [_result_to_dict(r) for r in batch.results],
    }


def _result_to_dict(r: AssignmentResult) -> dict:
    return {
        "work_order_id": r.work_order_id,
        "success": r.success,
        "outcome": r.outcome.value if r.outcome else None,
        "assigned_technician_id": r.assigned_technician_id,
        "assigned_technician_name": r.assigned_technician_name,
        "score": r.score,
        "error": r.error,
        "candidates_evaluated": r.candidates_evaluated,
        "execution_time_ms": r.execution_time_ms,
        "fallback_action": r.fallback_action.value if r.fallback_action else None,
    }


def _log_to_dict(e: AssignmentLogEntry) -> dict:
    return {
        "id": e.id,
        "work_order_id": e.work_order_id,
        "rule_id": e.rule_id,
        "status": e.status.value,
        "assigned_technician_id": e.technician_id,
        "assignment_score": e.total_score,
        "scores": e.scores.as_dict() if e.scores else None,
        "candidates_evaluated": e.candidates_evaluated,
        "candidates_data": e.candidates_data,
        "execution_time_ms": e.execution_time_ms,
        "decision_factors": e.decision_factors,
        "failure_reason": e.failure_reason,
        "fallback_action_taken": e.fallback_action_taken.value if e.fallback_action_taken else None,
        "assigned_at": e.created_at.isoformat() if e.created_at else None,
    }
