"""Health check endpoint — database reachability plus assignment readiness."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.adapters.persistence.models import AssignmentQueueModel, AssignmentRuleModel
from app.config import settings
from app.domain.value_objects.enums import QueueStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Report whether a batch run could do anything right now."""
    pending = active_rules = None
    try:
        pending = await session.scalar(
            select(func.count(AssignmentQueueModel.id)).where(
                AssignmentQueueModel.status == QueueStatus.PENDING.value
            )
        )
        active_rules = await session.scalar(
            select(func.count(AssignmentRuleModel.id)).where(AssignmentRuleModel.is_active.is_(True))
        )
        db_status = "connected"
    except Exception as e:
        logger.warning("Health check query failed: %s", e)
        db_status = f"error: {e}"

    ready = db_status == "connected" and settings.auto_assignment_enabled and bool(active_rules)
    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "auto_assignment_enabled": settings.auto_assignment_enabled,
        "active_rules": active_rules,
        "pending_queue_items": pending,
        "ready": ready,
    }
