"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.notifications.webhook_dispatcher import (
    LoggingFallbackDispatcher,
    WebhookFallbackDispatcher,
)
from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import (
    SqlAssignmentLogRepository,
    SqlAssignmentQueueRepository,
    SqlAssignmentRuleRepository,
    SqlTechnicianRepository,
    SqlTransactionManager,
    SqlWorkloadRepository,
    SqlWorkOrderRepository,
)
from app.application.ports.fallback_port import FallbackDispatcher
from app.application.use_cases.auto_assign import AutoAssignUseCase
from app.application.use_cases.enqueue_work_order import EnqueueWorkOrderUseCase
from app.application.use_cases.manage_rules import ManageRulesUseCase
from app.config import settings

logger = logging.getLogger(__name__)

def build_fallback_dispatcher() -> FallbackDispatcher:
    if settings.fallback_webhook_url:
        logger.info("Using webhook for fallback dispatch")
        return WebhookFallbackDispatcher()
    return LoggingFallbackDispatcher()


# Singleton adapter (stateless)
_fallback_dispatcher = build_fallback_dispatcher()


def build_auto_assign_uc(session: AsyncSession) -> AutoAssignUseCase:
    """Shared by the HTTP dependency and the command-line trigger."""
    return AutoAssignUseCase(
        work_order_repo=SqlWorkOrderRepository(session),
        technician_repo=SqlTechnicianRepository(session),
        workload_repo=SqlWorkloadRepository(session),
        rule_repo=SqlAssignmentRuleRepository(session),
        queue_repo=SqlAssignmentQueueRepository(session),
        log_repo=SqlAssignmentLogRepository(session),
        fallback=_fallback_dispatcher,
        transactions=SqlTransactionManager(session),
        enabled=settings.auto_assignment_enabled,
        default_batch_size=settings.max_auto_assignments_per_run,
        retry_delay=timedelta(minutes=settings.retry_delay_minutes),
        backoff_multiplier=settings.backoff_multiplier,
        log_top_candidates=settings.log_top_candidates,
    )


def get_auto_assign_uc(session: AsyncSession = Depends(get_session)) -> AutoAssignUseCase:
    return build_auto_assign_uc(session)


def get_enqueue_uc(session: AsyncSession = Depends(get_session)) -> EnqueueWorkOrderUseCase:
    return EnqueueWorkOrderUseCase(
        work_order_repo=SqlWorkOrderRepository(session),
        queue_repo=SqlAssignmentQueueRepository(session),
        default_max_retries=settings.default_max_retries,
    )


def get_manage_rules_uc(session: AsyncSession = Depends(get_session)) -> ManageRulesUseCase:
    return ManageRulesUseCase(SqlAssignmentRuleRepository(session))


def get_log_repo(session: AsyncSession = Depends(get_session)) -> SqlAssignmentLogRepository:
    return SqlAssignmentLogRepository(session)
