"""Webhook fallback dispatcher — implements FallbackDispatcher over HTTP."""

from __future__ import annotations

import logging

import httpx

from app.application.ports.fallback_port import FallbackDispatcher
from app.config import settings
from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.work_order import WorkOrder
from app.domain.value_objects.enums import FallbackAction

logger = logging.getLogger(__name__)


def build_payload(
    action: FallbackAction,
    work_order: WorkOrder,
    rule: AssignmentRule,
    reason: str,
) -> dict:
    return {
        "event": "auto_assignment.fallback",
        "action": action.value,
        "reason": reason,
        "work_order": {
            "id": work_order.id,
            "work_order_number": work_order.work_order_number,
            "priority": work_order.priority,
            "status": work_order.status.value,
            "location_id": work_order.location_id,
        },
        "rule": {"id": rule.id, "name": rule.name},
        "recipient_user_id": rule.fallback_user_id,
    }


class WebhookFallbackDispatcher(FallbackDispatcher):
    """POST the fallback event to an escalation/notification webhook.

    Delivery is best effort: HTTP errors are raised to the caller, which
    logs them without failing the assignment run.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.fallback_webhook_url
        self._timeout = timeout if timeout is not None else settings.fallback_webhook_timeout
        self._transport = transport

    async def dispatch(
        self,
        action: FallbackAction,
        work_order: WorkOrder,
        rule: AssignmentRule,
        reason: str,
    ) -> None:
        payload = build_payload(action, work_order, rule, reason)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url, json=payload)
            response.raise_for_status()
        logger.info(
            "Fallback '%s' sent for work order %s (HTTP %d)",
            action.value, work_order.id, response.status_code,
        )


class LoggingFallbackDispatcher(FallbackDispatcher):
    """Used when no webhook is configured: the fallback is only logged."""

    async def dispatch(
        self,
        action: FallbackAction,
        work_order: WorkOrder,
        rule: AssignmentRule,
        reason: str,
    ) -> None:
        logger.warning(
            "Fallback '%s' for work order %s (rule %s, notify user %s): %s",
            action.value, work_order.id, rule.id, rule.fallback_user_id, reason,
        )
