"""ManageRulesUseCase — create, edit, toggle and delete assignment rules."""

from __future__ import annotations

import logging
from dataclasses import replace

from app.application.ports.rule_repo import AssignmentRuleRepository
from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.value_objects.scores import ScoreWeights

logger = logging.getLogger(__name__)


class RuleNotFoundError(LookupError):
    def __init__(self, rule_id: int):
        super().__init__(f"Assignment rule {rule_id} not found")
        self.rule_id = rule_id


def validate_weights(weights: ScoreWeights) -> None:
    """Reject weight vectors that cannot produce a meaningful composite score."""
    if weights.total <= 0:
        raise ValueError("At least one assignment weight must be greater than zero")


class ManageRulesUseCase:
    def __init__(self, rule_repo: AssignmentRuleRepository):
        self._rules = rule_repo

    async def list_rules(self) -> list[AssignmentRule]:
        rules = await self._rules.get_all()
        return sorted(rules, key=lambda r: (-r.priority, r.id or 0))

    async def get_rule(self, rule_id: int) -> AssignmentRule:
        rule = await self._rules.get_by_id(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    async def create_rule(self, rule: AssignmentRule) -> AssignmentRule:
        validate_weights(rule.weights)
        saved = await self._rules.save(rule)
        logger.info("Created assignment rule %s '%s' (priority %d)", saved.id, saved.name, saved.priority)
        return saved

    async def update_rule(self, rule_id: int, **changes) -> AssignmentRule:
        """Apply a partial update. Unknown fields raise TypeError."""
        current = await self.get_rule(rule_id)
        updated = replace(current, **changes)
        validate_weights(updated.weights)
        saved = await self._rules.update(updated)
        logger.info("Updated assignment rule %s: %s", rule_id, sorted(changes))
        return saved

    async def set_active(self, rule_id: int, is_active: bool) -> AssignmentRule:
        return await self.update_rule(rule_id, is_active=is_active)

    async def delete_rule(self, rule_id: int) -> None:
        if not await self._rules.delete(rule_id):
            raise RuleNotFoundError(rule_id)
        logger.info("Deleted assignment rule %s", rule_id)
