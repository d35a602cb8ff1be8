"""Tests for API request schemas and response serializers (no server, no database)."""

import pytest
from pydantic import ValidationError

from app.application.use_cases.auto_assign import AssignmentResult, BatchResult
from app.domain.value_objects.enums import AssignmentMode, AssignmentOutcome, FallbackAction
from app.infrastructure.api.routes_auto_assign import serialize_batch
from app.infrastructure.api.routes_rules import RuleCreate, RuleWeights, _rule_to_dict
from tests.factories import make_rule


def test_rule_weights_defaults():
    weights = RuleWeights()
    assert weights.model_dump() == {
        "availability": 30,
        "specialization": 25,
        "proximity": 20,
        "workload": 15,
        "performance": 10,
    }


def test_rule_weights_reject_all_zero():
    with pytest.raises(ValidationError):
        RuleWeights(availability=0, specialization=0, proximity=0, workload=0, performance=0)


def test_rule_weights_reject_negative():
    with pytest.raises(ValidationError):
        RuleWeights(proximity=-5)


def test_rule_create_parses_fallback_action():
    body = RuleCreate(name="Escalate", fallback_action="escalate", priority_levels=["urgent"])
    assert body.fallback_action == FallbackAction.ESCALATE
    assert body.respect_max_concurrent_orders is True


def test_rule_to_dict():
    data = _rule_to_dict(make_rule(max_distance_km=25.0))
    assert data["weights"]["availability"] == 30
    assert data["fallback_action"] == "queue"
    assert data["last_executed_at"] is None


def test_serialize_batch():
    batch = BatchResult(
        mode=AssignmentMode.QUEUE,
        processed=1,
        failed=1,
        skipped=2,
        message="Auto-assignment completed",
        rule_id=1,
        results=[
            AssignmentResult(
                work_order_id=100,
                success=False,
                outcome=AssignmentOutcome.FALLBACK,
                error="No suitable technician found",
                fallback_action=FallbackAction.QUEUE,
            )
        ],
    )
    data = serialize_batch(batch)

    assert data["mode"] == "queue"
    assert data["skipped"] == 2
    assert data["results"][0]["outcome"] == "fallback"
    assert data["results"][0]["fallback_action"] == "queue"
