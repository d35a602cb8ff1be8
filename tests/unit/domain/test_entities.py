"""Tests for domain entities and the workload ledger."""

from datetime import timedelta

from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.entities.candidate import AssignmentCandidate
from app.domain.entities.queue_item import AssignmentQueueItem
from app.domain.entities.technician import Shift
from app.domain.value_objects.enums import QueueStatus, ShiftStatus
from app.domain.value_objects.scores import ComponentScores, ScoreWeights
from app.domain.value_objects.workload import WorkloadLedger
from tests.factories import BATTERY, NOW, make_technician, make_work_order


def test_work_order_required_specialization():
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    assert wo.required_specialization == "battery"
    assert make_work_order().required_specialization is None


def test_work_order_is_assigned():
    assert not make_work_order().is_assigned()
    assert make_work_order(assigned_technician_id=4).is_assigned()


def test_shift_boundaries_inclusive():
    shift = Shift(start=NOW, end=NOW + timedelta(hours=8))
    assert shift.covers(NOW)
    assert shift.covers(NOW + timedelta(hours=8))
    assert not shift.covers(NOW - timedelta(seconds=1))


def test_completed_shift_is_not_active():
    shift = Shift(start=NOW, end=NOW + timedelta(hours=1), status=ShiftStatus.COMPLETED)
    assert not shift.covers(NOW)


def test_technician_capacity_zero_is_unset():
    assert make_technician(max_concurrent_orders=0).capacity() is None
    assert make_technician(max_concurrent_orders=4).capacity() == 4


def test_rule_covers_everything_without_allow_lists():
    rule = AssignmentRule(id=1, name="All", weights=ScoreWeights(availability=1))
    assert rule.covers(make_work_order(priority="low", service_category_id=3)) is None


def test_queue_item_due():
    item = AssignmentQueueItem(id=1, work_order_id=10)
    assert item.is_due(NOW)
    item.next_retry_at = NOW + timedelta(minutes=15)
    assert not item.is_due(NOW)
    assert item.is_due(NOW + timedelta(minutes=15))


def test_queue_item_not_due_when_finished():
    item = AssignmentQueueItem(id=1, work_order_id=10, status=QueueStatus.ASSIGNED)
    assert not item.is_due(NOW)


def test_candidate_snapshot_keys():
    candidate = AssignmentCandidate(
        technician_id=3,
        technician_name="Tech 3",
        scores=ComponentScores(100, 25, 50, 80, 75),
        total_score=70.25,
        current_workload=2,
        distance_km=4.2,
        reason="Score: 70/100",
    )
    snap = candidate.snapshot()
    assert snap["technician_id"] == 3
    assert snap["availability_score"] == 100
    assert snap["specialization_score"] == 25
    assert snap["performance_score"] == 75
    assert snap["distance_km"] == 4.2
    assert snap["current_workload"] == 2


def test_workload_ledger_overlay():
    ledger = WorkloadLedger({1: 2})
    ledger.record_assignment(1)
    ledger.record_assignment(5)
    assert ledger.count(1) == 3
    assert ledger.count(5) == 1
    assert ledger.count(9) == 0
    assert ledger.assigned_in_batch(1) == 1
    assert ledger.snapshot() == {1: 3, 5: 1}


def test_score_weights_total():
    weights = ScoreWeights(30, 25, 20, 15, 10)
    assert weights.total == 100
    assert weights.as_dict()["proximity"] == 20
