"""Tests for the scoring policy — component scores and the weighted composite."""

import logging
from dataclasses import replace

import pytest

from app.domain.entities.work_order import ServiceCategory
from app.domain.policies.scoring import (
    availability_score,
    clamp,
    composite_score,
    proximity_score,
    score,
    specialization_score,
    workload_score,
)
from app.domain.value_objects.enums import ShiftStatus
from app.domain.value_objects.geo_point import GeoPoint
from app.domain.value_objects.scores import ComponentScores, ScoreWeights
from tests.factories import (
    BATTERY,
    NOW,
    make_rule,
    make_technician,
    make_work_order,
    off_shift,
    on_shift,
)

# ─── Availability ───────────────────────────────────────────────────


def test_availability_on_shift():
    tech = make_technician(shifts=[on_shift()])
    assert availability_score(tech, NOW) == 100


def test_availability_off_shift():
    tech = make_technician(shifts=[off_shift()])
    assert availability_score(tech, NOW) == 30


def test_availability_no_shift_data():
    assert availability_score(make_technician(), NOW) == 50


def test_availability_cancelled_shift_does_not_count():
    cancelled = replace(on_shift(), status=ShiftStatus.CANCELLED)
    tech = make_technician(shifts=[cancelled])
    assert availability_score(tech, NOW) == 30


# ─── Specialization ─────────────────────────────────────────────────


def test_specialization_match():
    tech = make_technician(specializations={"battery", "hvac"})
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    assert specialization_score(tech, wo) == 100


def test_specialization_mismatch():
    tech = make_technician(specializations={"tires"})
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    assert specialization_score(tech, wo) == 25


def test_specialization_category_without_requirement():
    general = ServiceCategory(id=3, name="Inspection")
    wo = make_work_order(service_category_id=3, service_category=general)
    assert specialization_score(make_technician(), wo) == 75


def test_specialization_no_category():
    assert specialization_score(make_technician(), make_work_order()) == 50


# ─── Proximity ──────────────────────────────────────────────────────


def test_proximity_half_kilometre_away():
    tech = make_technician(location=GeoPoint(0.0, 0.0))
    wo = make_work_order(customer_location=GeoPoint(0.0, 0.0045))
    candidate = score(wo, tech, 0, make_rule(max_distance_km=50), NOW)
    assert candidate.distance_km == pytest.approx(0.5, abs=0.01)
    assert candidate.scores.proximity == pytest.approx(99.0, abs=0.01)


def test_proximity_unknown_coordinates_is_neutral():
    candidate = score(make_work_order(), make_technician(), 0, make_rule(max_distance_km=10), NOW)
    assert candidate.scores.proximity == 50
    assert candidate.distance_km is None


def test_proximity_beyond_max_distance_is_zero():
    assert proximity_score(12.0, 10.0) == 0


def test_proximity_uses_default_range_without_rule_limit():
    assert proximity_score(25.0, None) == pytest.approx(50.0)
    assert proximity_score(80.0, None) == 0


# ─── Workload ───────────────────────────────────────────────────────


def test_workload_with_cap():
    assert workload_score(1, 4) == pytest.approx(75.0)


def test_workload_default_cap():
    assert workload_score(5, None) == pytest.approx(50.0)


def test_workload_over_cap_is_clamped():
    assert workload_score(14, None) == 0


# ─── Composite ──────────────────────────────────────────────────────


def test_composite_weighted_average():
    scores = ComponentScores(100, 100, 100, 100, 75)
    weights = ScoreWeights(30, 25, 20, 15, 10)
    assert composite_score(scores, weights) == pytest.approx(97.5)


def test_composite_single_factor():
    scores = ComponentScores(30, 100, 100, 100, 75)
    assert composite_score(scores, ScoreWeights(availability=1)) == pytest.approx(30.0)


def test_composite_zero_weights_scores_zero(caplog):
    scores = ComponentScores(100, 100, 100, 100, 75)
    with caplog.at_level(logging.WARNING):
        assert composite_score(scores, ScoreWeights()) == 0
    assert "weights are zero" in caplog.text


def test_weights_reject_negative():
    with pytest.raises(ValueError):
        ScoreWeights(availability=-1)


def test_clamp_bounds():
    assert clamp(-5) == 0
    assert clamp(150) == 100
    assert clamp(42.5) == 42.5


# ─── Full candidate ─────────────────────────────────────────────────


def test_score_builds_rounded_candidate():
    tech = make_technician(
        3,
        specializations={"battery"},
        shifts=[on_shift()],
        location=GeoPoint(0.0, 0.0),
        max_concurrent_orders=4,
    )
    wo = make_work_order(
        service_category_id=7,
        service_category=BATTERY,
        customer_location=GeoPoint(0.0, 0.0),
    )
    candidate = score(wo, tech, 0, make_rule(), NOW)

    assert candidate.technician_id == 3
    assert candidate.scores == ComponentScores(100, 100, 100, 100, 75)
    assert candidate.total_score == 97.5
    assert candidate.distance_km == 0.0
    assert candidate.reason == "Score: 98/100"


def test_score_is_pure():
    tech = make_technician(shifts=[on_shift()], location=GeoPoint(1.0, 1.0))
    wo = make_work_order(customer_location=GeoPoint(1.05, 1.0))
    first = score(wo, tech, 2, make_rule(), NOW)
    second = score(wo, tech, 2, make_rule(), NOW)
    assert first == second


def test_score_keeps_exact_composite_for_ranking():
    tech = make_technician(shifts=[on_shift()], max_concurrent_orders=7)
    candidate = score(make_work_order(), tech, 1, make_rule(), NOW)
    # one order out of seven gives a composite of 72.857142...
    assert candidate.total_score == round(candidate.exact_score, 2)
    assert candidate.exact_score != candidate.total_score
    assert "exact_score" not in candidate.snapshot()
