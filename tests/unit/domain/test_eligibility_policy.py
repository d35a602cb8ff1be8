"""Tests for the eligibility filters applied before scoring."""

from app.domain.entities.work_order import ServiceCategory
from app.domain.policies.eligibility import exclusion_reason, filter_eligible
from app.domain.value_objects.enums import TechnicianStatus
from app.domain.value_objects.geo_point import GeoPoint
from tests.factories import BATTERY, make_rule, make_technician, make_work_order


def test_active_technician_is_eligible():
    assert exclusion_reason(make_work_order(), make_technician(), 0, make_rule()) is None


def test_inactive_technician_excluded():
    tech = make_technician(status=TechnicianStatus.INACTIVE)
    assert exclusion_reason(make_work_order(), tech, 0, make_rule()) == "Technician is not active"


def test_at_capacity_excluded():
    tech = make_technician(max_concurrent_orders=3, shifts=[])
    reason = exclusion_reason(make_work_order(), tech, 3, make_rule())
    assert reason == "At capacity (3/3)"


def test_capacity_ignored_when_rule_does_not_respect_it():
    tech = make_technician(max_concurrent_orders=3)
    rule = make_rule(respect_max_concurrent_orders=False)
    assert exclusion_reason(make_work_order(), tech, 5, rule) is None


def test_zero_capacity_means_unlimited():
    tech = make_technician(max_concurrent_orders=0)
    assert exclusion_reason(make_work_order(), tech, 20, make_rule()) is None


def test_missing_specialization_excluded_when_required():
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    tech = make_technician(specializations={"tires"})
    rule = make_rule(require_specialization_match=True)
    assert exclusion_reason(wo, tech, 0, rule) == "Missing specialization 'battery'"


def test_specialization_not_enforced_without_flag():
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    tech = make_technician(specializations={"tires"})
    assert exclusion_reason(wo, tech, 0, make_rule()) is None


def test_specialization_flag_without_requirement_passes():
    general = ServiceCategory(id=3, name="Inspection")
    wo = make_work_order(service_category_id=3, service_category=general)
    rule = make_rule(require_specialization_match=True)
    assert exclusion_reason(wo, make_technician(), 0, rule) is None


def test_location_allow_list():
    rule = make_rule(allowed_locations=[1, 2])
    inside = make_technician(1, location_id=2)
    outside = make_technician(2, location_id=9)
    assert exclusion_reason(make_work_order(), inside, 0, rule) is None
    assert "not allowed" in exclusion_reason(make_work_order(), outside, 0, rule)


def test_too_far_excluded():
    wo = make_work_order(customer_location=GeoPoint(0.0, 0.0))
    tech = make_technician(location=GeoPoint(0.0, 0.5))  # ~55.6 km
    reason = exclusion_reason(wo, tech, 0, make_rule(max_distance_km=50))
    assert reason.startswith("Too far")


def test_unknown_distance_not_excluded():
    wo = make_work_order(customer_location=GeoPoint(0.0, 0.0))
    tech = make_technician(location=None)
    assert exclusion_reason(wo, tech, 0, make_rule(max_distance_km=1)) is None


def test_filters_apply_in_order():
    """An inactive technician at capacity reports the first failed filter."""
    tech = make_technician(status=TechnicianStatus.INACTIVE, max_concurrent_orders=1)
    assert exclusion_reason(make_work_order(), tech, 4, make_rule()) == "Technician is not active"


def test_filter_eligible_splits_pool():
    techs = [
        make_technician(1, max_concurrent_orders=3),
        make_technician(2, max_concurrent_orders=3),
        make_technician(3, status=TechnicianStatus.INACTIVE),
    ]
    eligible, excluded = filter_eligible(make_work_order(), techs, {1: 3, 2: 1}, make_rule())
    assert [t.id for t in eligible] == [2]
    assert [e.technician_id for e in excluded] == [1, 3]


def test_rule_not_covering_category_excludes_everyone():
    rule = make_rule(allowed_service_categories=[1])
    wo = make_work_order(service_category_id=7, service_category=BATTERY)
    eligible, excluded = filter_eligible(wo, [make_technician(1), make_technician(2)], {}, rule)
    assert eligible == []
    assert {e.reason for e in excluded} == {"Service category 7 not covered by rule"}


def test_rule_not_covering_priority_excludes_everyone():
    rule = make_rule(priority_levels=["urgent"])
    wo = make_work_order(priority="low")
    eligible, excluded = filter_eligible(wo, [make_technician(1)], {}, rule)
    assert eligible == []
    assert excluded[0].reason == "Priority 'low' not covered by rule"
