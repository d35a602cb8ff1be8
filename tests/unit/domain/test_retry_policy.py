"""Tests for the queue retry policy."""

from datetime import timedelta

from app.domain.policies.retry import DEFAULT_RETRY_DELAY, plan_retry
from tests.factories import NOW


def test_first_miss_reschedules_after_fifteen_minutes():
    decision = plan_retry(0, 3, NOW)
    assert not decision.exhausted
    assert decision.retry_count == 1
    assert decision.next_retry_at == NOW + timedelta(minutes=15)


def test_exhausted_on_last_attempt():
    decision = plan_retry(2, 3, NOW)
    assert decision.exhausted
    assert decision.retry_count == 3
    assert decision.next_retry_at is None


def test_single_attempt_budget_exhausts_immediately():
    assert plan_retry(0, 1, NOW).exhausted


def test_fixed_delay_by_default():
    assert plan_retry(1, 5, NOW).next_retry_at == NOW + DEFAULT_RETRY_DELAY


def test_backoff_multiplier_grows_delay():
    decision = plan_retry(2, 5, NOW, delay=timedelta(minutes=10), multiplier=2.0)
    assert decision.retry_count == 3
    assert decision.next_retry_at == NOW + timedelta(minutes=40)
