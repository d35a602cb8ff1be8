"""Pytest configuration and shared fixtures."""

import pytest

from tests.factories import NOW, make_rule


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def rule():
    return make_rule()
