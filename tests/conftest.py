"""
Shared pytest fixtures for natcal tests.

This module provides common fixtures used across all test files, including:
- An isolated natcal home for every test
- Reference instants in a few timezones
- Time freezing utilities
- A stub rule backend
"""

import pytest
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from freezegun import freeze_time


@pytest.fixture(autouse=True)
def natcal_home(tmp_path, monkeypatch):
    """
    Points $NATCAL_HOME at a temporary directory so that log files and
    config files written during a test never touch the real home.
    """
    home = tmp_path / "natcal-home"
    monkeypatch.setenv("NATCAL_HOME", str(home))
    return home


@pytest.fixture
def reference():
    """
    Friday 2024-03-15 12:00 UTC, the reference instant used by most tests.
    """
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def buenos_aires():
    return ZoneInfo("America/Argentina/Buenos_Aires")


@pytest.fixture
def ba_reference(buenos_aires):
    """
    Thursday 2025-03-06 10:30 in Buenos Aires (UTC-3, no DST).
    """
    return datetime(2025, 3, 6, 10, 30, tzinfo=buenos_aires)


@pytest.fixture
def new_york():
    return ZoneInfo("America/New_York")


@pytest.fixture
def frozen_time():
    """
    Provides a freezegun context that freezes time to a default datetime.

    Time is frozen to 2031-07-01 08:00:00, far from any reference used in
    the tests, so a result that depends on the clock rather than on the
    supplied reference shows up as a failure.
    """
    with freeze_time("2031-07-01 08:00:00") as frozen:
        yield frozen


class StubRuleBackend:
    """
    Records the arguments of `build` and returns canned answers from
    `next_after`.
    """

    def __init__(self, answer=None):
        self.answer = answer
        self.built = []
        self.asked = []

    def build(self, frequency, interval, weekdays, dtstart):
        rule = (frequency, interval, frozenset(weekdays), dtstart)
        self.built.append(rule)
        return rule

    def next_after(self, rule, instant):
        self.asked.append((rule, instant))
        return self.answer


@pytest.fixture
def stub_backend():
    return StubRuleBackend
