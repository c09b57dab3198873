"""
Tests for finding occurrences of recurring records.
"""

import pytest
from datetime import datetime, timedelta, timezone

from natcal import parse
from natcal.date_extract import TimeRange
from natcal.item import UpsertRecord
from natcal.occurrences import next_occurrence, occurrence_on
from natcal.recurrence import WORKDAYS, Frequency


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.unit
class TestNextOccurrence:
    def test_weekday_rule(self, reference):
        record = parse(reference, "standup today at 9 every weekday")
        # Friday 12:00 -> Monday 09:00
        assert next_occurrence(record, reference) == utc(2024, 3, 18, 9, 0)

    def test_single_item(self, reference):
        record = parse(reference, "dentist tomorrow at 10")
        assert next_occurrence(record, reference) == utc(2024, 3, 16, 10, 0)
        assert next_occurrence(record, utc(2024, 3, 17)) is None

    def test_unscheduled(self, reference):
        assert next_occurrence(UpsertRecord(summary="x"), reference) is None

    def test_local_weekday(self, ba_reference):
        # 22:00 in Buenos Aires is already the next day in UTC
        record = parse(ba_reference, "call home today at 22 every Thu")
        found = next_occurrence(record, ba_reference + timedelta(days=1))
        assert found == utc(2025, 3, 14, 1, 0)

    def test_uses_backend(self, reference, stub_backend):
        backend = stub_backend(answer=utc(2030, 1, 1, 9, 0))
        record = parse(reference, "standup today at 9 every weekday")
        assert next_occurrence(record, reference, backend) == utc(2030, 1, 1, 9, 0)
        (frequency, interval, weekdays, dtstart), = backend.built
        assert (frequency, interval, weekdays) == (Frequency.WEEKLY, 1, WORKDAYS)
        assert dtstart == utc(2024, 3, 15, 9, 0)
        assert backend.asked[0][1] == reference

    def test_backend_with_no_answer(self, reference, stub_backend):
        record = parse(reference, "standup today at 9 every weekday")
        assert next_occurrence(record, reference, stub_backend()) is None


@pytest.mark.unit
class TestOccurrenceOn:
    def test_keeps_duration(self, reference):
        record = parse(reference, "standup today at 9-9:15 every weekday")
        monday = datetime(2024, 3, 18, 15, 0, tzinfo=timezone.utc)
        assert occurrence_on(record, monday) == TimeRange(
            utc(2024, 3, 18, 9, 0), utc(2024, 3, 18, 9, 15)
        )

    def test_default_duration(self, reference):
        record = parse(reference, "@reminder pills today at 8 every day")
        day = utc(2024, 3, 20)
        assert occurrence_on(record, day) == TimeRange(
            utc(2024, 3, 20, 8, 0), utc(2024, 3, 20, 8, 15)
        )

    def test_no_occurrence_that_day(self, reference):
        record = parse(reference, "standup today at 9 every weekday")
        saturday = utc(2024, 3, 16, 12, 0)
        assert occurrence_on(record, saturday) is None

    def test_start_day_itself(self, reference):
        record = parse(reference, "standup today at 9 every weekday")
        assert occurrence_on(record, reference).start == utc(2024, 3, 15, 9, 0)
