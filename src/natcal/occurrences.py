from datetime import datetime, time, timedelta, timezone, tzinfo

from natcal.date_extract import TimeRange
from natcal.item import UpsertRecord, default_duration
from natcal.rrule_backend import DateutilRuleBackend, RuleBackend
from natcal.shared import require_aware


def _rule_for(record: UpsertRecord, zone: tzinfo, backend: RuleBackend):
    # weekdays are matched on the local wall clock
    dtstart = record.time_range.start.astimezone(zone)
    rec = record.recurrence
    return backend.build(rec.frequency, rec.interval, rec.by_weekday, dtstart)


def next_occurrence(
    record: UpsertRecord,
    after: datetime,
    backend: RuleBackend | None = None,
) -> datetime | None:
    """
    The first start strictly after `after`, in UTC.

    A record without a recurrence has at most its own start; a record
    without a time range has none.
    """
    require_aware(after)
    if record.time_range is None:
        return None
    if record.recurrence is None:
        start = record.time_range.start
        return start if start > after else None
    backend = backend or DateutilRuleBackend()
    rule = _rule_for(record, after.tzinfo, backend)
    found = backend.next_after(rule, after)
    return found.astimezone(timezone.utc) if found is not None else None


def occurrence_on(
    record: UpsertRecord,
    day_reference: datetime,
    durations: dict[str, str] | None = None,
    backend: RuleBackend | None = None,
) -> TimeRange | None:
    """
    The occurrence of `record` that starts on the local day of
    `day_reference`, keeping the record's duration.
    """
    require_aware(day_reference)
    if record.time_range is None:
        return None
    zone = day_reference.tzinfo
    length = record.time_range.duration
    if length is None:
        length = default_duration(record.item_type, durations)
    midnight = datetime.combine(day_reference.date(), time(0, 0), tzinfo=zone)
    start = next_occurrence(record, midnight - timedelta(microseconds=1), backend)
    if start is None or start.astimezone(zone).date() != day_reference.date():
        return None
    return TimeRange(start, start + length)
