"""
Compose a calendar record from a typed entry, and write a record back
out as an entry.

    >>> compose(reference, "%done @block Fly tomorrow at 9")

runs the extractors in a fixed order (date and time, recurrence, status,
type, tags), each one taking the text the previous one left behind. What
remains at the end is the summary.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from natcal.attributes import (
    ItemStatus,
    ItemType,
    TagSet,
    extract_status,
    extract_tags,
    extract_type,
)
from natcal.date_extract import TimeRange, extract_time_range, time_range_to_input
from natcal.errors import MissingDate
from natcal.recurrence import RecurrenceRule, extract_recurrence, render_recurrence
from natcal.shared import collapse_spaces, require_aware, timedelta_str_to_seconds

DEFAULT_DURATIONS = {
    ItemType.EVENT: timedelta(hours=1),
    ItemType.BLOCK: timedelta(hours=1),
    ItemType.REMINDER: timedelta(minutes=15),
    ItemType.TASK: timedelta(minutes=30),
}


@dataclass(frozen=True)
class UpsertRecord:
    summary: str
    time_range: TimeRange | None = None
    recurrence: RecurrenceRule | None = None
    status: ItemStatus = ItemStatus.TODO
    item_type: ItemType = ItemType.EVENT
    tags: TagSet = field(default_factory=TagSet)
    urgency: int = 0
    load: int = 0
    importance: int = 0
    postponed: int = 0
    original_text: str = ""


# (field, extractor) in the order they see the text
EXTRACTORS = (
    ("time_range", extract_time_range),
    ("recurrence", extract_recurrence),
    ("status", extract_status),
    ("item_type", extract_type),
    ("tags", extract_tags),
)


def default_duration(
    item_type: ItemType, durations: dict[str, str] | None = None
) -> timedelta:
    """
    The length of an item of `item_type` entered without an end time.

    `durations` maps type names ("event", "task", ...) to strings such as
    "1h30m" and overrides the built-in table.
    """
    if durations and durations.get(item_type.value):
        ok, seconds = timedelta_str_to_seconds(durations[item_type.value])
        if not ok:
            raise ValueError(seconds)
        return timedelta(seconds=seconds)
    return DEFAULT_DURATIONS[item_type]


def end_or_default(
    record: UpsertRecord, durations: dict[str, str] | None = None
) -> datetime | None:
    if record.time_range is None:
        return None
    if record.time_range.end is not None:
        return record.time_range.end
    return record.time_range.start + default_duration(record.item_type, durations)


def compose(reference: datetime, raw_text: str) -> tuple[UpsertRecord, str]:
    """
    Run every extractor over `raw_text`.

    Returns (record, residual). The record's summary is the trimmed
    residual. Never raises for a missing date; see `parse`.
    """
    require_aware(reference)
    values = {}
    text = raw_text
    for name, extractor in EXTRACTORS:
        values[name], text = extractor(reference, text)
    residual = collapse_spaces(text)
    record = UpsertRecord(summary=residual, original_text=raw_text, **values)
    return record, residual


def parse(reference: datetime, raw_text: str) -> UpsertRecord:
    record, _ = compose(reference, raw_text)
    if record.time_range is None and record.item_type.requires_date:
        raise MissingDate(record.summary, record.item_type)
    return record


def render(
    record: UpsertRecord,
    reference: datetime,
    durations: dict[str, str] | None = None,
) -> str:
    """
    Write `record` as an entry that `parse` reads back to the same fields.

    Raises UnrenderableRecurrence when the recurrence has no phrase.
    """
    parts = [record.item_type.to_input(), record.status.to_input(), record.summary]
    if record.time_range is not None:
        parts.append(
            time_range_to_input(
                reference, record.time_range.start, end_or_default(record, durations)
            )
        )
    if record.recurrence is not None:
        parts.append(render_recurrence(record.recurrence))
    if record.tags:
        parts.append(record.tags.to_input())
    return collapse_spaces(" ".join(parts))
