"""
Convert records to and from iCalendar components.

Tasks become VTODO components; events, blocks and reminders become
VEVENT. The fields iCalendar has no standard place for are written as
X- properties (see `ComponentProp`), and missing or malformed values are
read back as the record defaults.
"""

from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum

from icalendar import Calendar, Event, Todo, vRecur

from natcal.attributes import ItemStatus, ItemType, TagSet
from natcal.date_extract import TimeRange
from natcal.errors import MissingDate, ParseError
from natcal.item import UpsertRecord, end_or_default
from natcal.rrule_backend import rrule_body_to_rule, rule_to_rrule_body
from natcal.shared import localize, log_msg

PRODID = "-//natcal//natcal//EN"


class ComponentProp(str, Enum):
    TYPE = "X-TYPE"
    STATUS = "X-STATUS"
    TAG = "X-TAG"
    URGENCY = "X-URGENCY"
    LOAD = "X-LOAD"
    IMPORTANCE = "X-IMPORTANCE"
    POSTPONED = "X-POSTPONED"
    ORIGINAL_TEXT = "X-ORIGINAL-TEXT"


NUMERIC_PROPS = {
    "urgency": ComponentProp.URGENCY,
    "load": ComponentProp.LOAD,
    "importance": ComponentProp.IMPORTANCE,
    "postponed": ComponentProp.POSTPONED,
}

# status -> (STATUS, PERCENT-COMPLETE) for VTODO
TODO_STATUS = {
    ItemStatus.BACKLOG: ("NEEDS-ACTION", 0),
    ItemStatus.TODO: ("NEEDS-ACTION", 0),
    ItemStatus.IN_PROGRESS: ("IN-PROCESS", 50),
    ItemStatus.DONE: ("COMPLETED", 100),
}

STATUS_FROM_TODO = {
    "COMPLETED": ItemStatus.DONE,
    "IN-PROCESS": ItemStatus.IN_PROGRESS,
}


def record_to_component(
    record: UpsertRecord,
    uid: str,
    durations: dict[str, str] | None = None,
    stamp: datetime | None = None,
):
    """
    Build the VEVENT or VTODO for `record`.

    Raises MissingDate when a record that is not a task has no time range.
    """
    is_task = record.item_type == ItemType.TASK
    if record.time_range is None and not is_task:
        raise MissingDate(record.summary, record.item_type)

    component = Todo() if is_task else Event()
    component.add("uid", uid)
    component.add("summary", record.summary)
    if stamp is not None:
        component.add("dtstamp", stamp.astimezone(timezone.utc))

    if record.time_range is not None:
        component.add("dtstart", record.time_range.start)
        end_key = "due" if is_task else "dtend"
        component.add(end_key, end_or_default(record, durations))

    if record.recurrence is not None:
        component.add("rrule", vRecur.from_ical(rule_to_rrule_body(record.recurrence)))

    if is_task:
        status, percent = TODO_STATUS[record.status]
        component.add("status", status)
        component.add("percent-complete", percent)

    component.add(ComponentProp.TYPE.value, record.item_type.value)
    component.add(ComponentProp.STATUS.value, record.status.value)
    for name, prop in NUMERIC_PROPS.items():
        component.add(prop.value, str(getattr(record, name)))
    if record.tags:
        component.add(ComponentProp.TAG.value, record.tags.to_property())
        component.add("categories", list(record.tags))
    if record.original_text:
        component.add(ComponentProp.ORIGINAL_TEXT.value, record.original_text)
    return component


def record_to_ical(
    record: UpsertRecord,
    uid: str,
    durations: dict[str, str] | None = None,
    stamp: datetime | None = None,
) -> str:
    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add_component(record_to_component(record, uid, durations, stamp))
    return cal.to_ical().decode("utf-8")


# ─── Reading components ─────────────────────────────────────


def _instant(value, zone: tzinfo) -> datetime:
    """DTSTART/DTEND/DUE value -> aware UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # floating time
            return localize(value.date(), value.time(), zone)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return localize(value, time(0, 0), zone)
    raise ParseError(f"not a date or datetime: {value!r}")


def _text(component, prop: ComponentProp) -> str | None:
    value = component.get(prop.value)
    if value is None:
        return None
    return str(value).strip()


def _int(component, prop: ComponentProp) -> int:
    value = _text(component, prop)
    if value is None:
        return 0
    try:
        return int(value)
    except ValueError:
        log_msg(f"ignored {prop.value}:{value!r}, expected an integer")
        return 0


def _tags(component) -> TagSet:
    value = _text(component, ComponentProp.TAG)
    if value is not None:
        return TagSet.from_property(value)
    categories = component.get("categories")
    if categories is None:
        return TagSet()
    if not isinstance(categories, list):
        categories = [categories]
    tags = []
    for entry in categories:
        tags.extend(str(cat) for cat in getattr(entry, "cats", [entry]))
    return TagSet(tuple(tags))


def _time_range(component, zone: tzinfo) -> TimeRange | None:
    start = component.get("dtstart")
    if start is None:
        return None
    start = _instant(start.dt, zone)
    end = component.get("dtend") or component.get("due")
    if end is None:
        return TimeRange(start)
    end = _instant(end.dt, zone)
    if end < start:
        log_msg(f"ignored end {end} before start {start}")
        return TimeRange(start)
    return TimeRange(start, end)


def component_to_record(component, zone: tzinfo | None = None) -> UpsertRecord:
    zone = zone or timezone.utc
    is_todo = component.name == "VTODO"

    item_type = ItemType.TASK if is_todo else ItemType.EVENT
    type_value = _text(component, ComponentProp.TYPE)
    if type_value:
        item_type = ItemType.from_alias(type_value) or item_type

    status = ItemStatus.TODO
    status_value = _text(component, ComponentProp.STATUS)
    if status_value:
        status = ItemStatus.from_alias(status_value) or status
    elif is_todo:
        status = STATUS_FROM_TODO.get(str(component.get("status", "")).upper(), status)

    recurrence = None
    rrule = component.get("rrule")
    if rrule is not None:
        if isinstance(rrule, list):
            rrule = rrule[0]
        try:
            recurrence = rrule_body_to_rule(rrule.to_ical().decode("utf-8"))
        except ValueError as e:
            log_msg(f"ignored RRULE: {e}")

    return UpsertRecord(
        summary=str(component.get("summary", "")),
        time_range=_time_range(component, zone),
        recurrence=recurrence,
        status=status,
        item_type=item_type,
        tags=_tags(component),
        original_text=_text(component, ComponentProp.ORIGINAL_TEXT) or "",
        **{name: _int(component, prop) for name, prop in NUMERIC_PROPS.items()},
    )


def ical_to_record(ical_text: str, zone: tzinfo | None = None) -> UpsertRecord:
    """Read the first VEVENT or VTODO of `ical_text`."""
    try:
        cal = Calendar.from_ical(ical_text)
    except ValueError as e:
        raise ParseError(f"invalid iCalendar text: {e}") from e
    for component in cal.walk():
        if component.name in ("VEVENT", "VTODO"):
            return component_to_record(component, zone)
    raise ParseError("no VEVENT or VTODO component found")
