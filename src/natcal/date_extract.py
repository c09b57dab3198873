"""
Turn the date and time phrases of an entry into a `TimeRange`.

The date phrase is found by `natcal.date_cases`; the time of day is a
separate pass over whatever text is left once the date phrase has been
removed. All arithmetic happens on the reference's local calendar day and
the results are stored as UTC instants.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from natcal.date_cases import DateCase, DateCaseMatch, match_date_case, weekday_index
from natcal.shared import localize, log_msg, remove_span, require_aware

DEFAULT_TIME = time(12, 0)

NAMED_TIMES = {
    "morning": time(8, 0),
    "noon": time(12, 0),
    "afternoon": time(16, 0),
    "evening": time(18, 0),
    "night": time(22, 0),
    "midnight": time(0, 0),
}

CLOCK = r"\d{1,2}(?::\d{2})?"

TIME_RANGE_REGEX = re.compile(
    rf"(?:\b(?:at|from) +)?(?<![\d:/])(?P<start>{CLOCK}) *(?:-|\bto\b|\buntil\b) *(?P<end>{CLOCK})(?![\w:])",
    re.IGNORECASE,
)
NUMERIC_TIME_REGEX = re.compile(
    rf"\bat +(?P<time>{CLOCK}) *(?P<meridiem>am|pm)?(?![\w:])", re.IGNORECASE
)
NAMED_TIME_REGEX = re.compile(
    rf"(?:\bat +)?\b(?P<name>{'|'.join(NAMED_TIMES)})\b", re.IGNORECASE
)

INPUT_DATE_FORMAT = "%d/%m/%y"
INPUT_TIME_FORMAT = "%H:%M"


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime | None = None

    def __post_init__(self):
        for dt in (self.start, self.end):
            if dt is not None and (dt.tzinfo is None or dt.utcoffset() is None):
                raise ValueError(f"TimeRange needs aware datetimes, got {dt!r}")
        object.__setattr__(self, "start", self.start.astimezone(timezone.utc))
        if self.end is not None:
            end = self.end.astimezone(timezone.utc)
            if end < self.start:
                raise ValueError(f"TimeRange end {end} is before start {self.start}")
            object.__setattr__(self, "end", end)

    @property
    def duration(self) -> timedelta | None:
        if self.end is None:
            return None
        return self.end - self.start


def days_until(weekday: int, reference: date | datetime) -> int:
    """Days from `reference` forward to the next `weekday` (Monday is 0)."""
    return (weekday - reference.weekday()) % 7


def parse_clock(text: str, meridiem: str | None = None) -> time | None:
    """
    'H', 'HH', 'H:MM' or 'HH:MM' -> time, with an optional 'am'/'pm'.

    Out of range values are logged and rejected with None.
    """
    hour, _, minute = text.partition(":")
    hour = int(hour)
    minute = int(minute) if minute else 0
    if meridiem:
        if not 1 <= hour <= 12 or minute > 59:
            log_msg(f"rejected time of day {text + meridiem!r}: hour must be 1-12 with am/pm")
            return None
        hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
    if hour > 23 or minute > 59:
        log_msg(f"rejected time of day {text!r}: hour must be 0-23 and minute 0-59")
        return None
    return time(hour, minute)


def extract_time_of_day(text: str) -> tuple[time, time | None, str]:
    """
    Find the time of day in `text`.

    Returns (start, end, residual). A range sets both start and end, a
    single numeric or named time only the start. With no usable time the
    start is noon and `text` comes back unchanged.
    """
    m = TIME_RANGE_REGEX.search(text)
    if m:
        start = parse_clock(m.group("start"))
        end = parse_clock(m.group("end"))
        if start is not None and end is not None:
            return start, end, remove_span(text, m.span())

    m = NUMERIC_TIME_REGEX.search(text)
    if m:
        start = parse_clock(m.group("time"), m.group("meridiem"))
        if start is not None:
            return start, None, remove_span(text, m.span())

    m = NAMED_TIME_REGEX.search(text)
    if m:
        return NAMED_TIMES[m.group("name").lower()], None, remove_span(text, m.span())

    return DEFAULT_TIME, None, text


def relative_day(found: DateCaseMatch, today: date) -> date:
    if found.case == DateCase.TOMORROW:
        return today + timedelta(days=1)
    if found.case == DateCase.TODAY:
        return today
    if found.case == DateCase.NEXT_WEEK:
        return today + timedelta(days=7)
    if found.case == DateCase.NEXT_WEEKDAY:
        weekday = weekday_index(found.group("weekday"))
        return today + timedelta(days=days_until(weekday, today))
    if found.case == DateCase.RELATIVE:
        number = int(found.group("number"))
        if found.group("unit").lower() == "week":
            return today + timedelta(weeks=number)
        return today + timedelta(days=number)
    raise ValueError(f"{found.case} is not a relative date case")


def _absolute_instant(day_text: str, clock_text: str, zone: tzinfo) -> datetime | None:
    clock = parse_clock(clock_text)
    if clock is None:
        return None
    try:
        day = datetime.strptime(day_text, INPUT_DATE_FORMAT).date()
    except ValueError:
        log_msg(f"rejected date {day_text!r}: not a calendar date in DD/MM/YY form")
        return None
    return localize(day, clock, zone)


def absolute_range(found: DateCaseMatch, zone: tzinfo) -> TimeRange | None:
    if found.case == DateCase.ABSOLUTE_DATES:
        start = _absolute_instant(found.group("start_date"), found.group("start_time"), zone)
        end = _absolute_instant(found.group("end_date"), found.group("end_time"), zone)
        if start is None or end is None:
            return None
        if end < start:
            log_msg(f"rejected range {found.match.group(0)!r}: it ends before it starts")
            return None
        return TimeRange(start, end)

    start = _absolute_instant(found.group("date"), found.group("start_time"), zone)
    end = _absolute_instant(found.group("date"), found.group("end_time"), zone)
    if start is None or end is None:
        return None
    if end < start:
        end += timedelta(days=1)
    return TimeRange(start, end)


def extract_time_range(reference: datetime, text: str) -> tuple[TimeRange | None, str]:
    """
    Find the date phrase of `text` and the time of day that goes with it.

    Returns (time_range, residual) where residual is `text` without the
    phrases that were used. When no date phrase is present, an absolute
    date is not a real calendar date, or a relative date falls outside the
    supported range, returns (None, text).
    """
    require_aware(reference)
    zone = reference.tzinfo
    found = match_date_case(text)
    if found is None:
        return None, text

    residual = remove_span(text, found.span)

    # absolute forms carry their own times
    if found.case.is_absolute:
        time_range = absolute_range(found, zone)
        if time_range is None:
            return None, text
        return time_range, residual

    start_clock, end_clock, residual = extract_time_of_day(residual)
    try:
        day = relative_day(found, reference.date())
        start = localize(day, start_clock, zone)
        end = None
        if end_clock is not None:
            end = localize(day, end_clock, zone)
            if end < start:
                end = localize(day + timedelta(days=1), end_clock, zone)
    except OverflowError:
        log_msg(f"rejected date {found.match.group(0)!r}: out of the supported range")
        return None, text
    return TimeRange(start, end), residual


def time_range_to_input(reference: datetime, start: datetime, end: datetime) -> str:
    """Render start and end as the absolute phrase understood by `extract_time_range`."""
    zone = require_aware(reference).tzinfo
    local_start = start.astimezone(zone)
    local_end = end.astimezone(zone)
    head = f"at {local_start.strftime(INPUT_DATE_FORMAT)} {local_start.strftime(INPUT_TIME_FORMAT)}"
    if local_start.date() == local_end.date():
        return f"{head}-{local_end.strftime(INPUT_TIME_FORMAT)}"
    return f"{head}-{local_end.strftime(INPUT_DATE_FORMAT)} {local_end.strftime(INPUT_TIME_FORMAT)}"
