"""
Recurrence phrases ("every weekday", "every 2 weeks on Mon, Fri", ...) and
the `RecurrenceRule` values they stand for.

`parse_recurrence` reads a phrase, `classify_recurrence` decides which
phrase shape a rule belongs to and `render_recurrence` writes it back, so
that every rule the parser produces renders to a phrase that parses to
the same rule.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from natcal.date_cases import WEEKDAY_PATTERN, weekday_index
from natcal.errors import UnrenderableRecurrence
from natcal.shared import log_msg, remove_span

MAX_INTERVAL = 65535


class Frequency(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def code(self) -> str:
        """Two letter iCalendar form: MO, TU, ..."""
        return self.name[:2]

    @classmethod
    def from_code(cls, code: str) -> "Weekday":
        for day in cls:
            if day.code == code.strip().upper():
                return day
        raise ValueError(f"unknown weekday code {code!r}")


WORKDAYS = frozenset(Weekday) - {Weekday.SATURDAY, Weekday.SUNDAY}
WEEKEND = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})
ALL_DAYS = frozenset(Weekday)


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: Frequency
    interval: int = 1
    by_weekday: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        if not 1 <= self.interval <= MAX_INTERVAL:
            raise ValueError(
                f"interval must be between 1 and {MAX_INTERVAL}, got {self.interval}"
            )
        object.__setattr__(
            self, "by_weekday", frozenset(Weekday(d) for d in self.by_weekday)
        )

    @property
    def weekdays(self) -> list[Weekday]:
        """by_weekday in Monday-first order."""
        return sorted(self.by_weekday)


class RecurrenceCase(Enum):
    EVERY_X_DAYS = "every_x_days"
    EVERY_WEEKDAY = "every_weekday"
    EVERY_WEEKEND = "every_weekend"
    EVERY_DAY = "every_day"
    WEEK_ON_X_DAYS = "week_on_x_days"
    MONTH_ON_X_DAYS = "month_on_x_days"
    EVERY_X_WEEKS_ON_X_DAYS = "every_x_weeks_on_x_days"


DAY_REGEX = re.compile(rf"\b(?:{WEEKDAY_PATTERN})\b", re.IGNORECASE)
DAY = rf"(?:{WEEKDAY_PATTERN})\b"
DAY_LIST = rf"{DAY}(?:\s*,\s*{DAY}|\s+{DAY})*"

RECURRENCE_CASES: tuple[tuple[RecurrenceCase, re.Pattern], ...] = (
    (
        RecurrenceCase.EVERY_X_DAYS,
        re.compile(r"\bevery\s+(?P<interval>\d+)\s+days?\b", re.IGNORECASE),
    ),
    (RecurrenceCase.EVERY_WEEKDAY, re.compile(r"\bevery\s+weekday\b", re.IGNORECASE)),
    (RecurrenceCase.EVERY_WEEKEND, re.compile(r"\bevery\s+weekend\b", re.IGNORECASE)),
    (RecurrenceCase.EVERY_DAY, re.compile(r"\bevery\s+day\b", re.IGNORECASE)),
    (
        RecurrenceCase.WEEK_ON_X_DAYS,
        re.compile(rf"\bevery\s+(?P<days>{DAY_LIST})", re.IGNORECASE),
    ),
    (
        RecurrenceCase.MONTH_ON_X_DAYS,
        re.compile(rf"\bevery\s+month\s+on\s+(?P<days>{DAY_LIST})", re.IGNORECASE),
    ),
    (
        RecurrenceCase.EVERY_X_WEEKS_ON_X_DAYS,
        re.compile(
            rf"\bevery\s+(?P<interval>\d+)(?:\s+weeks?)?\s+on\s+(?P<days>{DAY_LIST})",
            re.IGNORECASE,
        ),
    ),
)


def parse_weekdays(text: str) -> frozenset:
    return frozenset(Weekday(weekday_index(name)) for name in DAY_REGEX.findall(text))


def _interval(m: re.Match) -> int | None:
    interval = int(m.group("interval"))
    if not 1 <= interval <= MAX_INTERVAL:
        log_msg(f"ignored {m.group(0)!r}: interval must be between 1 and {MAX_INTERVAL}")
        return None
    return interval


def rule_for_match(case: RecurrenceCase, m: re.Match) -> RecurrenceRule | None:
    """Build the rule for one matched phrase, None when the phrase is unusable."""
    if case == RecurrenceCase.EVERY_X_DAYS:
        interval = _interval(m)
        if interval is None:
            return None
        if interval == 1:
            # "every 1 day" is the same schedule as "every day"
            return RecurrenceRule(Frequency.WEEKLY, 1, ALL_DAYS)
        return RecurrenceRule(Frequency.DAILY, interval)
    if case == RecurrenceCase.EVERY_WEEKDAY:
        return RecurrenceRule(Frequency.WEEKLY, 1, WORKDAYS)
    if case == RecurrenceCase.EVERY_WEEKEND:
        return RecurrenceRule(Frequency.WEEKLY, 1, WEEKEND)
    if case == RecurrenceCase.EVERY_DAY:
        return RecurrenceRule(Frequency.WEEKLY, 1, ALL_DAYS)

    days = parse_weekdays(m.group("days"))
    if not days:
        return None
    if case == RecurrenceCase.WEEK_ON_X_DAYS:
        return RecurrenceRule(Frequency.WEEKLY, 1, days)
    if case == RecurrenceCase.MONTH_ON_X_DAYS:
        return RecurrenceRule(Frequency.MONTHLY, 1, days)
    interval = _interval(m)
    if interval is None:
        return None
    return RecurrenceRule(Frequency.WEEKLY, interval, days)


def find_recurrence(text: str) -> tuple[RecurrenceRule, tuple[int, int]] | None:
    for case, pattern in RECURRENCE_CASES:
        m = pattern.search(text)
        if not m:
            continue
        rule = rule_for_match(case, m)
        if rule is not None:
            return rule, m.span()
    return None


def parse_recurrence(text: str) -> RecurrenceRule | None:
    found = find_recurrence(text)
    return found[0] if found else None


def extract_recurrence(
    reference: datetime, text: str
) -> tuple[RecurrenceRule | None, str]:
    found = find_recurrence(text)
    if found is None:
        return None, text
    rule, span = found
    return rule, remove_span(text, span)


def classify_recurrence(rule: RecurrenceRule) -> RecurrenceCase:
    days = rule.by_weekday
    if rule.frequency == Frequency.DAILY and rule.interval > 1:
        return RecurrenceCase.EVERY_X_DAYS
    if rule.frequency == Frequency.WEEKLY:
        if days == WORKDAYS:
            return RecurrenceCase.EVERY_WEEKDAY
        if days == WEEKEND:
            return RecurrenceCase.EVERY_WEEKEND
        if days == ALL_DAYS:
            return RecurrenceCase.EVERY_DAY
        if not days:
            raise UnrenderableRecurrence(rule, "weekly rule without weekdays")
        if rule.interval > 1:
            return RecurrenceCase.EVERY_X_WEEKS_ON_X_DAYS
        return RecurrenceCase.WEEK_ON_X_DAYS
    if rule.frequency == Frequency.MONTHLY:
        if not days:
            raise UnrenderableRecurrence(rule, "monthly rule without weekdays")
        return RecurrenceCase.MONTH_ON_X_DAYS
    raise UnrenderableRecurrence(rule, "no phrase for this frequency and interval")


def _day_names(rule: RecurrenceRule) -> str:
    return ", ".join(day.label for day in rule.weekdays)


def render_recurrence(rule: RecurrenceRule) -> str:
    case = classify_recurrence(rule)
    if case == RecurrenceCase.EVERY_X_DAYS:
        return f"every {rule.interval} days"
    if case == RecurrenceCase.EVERY_WEEKDAY:
        return "every weekday"
    if case == RecurrenceCase.EVERY_WEEKEND:
        return "every weekend"
    if case == RecurrenceCase.EVERY_DAY:
        return "every day"
    if case == RecurrenceCase.WEEK_ON_X_DAYS:
        return f"every {_day_names(rule)}"
    if case == RecurrenceCase.MONTH_ON_X_DAYS:
        return f"every month on {_day_names(rule)}"
    return f"every {rule.interval} weeks on {_day_names(rule)}"
