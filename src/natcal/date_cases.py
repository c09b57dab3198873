"""
Recognisers for the date phrases natcal understands.

Each `DateCase` is paired with one compiled pattern. `DATE_CASES` lists
the pairs in priority order and `match_date_case` returns the first hit,
so the absolute forms always win over the relative ones.
"""

import re
from dataclasses import dataclass
from enum import Enum

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# full names before their three letter forms so the longest word is taken
WEEKDAY_PATTERN = "|".join(WEEKDAY_NAMES + tuple(name[:3] for name in WEEKDAY_NAMES))

DMY = r"\d{2}/\d{2}/\d{2}"
HM = r"\d{1,2}:\d{2}"


class DateCase(Enum):
    ABSOLUTE_DATES = "absolute_dates"
    ABSOLUTE_RANGE = "absolute_range"
    TOMORROW = "tomorrow"
    TODAY = "today"
    NEXT_WEEK = "next_week"
    NEXT_WEEKDAY = "next_weekday"
    RELATIVE = "relative"

    @property
    def is_absolute(self) -> bool:
        return self in (DateCase.ABSOLUTE_DATES, DateCase.ABSOLUTE_RANGE)


DATE_CASES: tuple[tuple[DateCase, re.Pattern], ...] = (
    (
        DateCase.ABSOLUTE_DATES,
        re.compile(
            rf"\bat +(?P<start_date>{DMY}) +(?P<start_time>{HM}) *- *"
            rf"(?P<end_date>{DMY}) +(?P<end_time>{HM})(?![\d:])",
            re.IGNORECASE,
        ),
    ),
    (
        DateCase.ABSOLUTE_RANGE,
        re.compile(
            rf"\bat +(?P<date>{DMY}) +(?P<start_time>{HM}) *- *(?P<end_time>{HM})(?![\d:/])",
            re.IGNORECASE,
        ),
    ),
    (DateCase.TOMORROW, re.compile(r"\btomorrow\b", re.IGNORECASE)),
    (DateCase.TODAY, re.compile(r"\btoday\b", re.IGNORECASE)),
    (DateCase.NEXT_WEEK, re.compile(r"\bnext +week\b", re.IGNORECASE)),
    (
        DateCase.NEXT_WEEKDAY,
        re.compile(rf"\bnext +(?P<weekday>{WEEKDAY_PATTERN})\b", re.IGNORECASE),
    ),
    (
        DateCase.RELATIVE,
        re.compile(r"\bin +(?P<number>\d+) +(?P<unit>day|week)s?\b", re.IGNORECASE),
    ),
)


@dataclass(frozen=True)
class DateCaseMatch:
    case: DateCase
    match: re.Match

    @property
    def span(self) -> tuple[int, int]:
        return self.match.span()

    def group(self, name: str) -> str | None:
        return self.match.group(name)


def weekday_index(name: str) -> int | None:
    """'Mon' or 'monday' -> 0, unknown -> None."""
    key = name.strip().lower()[:3]
    for index, full in enumerate(WEEKDAY_NAMES):
        if full.startswith(key) and len(key) == 3:
            return index
    return None


def match_date_case(text: str) -> DateCaseMatch | None:
    for case, pattern in DATE_CASES:
        m = pattern.search(text)
        if m:
            return DateCaseMatch(case, m)
    return None
