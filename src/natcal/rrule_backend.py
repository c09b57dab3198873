"""
RRULE text and rule iteration.

`RuleBackend` is the narrow interface natcal needs from a recurrence
library: build a rule from its parts and ask for the next occurrence.
`DateutilRuleBackend` implements it with `dateutil.rrule`.
"""

from datetime import datetime, timezone
from typing import Iterable, Protocol

from dateutil import rrule as du_rrule
from dateutil.rrule import rrulestr

from natcal.recurrence import Frequency, RecurrenceRule, Weekday
from natcal.shared import fmt_utc_z, parse_utc_z

FREQ_MAP = {
    Frequency.DAILY: du_rrule.DAILY,
    Frequency.WEEKLY: du_rrule.WEEKLY,
    Frequency.MONTHLY: du_rrule.MONTHLY,
    Frequency.YEARLY: du_rrule.YEARLY,
}


class RuleBackend(Protocol):
    def build(
        self,
        frequency: Frequency,
        interval: int,
        weekdays: Iterable[Weekday],
        dtstart: datetime,
    ): ...

    def next_after(self, rule, instant: datetime) -> datetime | None: ...


class DateutilRuleBackend:
    def build(
        self,
        frequency: Frequency,
        interval: int,
        weekdays: Iterable[Weekday],
        dtstart: datetime,
    ) -> du_rrule.rrule:
        byweekday = [int(day) for day in sorted(weekdays)] or None
        return du_rrule.rrule(
            FREQ_MAP[frequency],
            interval=interval,
            byweekday=byweekday,
            dtstart=dtstart,
        )

    def next_after(self, rule: du_rrule.rrule, instant: datetime) -> datetime | None:
        return rule.after(instant, inc=False)

    def build_rule(self, rule: RecurrenceRule, dtstart: datetime) -> du_rrule.rrule:
        return self.build(rule.frequency, rule.interval, rule.by_weekday, dtstart)


# ─── RRULE text ─────────────────────────────────────────────


def rule_to_rrule_body(rule: RecurrenceRule) -> str:
    """RecurrenceRule -> 'FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR'."""
    parts = [f"FREQ={rule.frequency.value}"]
    if rule.interval != 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.by_weekday:
        parts.append("BYDAY=" + ",".join(day.code for day in rule.weekdays))
    return ";".join(parts)


def rrule_body_to_rule(body: str) -> RecurrenceRule:
    """
    'FREQ=...;INTERVAL=...;BYDAY=...' -> RecurrenceRule.

    Other keys (COUNT, UNTIL, BYMONTH, ...) are ignored. BYDAY entries with
    an ordinal such as '2MO' keep only the weekday.
    """
    if body.upper().startswith("RRULE:"):
        body = body[len("RRULE:") :]
    params = {}
    for part in body.strip().split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            params[key.strip().upper()] = value.strip()
    try:
        frequency = Frequency(params.get("FREQ", "").upper())
    except ValueError:
        raise ValueError(f"unsupported FREQ in {body!r}") from None
    interval = int(params.get("INTERVAL", "1"))
    weekdays = frozenset(
        Weekday.from_code(code.strip()[-2:])
        for code in params.get("BYDAY", "").split(",")
        if code.strip()
    )
    return RecurrenceRule(frequency, interval, weekdays)


def rule_to_rruleset_text(
    rule: RecurrenceRule | None,
    dtstart: datetime,
    rdates: Iterable[datetime] = (),
    exdates: Iterable[datetime] = (),
) -> str:
    lines = [f"DTSTART:{fmt_utc_z(dtstart)}"]
    if rule is not None:
        lines.append(f"RRULE:{rule_to_rrule_body(rule)}")
    rdates = list(rdates)
    if rdates:
        lines.append("RDATE:" + ",".join(fmt_utc_z(dt) for dt in rdates))
    exdates = list(exdates)
    if exdates:
        lines.append("EXDATE:" + ",".join(fmt_utc_z(dt) for dt in exdates))
    return "\n".join(lines)


def rruleset_text_to_rule(
    text: str,
) -> tuple[RecurrenceRule | None, datetime | None]:
    """
    Read the RRULE and DTSTART lines of an rruleset string.

    The whole string is first checked with dateutil's `rrulestr`, so
    malformed text raises ValueError.
    """
    rrulestr(text, forceset=True)
    rule = None
    dtstart = None
    for line in text.splitlines():
        line = line.strip()
        if line.upper().startswith("DTSTART:"):
            value = line.split(":", 1)[1]
            if value.endswith("Z"):
                dtstart = parse_utc_z(value)
            else:
                dtstart = datetime.strptime(value, "%Y%m%dT%H%M%S").replace(
                    tzinfo=timezone.utc
                )
        elif line.upper().startswith("RRULE:"):
            rule = rrule_body_to_rule(line)
    return rule, dtstart
