"""Five-field cron expressions: parsing and finding the next matching minute."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping

_SEARCH_YEARS = 30

_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DAY_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}

_MACROS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


class CronExpressionError(ValueError):
    """Raised for a malformed cron expression or one that never fires."""


@dataclass(frozen=True)
class _FieldSpec:
    name: str
    low: int
    high: int
    names: Mapping[str, int]


_FIELDS = (
    _FieldSpec("minute", 0, 59, {}),
    _FieldSpec("hour", 0, 23, {}),
    _FieldSpec("day of month", 1, 31, {}),
    _FieldSpec("month", 1, 12, _MONTH_NAMES),
    _FieldSpec("day of week", 0, 7, _DAY_NAMES),
)


@dataclass(frozen=True)
class _Expression:
    minutes: frozenset
    hours: frozenset
    days: frozenset
    months: frozenset
    weekdays: frozenset
    days_any: bool
    weekdays_any: bool

    def day_matches(self, moment: datetime) -> bool:
        dom_ok = moment.day in self.days
        dow_ok = (moment.weekday() + 1) % 7 in self.weekdays
        if self.days_any:
            return dow_ok
        if self.weekdays_any:
            return dom_ok
        return dom_ok or dow_ok

    def matches(self, moment: datetime) -> bool:
        return (
            moment.month in self.months
            and self.day_matches(moment)
            and moment.hour in self.hours
            and moment.minute in self.minutes
        )


def _value(token: str, spec: _FieldSpec) -> int:
    if token.isdigit():
        return int(token)
    if token in spec.names:
        return spec.names[token]
    raise CronExpressionError(f"invalid {spec.name} value {token!r}")


def _parse_field(text: str, spec: _FieldSpec) -> frozenset:
    values: set[int] = set()
    for part in text.split(","):
        if not part:
            raise CronExpressionError(f"empty item in {spec.name} field")
        base, has_step, step_text = part.partition("/")
        step = 1
        if has_step:
            if not step_text.isdigit() or int(step_text) < 1:
                raise CronExpressionError(f"invalid {spec.name} step {step_text!r}")
            step = int(step_text)
        if base in ("*", "?"):
            start, end = spec.low, spec.high
        elif "-" in base:
            first, _, last = base.partition("-")
            start, end = _value(first, spec), _value(last, spec)
            if start > end:
                raise CronExpressionError(f"invalid {spec.name} range {base!r}")
        else:
            start = _value(base, spec)
            end = spec.high if has_step else start
        if start < spec.low or end > spec.high:
            raise CronExpressionError(
                f"{spec.name} value out of range {spec.low}-{spec.high}: {part!r}"
            )
        values.update(range(start, end + 1, step))
    return frozenset(values)


def _parse(expr: str) -> _Expression:
    text = expr.strip().lower()
    if text.startswith("@"):
        if text not in _MACROS:
            raise CronExpressionError(f"unknown cron macro {expr!r}")
        text = _MACROS[text]
    fields = text.split()
    if len(fields) != len(_FIELDS):
        raise CronExpressionError(
            f"cron expression must have {len(_FIELDS)} fields, got {len(fields)}: {expr!r}"
        )
    minutes, hours, days, months, weekdays = (
        _parse_field(field_text, spec) for field_text, spec in zip(fields, _FIELDS)
    )
    weekdays = frozenset(0 if day == 7 else day for day in weekdays)
    return _Expression(
        minutes=minutes,
        hours=hours,
        days=days,
        months=months,
        weekdays=weekdays,
        days_any=fields[2].startswith(("*", "?")),
        weekdays_any=fields[4].startswith(("*", "?")),
    )


def _next_month(moment: datetime) -> datetime:
    if moment.month == 12:
        return moment.replace(year=moment.year + 1, month=1, day=1, hour=0, minute=0)
    return moment.replace(month=moment.month + 1, day=1, hour=0, minute=0)


def next_tick_after(expr: str, after: datetime, inclusive: bool = False) -> datetime:
    """The first minute after ``after`` that ``expr`` matches.

    With ``inclusive`` the moment ``after`` itself is returned when it falls on a
    whole minute that matches. Day-of-month and day-of-week follow the usual cron
    rule: when both are restricted, either one matching is enough.
    """
    expression = _parse(expr)
    candidate = after.replace(second=0, microsecond=0)
    if not (inclusive and candidate == after and expression.matches(candidate)):
        candidate += timedelta(minutes=1)

    limit_year = after.year + _SEARCH_YEARS
    while candidate.year <= limit_year:
        if candidate.month not in expression.months:
            candidate = _next_month(candidate)
        elif not expression.day_matches(candidate):
            candidate = candidate.replace(hour=0, minute=0) + timedelta(days=1)
        elif candidate.hour not in expression.hours:
            candidate = candidate.replace(minute=0) + timedelta(hours=1)
        elif candidate.minute not in expression.minutes:
            candidate += timedelta(minutes=1)
        else:
            return candidate
    raise CronExpressionError(f"no time matches {expr!r} within {_SEARCH_YEARS} years")