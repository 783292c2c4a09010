"""Target day resolution for history queries."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from standup_summary.models import TimeWindow

_SATURDAY = 5


def previous_workday(today: date) -> date:
    """Yesterday, or the preceding Friday when yesterday is a weekend day."""

    day = today - timedelta(days=1)
    while day.weekday() >= _SATURDAY:
        day -= timedelta(days=1)
    return day


def parse_target_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD.") from error


def resolve_time_window(target: date | None = None, *, today: date | None = None) -> TimeWindow:
    """Whole local day for `target`, defaulting to the previous workday."""

    day = target if target is not None else previous_workday(today or date.today())
    return TimeWindow(
        since=datetime.combine(day, time.min),
        until=datetime.combine(day, time(23, 59, 59)),
        display_date=day.isoformat(),
    )
