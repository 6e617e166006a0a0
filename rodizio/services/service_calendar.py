# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Enumerate the concrete dates each weekly service falls on.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable, Iterator

from rodizio.models.domain import Service

VALID_PERIODS: tuple[int, ...] = (3, 6, 12)


def add_months(start: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def weekday_occurrence(day: date) -> int:
    """1 for the first such weekday of the month, 2 for the second, ..."""
    return (day.day - 1) // 7 + 1


def is_due(service: Service, day: date) -> bool:
    if service.weekday != day.weekday():
        return False
    if service.monthly_occurrence is not None:
        return weekday_occurrence(day) == service.monthly_occurrence
    return True


def iter_service_dates(
    start: date,
    months: int,
    services: Iterable[Service],
) -> Iterator[tuple[date, list[Service]]]:
    """Yield (date, services due that date) for every date in [start, start + months).

    Dates with nothing due are skipped. Services on the same date come out
    ordered by time of day, then id.
    """
    if months not in VALID_PERIODS:
        raise ValueError(f"months must be one of {VALID_PERIODS}, got {months}")

    ordered = sorted(services, key=lambda s: (s.time, s.id))
    end = add_months(start, months)
    day = start
    while day < end:
        due = [s for s in ordered if is_due(s, day)]
        if due:
            yield day, due
        day += timedelta(days=1)
