"""Calendar-month reporting periods."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

MONTH_ABBREVIATIONS = (
    "Jan",
    "Fev",
    "Mar",
    "Abr",
    "Mai",
    "Jun",
    "Jul",
    "Ago",
    "Set",
    "Out",
    "Nov",
    "Dez",
)


@dataclass(frozen=True)
class ReportingPeriod:
    """One month of a report date range."""

    key: str
    label: str
    start: date
    end: date


def month_periods(start: date, end: date) -> list[ReportingPeriod]:
    """Split an inclusive date range into calendar months.

    The first and last months are clipped to ``start`` and ``end``.

    Raises:
        ValueError: ``start`` is after ``end``.
    """
    if start > end:
        raise ValueError(f"start {start.isoformat()} is after end {end.isoformat()}")

    periods: list[ReportingPeriod] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        last_day = calendar.monthrange(year, month)[1]
        periods.append(
            ReportingPeriod(
                key=f"{year:04d}-{month:02d}",
                label=f"{MONTH_ABBREVIATIONS[month - 1]} {year}",
                start=max(start, date(year, month, 1)),
                end=min(end, date(year, month, last_day)),
            )
        )
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return periods
