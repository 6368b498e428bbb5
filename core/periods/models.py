"""
Analysis Period Models

Resolves a point in time into the calendar-month window that is analysed and
the immediately preceding month used for period-over-period comparisons.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import pytz
from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class PeriodWindow:
    """
    A single calendar month.

    `start` is the first instant of the month and `end` the last one
    (23:59:59.999999 on the final day).
    """
    start: datetime
    end: datetime
    label: str

    @property
    def days(self) -> int:
        """Number of calendar days covered by the window"""
        return (self.end.date() - self.start.date()).days + 1

    def __repr__(self) -> str:
        return (
            f"PeriodWindow({self.label}: {self.start.strftime('%Y-%m-%d')} → "
            f"{self.end.strftime('%Y-%m-%d')})"
        )


@dataclass(frozen=True)
class AnalysisPeriod:
    """Current analysis window plus the previous month for comparison."""
    current: PeriodWindow
    previous: PeriodWindow

    @property
    def label(self) -> str:
        return self.current.label


def format_period_label(moment: datetime) -> str:
    """Format the YYYY-MM label of the month containing `moment`."""
    return f"{moment.year:04d}-{moment.month:02d}"


def month_window(moment: datetime) -> PeriodWindow:
    """
    Build the calendar-month window containing `moment`.

    Only the year and month of `moment` are used, so the 1st and the 31st of
    a month resolve to the same window. Timezone info is preserved.
    """
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = moment.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
    return PeriodWindow(start=start, end=end, label=format_period_label(moment))


def resolve_period(as_of: datetime) -> AnalysisPeriod:
    """
    Resolve the analysis window for `as_of` and its comparison window.

    Args:
        as_of: Any point in time inside the month to analyse

    Returns:
        AnalysisPeriod with the month of `as_of` and the month before it

    Example:
        >>> period = resolve_period(datetime(2024, 3, 31))
        >>> period.current.label, period.previous.label
        ('2024-03', '2024-02')
    """
    previous_moment = as_of - relativedelta(months=1)
    return AnalysisPeriod(
        current=month_window(as_of),
        previous=month_window(previous_moment)
    )


def parse_period_label(label: str) -> datetime:
    """
    Parse a YYYY-MM label into the first day of that month.

    Raises:
        ValueError: If the label is not a valid YYYY-MM string
    """
    try:
        return datetime.strptime(label.strip(), "%Y-%m")
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid period format: '{label}'. Use YYYY-MM")


def trailing_periods(as_of: datetime, months: int) -> List[datetime]:
    """
    List month anchors for the last `months` months ending at `as_of`.

    The result is chronological (oldest first) and always ends with `as_of`.
    """
    if months < 1:
        raise ValueError(f"months must be a positive integer, got {months}")
    return [as_of - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]


def now_local(timezone: Optional[str] = None) -> datetime:
    """Current time in the plant timezone, or naive local time if none is given."""
    if timezone is None:
        return datetime.now()
    return datetime.now(pytz.timezone(timezone))
