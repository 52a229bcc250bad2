"""
The fixed set of reports shown on the popular clicks page, and their headings.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from .windows import Granularity, TimeWindow, resolve

# Lookbacks offered for rolling reports, in seconds
ROLLING_LOOKBACKS = {
    60 * 5: "5 minutes",
    60 * 30: "30 minutes",
    60 * 60: "hour",
    60 * 60 * 24: "24 hours",
    60 * 60 * 24 * 7: "week",
    60 * 60 * 24 * 30: "month",
    60 * 60 * 24 * 180: "6 months",
    60 * 60 * 24 * 365: "year",
}

# "24 hours" is a rolling span, unlike "yesterday" which is a calendar day
DEFAULT_ROLLING_REPORTS = (60 * 60, 60 * 60 * 24)

FIXED_GRANULARITIES = (
    Granularity.HOUR,
    Granularity.DAY,
    Granularity.WEEK,
    Granularity.MONTH,
    Granularity.YEAR,
)

CURRENT_PERIOD_NAMES = {
    Granularity.HOUR: "this hour",
    Granularity.DAY: "today",
    Granularity.WEEK: "this week",
    Granularity.MONTH: "this month",
    Granularity.YEAR: "this year",
}

PREVIOUS_PERIOD_NAMES = {
    Granularity.HOUR: "the previous hour",
    Granularity.DAY: "yesterday",
    Granularity.WEEK: "last week",
    Granularity.MONTH: "last month",
    Granularity.YEAR: "last year",
}


def ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_day(moment: datetime) -> str:
    """10th June 2024"""
    return f"{ordinal(moment.day)} {calendar.month_name[moment.month]} {moment.year}"


def format_hour(moment: datetime) -> str:
    """6pm"""
    suffix = "am" if moment.hour < 12 else "pm"
    return f"{moment.hour % 12 or 12}{suffix}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def describe_rolling(seconds: int) -> str:
    description = ROLLING_LOOKBACKS.get(seconds)
    if description is None:
        for size, unit in ((86400, "day"), (3600, "hour"), (60, "minute")):
            if seconds % size == 0:
                description = _plural(seconds // size, unit)
                break
        else:
            description = _plural(seconds, "second")
    return f"the last {description}"


def _period_detail(granularity: Granularity, start: datetime) -> str:
    if granularity == Granularity.HOUR:
        end = start + timedelta(hours=1)
        return f"{format_day(start)}, {format_hour(start)} to {format_hour(end)}"
    if granularity == Granularity.DAY:
        return format_day(start)
    if granularity == Granularity.WEEK:
        return f"beginning {format_day(start)}"
    if granularity == Granularity.MONTH:
        return f"{calendar.month_name[start.month]} {start.year}"
    return str(start.year)


def describe_fixed(granularity, periods_ago: int, window: TimeWindow) -> str:
    """Heading for a calendar report, e.g. "today (10th June 2024) (so far)" """
    granularity = Granularity.parse(granularity)
    if granularity == Granularity.ALL:
        return "all time"

    if periods_ago == 0:
        name = CURRENT_PERIOD_NAMES[granularity]
    elif periods_ago == 1:
        name = PREVIOUS_PERIOD_NAMES[granularity]
    elif periods_ago > 1:
        name = f"{_plural(periods_ago, granularity.value)} ago"
    else:
        name = f"{_plural(-periods_ago, granularity.value)} ahead"

    label = f"{name} ({_period_detail(granularity, window.start)})"
    if periods_ago == 0:
        label += " (so far)"
    return label


class ReportKind(str, Enum):
    ROLLING = "rolling"
    FIXED = "fixed"


@dataclass(frozen=True)
class ReportRequest:
    """One report on the page: a rolling lookback or a calendar period"""
    kind: ReportKind
    label: str
    row_limit: Optional[int] = None
    seconds: Optional[int] = None
    granularity: Optional[Granularity] = None
    periods_ago: int = 0
    anchor: Optional[datetime] = None

    @classmethod
    def rolling(cls, seconds: int, row_limit: Optional[int] = None,
                label: Optional[str] = None) -> "ReportRequest":
        return cls(
            kind=ReportKind.ROLLING,
            label=label or describe_rolling(seconds),
            row_limit=row_limit,
            seconds=seconds
        )

    @classmethod
    def fixed(cls, granularity, anchor: datetime, periods_ago: int = 0,
              row_limit: Optional[int] = None, label: Optional[str] = None) -> "ReportRequest":
        granularity = Granularity.parse(granularity)
        if label is None:
            label = describe_fixed(granularity, periods_ago, resolve(anchor, granularity, periods_ago))
        return cls(
            kind=ReportKind.FIXED,
            label=label,
            row_limit=row_limit,
            granularity=granularity,
            periods_ago=periods_ago,
            anchor=anchor
        )


def build_catalog(now: datetime, row_limit: Optional[int] = None,
                  rolling: Iterable[int] = DEFAULT_ROLLING_REPORTS) -> List[ReportRequest]:
    """
    Build the page's reports, all anchored on the same local `now`.

    Rolling spans come first, duplicates dropped, followed by the current
    and previous period of every calendar granularity.
    """
    requests = [
        ReportRequest.rolling(seconds, row_limit)
        for seconds in dict.fromkeys(rolling)
    ]

    for granularity in FIXED_GRANULARITIES:
        for periods_ago in (0, 1):
            requests.append(ReportRequest.fixed(granularity, now, periods_ago, row_limit))

    return requests
