"""
Calendar windows for popular clicks reports.

All datetimes here are naive and already shifted by the configured UTC
offset; the shift happens once, in local_now(), before anything else runs.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)

# Everything from the Unix epoch up to the 32-bit signed time_t ceiling
EPOCH_ORIGIN = datetime(1970, 1, 1, 0, 0, 0)
MAX_32BIT_TIMESTAMP = datetime(2038, 1, 19, 3, 14, 7)

END_OF_DAY = time(23, 59, 59)


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"

    @classmethod
    def parse(cls, value: Union["Granularity", str, None]) -> "Granularity":
        """Unknown or missing granularities fall back to ALL"""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.ALL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.debug("Unknown granularity %r, using the whole log", value)
            return cls.ALL


def is_known_granularity(value) -> bool:
    if isinstance(value, Granularity):
        return True
    if not isinstance(value, str):
        return False
    return value.strip().lower() in {g.value for g in Granularity}


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start, end] range of click times"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Window starts after it ends: {self.start} > {self.end}")


@dataclass(frozen=True)
class RollingLookback:
    """Everything from `seconds` before `now` onwards"""
    seconds: int
    now: datetime

    @property
    def since(self) -> datetime:
        return self.now - timedelta(seconds=self.seconds)

    def as_window(self) -> TimeWindow:
        return TimeWindow(self.since, self.now)


def local_now(moment: Optional[datetime] = None, offset_seconds: int = 0) -> datetime:
    """
    Shift a UTC instant into the reporting timezone.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.
    The result is naive, matching how click times are stored.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment + timedelta(seconds=offset_seconds)


def start_of_period(moment: datetime, granularity: Granularity) -> datetime:
    if granularity == Granularity.HOUR:
        return moment.replace(minute=0, second=0, microsecond=0)
    if granularity == Granularity.DAY:
        return datetime.combine(moment.date(), time.min)
    if granularity == Granularity.WEEK:
        monday = moment.date() - timedelta(days=moment.weekday())
        return datetime.combine(monday, time.min)
    if granularity == Granularity.MONTH:
        return datetime(moment.year, moment.month, 1)
    if granularity == Granularity.YEAR:
        return datetime(moment.year, 1, 1)
    return EPOCH_ORIGIN


def shift_periods(start: datetime, granularity: Granularity, periods: int) -> datetime:
    """Move a period start by whole periods (negative goes back)"""
    if granularity == Granularity.HOUR:
        return start + timedelta(hours=periods)
    if granularity == Granularity.DAY:
        return start + timedelta(days=periods)
    if granularity == Granularity.WEEK:
        return start + timedelta(weeks=periods)
    if granularity == Granularity.MONTH:
        year, month = divmod(start.year * 12 + start.month - 1 + periods, 12)
        return start.replace(year=year, month=month + 1, day=1)
    if granularity == Granularity.YEAR:
        return start.replace(year=start.year + periods, month=1, day=1)
    return start


def end_of_period(start: datetime, granularity: Granularity) -> datetime:
    """Last whole second of the period beginning at `start`"""
    if granularity == Granularity.HOUR:
        return start + timedelta(hours=1) - timedelta(seconds=1)
    if granularity == Granularity.DAY:
        return datetime.combine(start.date(), END_OF_DAY)
    if granularity == Granularity.WEEK:
        return datetime.combine(start.date() + timedelta(days=6), END_OF_DAY)
    if granularity == Granularity.MONTH:
        last_day = calendar.monthrange(start.year, start.month)[1]
        return datetime.combine(start.date().replace(day=last_day), END_OF_DAY)
    if granularity == Granularity.YEAR:
        return datetime(start.year, 12, 31, 23, 59, 59)
    return MAX_32BIT_TIMESTAMP


def resolve(now: datetime, granularity, periods_ago: int = 0) -> TimeWindow:
    """
    Resolve a calendar period into its bounds.

    Args:
        now: Anchor instant, already in local (offset-adjusted) time
        granularity: Granularity or its name; anything unknown means ALL
        periods_ago: 0 for the current period, 1 for the previous one, ...

    Returns:
        TimeWindow covering the whole period, even when it is still running
    """
    granularity = Granularity.parse(granularity)
    if granularity == Granularity.ALL:
        return TimeWindow(EPOCH_ORIGIN, MAX_32BIT_TIMESTAMP)

    start = shift_periods(start_of_period(now, granularity), granularity, -periods_ago)
    return TimeWindow(start, end_of_period(start, granularity))
