import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from ..config import Settings
from .catalog import DEFAULT_ROLLING_REPORTS, ReportKind, ReportRequest, build_catalog
from .store import ClickCountRow, ClickEventStore, StoreError
from .windows import RollingLookback, TimeWindow, local_now, resolve

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 10

NO_RESULTS_MESSAGE = "No results for the chosen time period."
NO_LOGS_MESSAGE = "No logs to display."


@dataclass(frozen=True)
class RankedEntry:
    link_id: str
    click_count: int
    destination_url: str
    title: Optional[str]


@dataclass(frozen=True)
class Aggregation:
    entries: List[RankedEntry]
    used_default_limit: bool
    total_clicks: int

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass
class ReportResult:
    """Outcome of one report; a failed store read leaves `error` set"""
    request: ReportRequest
    window: TimeWindow
    entries: List[RankedEntry] = field(default_factory=list)
    total_clicks: int = 0
    used_default_limit: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def no_results(self) -> bool:
        return not self.failed and not self.entries

    @property
    def message(self) -> Optional[str]:
        if self.failed:
            return self.error
        if self.no_results:
            return NO_RESULTS_MESSAGE
        return None


@dataclass(frozen=True)
class ClickLogEntry:
    clicked_at: datetime
    short_code: str
    referer: Optional[str]
    original_url: str
    title: Optional[str]
    ip_address: Optional[str]
    country_code: Optional[str]
    ip_origin: str


@dataclass(frozen=True)
class ClickLog:
    entries: List[ClickLogEntry]
    used_default_limit: bool

    @property
    def no_results(self) -> bool:
        return not self.entries

    @property
    def message(self) -> Optional[str]:
        return NO_LOGS_MESSAGE if self.no_results else None


def normalize_row_limit(row_limit, default: int = DEFAULT_ROW_LIMIT) -> Tuple[int, bool]:
    """
    Fall back to the default limit for anything but a positive integer.

    Returns:
        Tuple of (limit, used_default)
    """
    if isinstance(row_limit, bool) or not isinstance(row_limit, int) or row_limit <= 0:
        return default, True
    return row_limit, False


def shape_results(rows: Iterable[ClickCountRow], limit: int) -> Tuple[List[RankedEntry], int]:
    """Rank rows by clicks then short code, keep the top `limit`, total them"""
    ranked = sorted(rows, key=lambda row: (-row.clicks, row.short_code))[:limit]

    entries = [
        RankedEntry(
            link_id=row.short_code,
            click_count=row.clicks,
            destination_url=row.original_url,
            title=row.title
        )
        for row in ranked
    ]

    return entries, sum(entry.click_count for entry in entries)


def aggregate(
    store: ClickEventStore,
    window: Union[TimeWindow, RollingLookback],
    row_limit=None,
    *,
    default_limit: int = DEFAULT_ROW_LIMIT,
    link_blacklist: str = ""
) -> Aggregation:
    """
    Count clicks per link inside a window and rank them.

    Args:
        store: Click log to read from
        window: Calendar window (both ends inclusive) or rolling lookback
        row_limit: Maximum number of links; invalid values use the default
        default_limit: Limit substituted for invalid row limits
        link_blacklist: Regex; links whose destination matches are skipped

    Returns:
        Aggregation with ranked entries, total clicks and default-limit flag
    """
    limit, used_default = normalize_row_limit(row_limit, default_limit)

    if isinstance(window, RollingLookback):
        since, until = window.since, None
    else:
        since, until = window.start, window.end

    blacklist = re.compile(link_blacklist) if link_blacklist else None

    # The blacklist thins rows out, so the limit can only apply afterwards
    rows = store.count_clicks(since, until, None if blacklist else limit)

    if blacklist:
        rows = [row for row in rows if not blacklist.search(row.original_url or "")]

    entries, total = shape_results(rows, limit)

    return Aggregation(entries=entries, used_default_limit=used_default, total_clicks=total)


class PopularClicks:
    """Popular clicks reports for one store and one configuration"""

    def __init__(self, store: ClickEventStore, settings: Settings):
        self.store = store
        self.settings = settings

    def local_now(self, moment: Optional[datetime] = None) -> datetime:
        return local_now(moment, self.settings.utc_offset_seconds)

    def aggregate(self, window: Union[TimeWindow, RollingLookback], row_limit=None) -> Aggregation:
        return aggregate(
            self.store,
            window,
            row_limit,
            default_limit=self.settings.DEFAULT_ROW_LIMIT,
            link_blacklist=self.settings.LINK_BLACKLIST
        )

    def run_report(self, request: ReportRequest, now: datetime) -> ReportResult:
        """
        Evaluate one report at local time `now`.

        Store failures are logged and returned on the result so the
        remaining reports of a page still render.
        """
        if request.kind == ReportKind.ROLLING:
            target = RollingLookback(request.seconds, now)
            window = target.as_window()
        else:
            window = resolve(request.anchor or now, request.granularity, request.periods_ago)
            target = window

        logger.debug("Report '%s' from %s to %s", request.label, window.start, window.end)

        try:
            result = self.aggregate(target, request.row_limit)
        except StoreError as e:
            logger.exception("Report '%s' failed", request.label)
            return ReportResult(request=request, window=window, error=str(e))

        return ReportResult(
            request=request,
            window=window,
            entries=result.entries,
            total_clicks=result.total_clicks,
            used_default_limit=result.used_default_limit
        )

    def fixed_report(self, granularity, periods_ago: int = 0, row_limit=None,
                     now: Optional[datetime] = None) -> ReportResult:
        local = self.local_now(now)
        return self.run_report(ReportRequest.fixed(granularity, local, periods_ago, row_limit), local)

    def rolling_report(self, seconds: int, row_limit=None,
                       now: Optional[datetime] = None) -> ReportResult:
        return self.run_report(ReportRequest.rolling(seconds, row_limit), self.local_now(now))

    def run_catalog(self, now: Optional[datetime] = None, row_limit=None,
                    rolling: Iterable[int] = DEFAULT_ROLLING_REPORTS) -> List[ReportResult]:
        """Evaluate every report of the page against one captured instant"""
        local = self.local_now(now)
        return [
            self.run_report(request, local)
            for request in build_catalog(local, row_limit, rolling)
        ]

    def recent_log(self, row_limit=None) -> ClickLog:
        """Most recent clicks, newest first"""
        limit, used_default = normalize_row_limit(row_limit, self.settings.DEFAULT_ROW_LIMIT)

        entries = []
        for row in self.store.recent_clicks(limit):
            ip_origin = row.ip_address or ""
            if row.country_code:
                ip_origin += f"{self.settings.SEPARATOR}({row.country_code})"

            entries.append(ClickLogEntry(
                clicked_at=row.clicked_at,
                short_code=row.short_code,
                referer=row.referer,
                original_url=row.original_url,
                title=row.title,
                ip_address=row.ip_address,
                country_code=row.country_code,
                ip_origin=ip_origin
            ))

        return ClickLog(entries=entries, used_default_limit=used_default)
