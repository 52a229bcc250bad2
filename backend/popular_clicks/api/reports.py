import logging
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..schemas.log import ClickLogEntryResponse, ClickLogResponse
from ..schemas.report import (
    PopularClicksPage,
    RankedEntryResponse,
    ReportResponse,
    TimeWindowResponse,
)
from ..services.popular_clicks import PopularClicks, ReportResult
from ..services.store import SqlClickEventStore, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def get_now() -> datetime:
    """Current instant, captured once per request"""
    return datetime.now(timezone.utc)


def get_popular_clicks(
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
) -> PopularClicks:
    return PopularClicks(SqlClickEventStore(db), app_settings)


def parse_row_limit(limit: Optional[str]) -> Optional[int]:
    """Non-numeric limits are left for the default to replace"""
    if limit is None:
        return None
    try:
        return int(limit)
    except ValueError:
        return None


def short_url(app_settings: Settings, short_code: str) -> str:
    return f"{app_settings.BASE_URL}/{short_code}"


def report_response(result: ReportResult, app_settings: Settings) -> ReportResponse:
    request = result.request
    return ReportResponse(
        label=request.label,
        kind=request.kind.value,
        granularity=request.granularity.value if request.granularity else None,
        periods_ago=request.periods_ago if request.granularity else None,
        seconds=request.seconds,
        window=TimeWindowResponse(from_=result.window.start, to=result.window.end),
        entries=[
            RankedEntryResponse(
                link_id=entry.link_id,
                click_count=entry.click_count,
                destination_url=entry.destination_url,
                title=entry.title,
                short_url=short_url(app_settings, entry.link_id)
            )
            for entry in result.entries
        ],
        total_clicks=result.total_clicks,
        used_default_limit=result.used_default_limit,
        no_results=result.no_results,
        message=result.message,
        error=result.error
    )


@router.get("", response_model=PopularClicksPage)
async def get_popular_clicks_page(
    limit: Optional[str] = Query(None, description="Rows per report, defaults to 10"),
    reports: PopularClicks = Depends(get_popular_clicks),
    now: datetime = Depends(get_now)
):
    """
    Get every popular clicks report of the page.

    All reports share one captured instant. A report whose query fails
    carries its error instead of entries; the others are unaffected.
    """
    results = reports.run_catalog(now, parse_row_limit(limit))

    return PopularClicksPage(
        generated_at=reports.local_now(now),
        reports=[report_response(result, reports.settings) for result in results]
    )


@router.get("/fixed/{granularity}", response_model=ReportResponse)
async def get_fixed_report(
    granularity: Literal["hour", "day", "week", "month", "year", "all"],
    periods_ago: int = Query(0, ge=0, description="0 for the current period, 1 for the previous one"),
    limit: Optional[str] = Query(None),
    reports: PopularClicks = Depends(get_popular_clicks),
    now: datetime = Depends(get_now)
):
    """
    Get popular clicks for one calendar period.

    Path params:
    - granularity: "hour" | "day" | "week" | "month" | "year" | "all"
    """
    result = reports.fixed_report(granularity, periods_ago, parse_row_limit(limit), now)

    if result.failed:
        raise HTTPException(status_code=503, detail=result.error)

    return report_response(result, reports.settings)


@router.get("/rolling", response_model=ReportResponse)
async def get_rolling_report(
    seconds: int = Query(60 * 60, ge=1, description="How far to look back"),
    limit: Optional[str] = Query(None),
    reports: PopularClicks = Depends(get_popular_clicks),
    now: datetime = Depends(get_now)
):
    """Get popular clicks for the last `seconds` seconds"""
    result = reports.rolling_report(seconds, parse_row_limit(limit), now)

    if result.failed:
        raise HTTPException(status_code=503, detail=result.error)

    return report_response(result, reports.settings)


@router.get("/log", response_model=ClickLogResponse)
async def get_click_log(
    limit: Optional[str] = Query(None),
    reports: PopularClicks = Depends(get_popular_clicks)
):
    """Get the most recent clicks"""
    try:
        log = reports.recent_log(parse_row_limit(limit))
    except StoreError as e:
        logger.exception("Click log query failed")
        raise HTTPException(status_code=503, detail=str(e))

    return ClickLogResponse(
        entries=[
            ClickLogEntryResponse(
                clicked_at=entry.clicked_at,
                short_code=entry.short_code,
                short_url=short_url(reports.settings, entry.short_code),
                referer=entry.referer,
                original_url=entry.original_url,
                title=entry.title,
                ip_address=entry.ip_address,
                country_code=entry.country_code,
                ip_origin=entry.ip_origin
            )
            for entry in log.entries
        ],
        used_default_limit=log.used_default_limit,
        no_results=log.no_results,
        message=log.message
    )
