from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class TimeWindowResponse(BaseModel):
    """Bounds a report was computed over, both inclusive"""
    from_: datetime = Field(..., alias="from")
    to: datetime

    class Config:
        populate_by_name = True


class RankedEntryResponse(BaseModel):
    """One link in a popular clicks ranking"""
    link_id: str
    click_count: int
    destination_url: str
    title: Optional[str] = None
    short_url: str


class ReportResponse(BaseModel):
    """A single popular clicks report"""
    label: str
    kind: str  # "rolling" or "fixed"
    granularity: Optional[str] = None
    periods_ago: Optional[int] = None
    seconds: Optional[int] = None
    window: TimeWindowResponse
    entries: List[RankedEntryResponse]
    total_clicks: int
    used_default_limit: bool
    no_results: bool
    message: Optional[str] = None
    error: Optional[str] = None


class PopularClicksPage(BaseModel):
    """Every report of the page, evaluated at one instant"""
    generated_at: datetime  # local (offset-adjusted) time
    reports: List[ReportResponse]
