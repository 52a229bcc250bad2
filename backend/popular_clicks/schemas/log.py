from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel


class ClickLogEntryResponse(BaseModel):
    """A single click from the raw log"""
    clicked_at: datetime
    short_code: str
    short_url: str
    referer: Optional[str] = None
    original_url: str
    title: Optional[str] = None
    ip_address: Optional[str] = None
    country_code: Optional[str] = None
    ip_origin: str


class ClickLogResponse(BaseModel):
    """Most recent clicks, newest first"""
    entries: List[ClickLogEntryResponse]
    used_default_limit: bool
    no_results: bool
    message: Optional[str] = None
