from .report import TimeWindowResponse, RankedEntryResponse, ReportResponse, PopularClicksPage
from .log import ClickLogEntryResponse, ClickLogResponse

__all__ = [
    "TimeWindowResponse", "RankedEntryResponse", "ReportResponse", "PopularClicksPage",
    "ClickLogEntryResponse", "ClickLogResponse"
]
