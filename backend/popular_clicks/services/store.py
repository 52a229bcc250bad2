import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Click, Link

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the click log cannot be queried"""


@dataclass(frozen=True)
class ClickCountRow:
    short_code: str
    clicks: int
    original_url: str
    title: Optional[str]


@dataclass(frozen=True)
class ClickLogRow:
    clicked_at: datetime
    short_code: str
    referer: Optional[str]
    original_url: str
    title: Optional[str]
    ip_address: Optional[str]
    country_code: Optional[str]


class ClickEventStore(Protocol):
    def count_clicks(self, since: datetime, until: Optional[datetime],
                     limit: Optional[int]) -> List[ClickCountRow]:
        ...

    def recent_clicks(self, limit: int) -> List[ClickLogRow]:
        ...


class SqlClickEventStore:
    """Click log queries against the host database"""

    def __init__(self, db: Session):
        self.db = db

    def count_clicks(self, since: datetime, until: Optional[datetime] = None,
                     limit: Optional[int] = None) -> List[ClickCountRow]:
        """
        Count clicks per existing link between two bounds.

        Args:
            since: Inclusive lower bound
            until: Inclusive upper bound, None for no upper bound
            limit: Maximum number of links, None for all of them

        Returns:
            Rows ordered by clicks descending, then short code ascending
        """
        clicks = func.count(Click.id)

        query = self.db.query(
            Click.short_code,
            clicks.label('clicks'),
            Link.original_url,
            Link.title
        ).join(
            Link, Link.short_code == Click.short_code
        ).filter(
            Click.clicked_at >= since
        )

        if until is not None:
            query = query.filter(Click.clicked_at <= until)

        query = query.group_by(
            Click.short_code,
            Link.original_url,
            Link.title
        ).order_by(
            clicks.desc(),
            Click.short_code.asc()
        )

        if limit is not None:
            query = query.limit(limit)

        try:
            results = query.all()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not count clicks: {e}") from e

        logger.debug("Counted clicks for %d links from %s to %s", len(results), since, until or "now")

        return [
            ClickCountRow(
                short_code=row.short_code,
                clicks=row.clicks,
                original_url=row.original_url,
                title=row.title
            )
            for row in results
        ]

    def recent_clicks(self, limit: int) -> List[ClickLogRow]:
        """Most recent click events for links that still exist"""
        query = self.db.query(
            Click.clicked_at,
            Click.short_code,
            Click.referer,
            Click.ip_address,
            Click.country_code,
            Link.original_url,
            Link.title
        ).join(
            Link, Link.short_code == Click.short_code
        ).order_by(
            Click.clicked_at.desc(),
            Click.id.desc()
        ).limit(limit)

        try:
            results = query.all()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read the click log: {e}") from e

        return [
            ClickLogRow(
                clicked_at=row.clicked_at,
                short_code=row.short_code,
                referer=row.referer,
                original_url=row.original_url,
                title=row.title,
                ip_address=row.ip_address,
                country_code=row.country_code
            )
            for row in results
        ]
