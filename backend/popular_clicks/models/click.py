from sqlalchemy import Column, Integer, String, DateTime, Index
from ..database import Base


class Click(Base):
    """Click event recorded by the host on every redirect.

    No foreign key to links: the log outlives deleted links, reports
    drop those events through the inner join instead.
    """
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True)
    clicked_at = Column(DateTime, nullable=False)  # offset-adjusted local time
    short_code = Column(String(200), nullable=False)
    referer = Column(String(512), nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv4 or IPv6
    country_code = Column(String(2), nullable=True)

    __table_args__ = (
        Index('idx_clicks_time_code', 'clicked_at', 'short_code'),
    )

    def __repr__(self):
        return f"<Click {self.id} for link {self.short_code}>"
