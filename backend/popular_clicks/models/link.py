from sqlalchemy import Column, String, DateTime, func
from ..database import Base


class Link(Base):
    """Short link owned by the host application"""
    __tablename__ = "links"

    short_code = Column(String(200), primary_key=True)
    original_url = Column(String(2048), nullable=False)
    title = Column(String(1024), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Link {self.short_code} -> {self.original_url}>"
