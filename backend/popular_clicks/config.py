import re

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./popular_clicks.db"

    # Domain used to build short URLs in reports
    BASE_URL: str = "http://localhost:8000"

    # Fixed offset from UTC applied to "now" and to stored click times
    HOURS_OFFSET: float = 0

    # Reports
    DEFAULT_ROW_LIMIT: int = 10
    LINK_BLACKLIST: str = ""  # regex on destination URL, empty disables it
    SEPARATOR: str = " | "

    # Echo SQL and log resolved bounds
    DEBUG: bool = False

    @field_validator("LINK_BLACKLIST")
    @classmethod
    def check_link_blacklist(cls, value: str) -> str:
        """Reject patterns that could only fail once a report runs"""
        if value:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"LINK_BLACKLIST is not a valid regex: {e}") from e
        return value

    @property
    def utc_offset_seconds(self) -> int:
        return int(self.HOURS_OFFSET * 60 * 60)

    class Config:
        env_file = ".env"


settings = Settings()


# Dependency to get settings, overridable in tests
def get_settings() -> Settings:
    return settings
