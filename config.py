"""
Pydantic model for startup settings, read from the environment.
"""
import os
from datetime import date
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    """Validated settings for one grid session"""

    api_key: str
    user: str
    start_month: Optional[str] = None  # "YYYY-MM"; defaults to a year back
    cache_dir: str = "cache"
    log_level: str = "INFO"

    @field_validator("api_key", "user")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("start_month")
    @classmethod
    def validate_start_month(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        try:
            year, month = (int(part) for part in v.split("-"))
            date(year, month, 1)
        except ValueError:
            raise ValueError(f"Start month must look like YYYY-MM, got: {v}")
        return f"{year:04d}-{month:02d}"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    def first_month(self, today: Optional[date] = None) -> date:
        """First day of the month the chain starts with"""
        if self.start_month:
            year, month = (int(part) for part in self.start_month.split("-"))
            return date(year, month, 1)
        today = today or date.today()
        # Eleven months back plus the current one fills a year of grids
        months_back = today.year * 12 + today.month - 1 - 11
        return date(months_back // 12, months_back % 12 + 1, 1)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        return cls(
            api_key=environ.get("LASTFM_API_KEY", ""),
            user=environ.get("LASTFM_USER", ""),
            start_month=environ.get("GRID_START_MONTH"),
            cache_dir=environ.get("GRID_CACHE_DIR", "cache"),
            log_level=environ.get("LOG_LEVEL", "INFO"),
        )
