"""
elastico Configuration

Configuration is loaded from:
1. Environment variables (prefixed with ELASTICO_)
2. ~/.elastico/.env file

Key settings:
- ELASTICO_URL: Elasticsearch base URL (default: http://psmetric04:9200)
- ELASTICO_INDEX: Index holding the log lines (default: lclslogs)
- ELASTICO_UTC_OFFSET: Fixed offset every time window is normalized to
"""

import logging
import re
from datetime import timedelta, timezone
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):(?P<minutes>\d{2})\Z")


def parse_offset(value: str) -> timezone:
    """Build a fixed-offset tzinfo from text like '-08:00'.

    Raises:
        ValueError: wrong shape, or an offset of a day or more
    """
    m = _OFFSET_RE.match(value)
    if not m:
        raise ValueError("utc_offset must look like '-08:00'")
    if int(m["minutes"]) >= 60:
        raise ValueError(f"utc_offset minutes out of range: '{value}'")
    delta = timedelta(hours=int(m["hours"]), minutes=int(m["minutes"]))
    if m["sign"] == "-":
        delta = -delta
    # timezone() rejects offsets of 24 hours or more with its own ValueError
    return timezone(delta)


class Settings(BaseSettings):
    """elastico configuration settings."""

    url: str = "http://psmetric04:9200"
    index: str = "lclslogs"

    # Field holding the raw log line, searched and highlighted
    default_field: str = "src"
    # Field holding the log date, used for range filter and sort
    date_field: str = "date"

    timeout: float = Field(default=30.0, gt=0)
    utc_offset: str = "-08:00"
    default_limit: int = Field(default=20, ge=1, le=10_000)

    model_config = SettingsConfigDict(
        env_prefix="ELASTICO_",
        env_file=Path.home() / ".elastico" / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("utc_offset")
    @classmethod
    def _check_offset(cls, value: str) -> str:
        value = value.strip()
        parse_offset(value)
        return value

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def tzinfo(self) -> timezone:
        """The fixed offset as a tzinfo object."""
        return parse_offset(self.utc_offset)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache settings."""
    settings = Settings()
    logger.debug(f"Settings loaded: url={settings.url} index={settings.index}")
    return settings


def reload_settings() -> Settings:
    """Clear cached settings (useful for tests) and reload."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "parse_offset", "reload_settings"]
