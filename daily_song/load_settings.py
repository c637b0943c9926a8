import os
from datetime import date
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()

start_date_utc = os.getenv("START_DATE_UTC", "2025-05-22")
reset_offset_hours = os.getenv("RESET_OFFSET_HOURS", "2")
snippet_seconds = os.getenv("SNIPPET_SECONDS", "0.2,1,2,4,8,15")
track_length = os.getenv("TRACK_LENGTH", "15")
fr_playlist_url = os.getenv(
    "FR_PLAYLIST_URL", "https://www.deezer.com/fr/playlist/13800391181"
)
en_playlist_url = os.getenv(
    "EN_PLAYLIST_URL", "https://www.deezer.com/fr/playlist/7873409502"
)
playlist_fetch_limit = os.getenv("PLAYLIST_FETCH_LIMIT", "500")
playlist_cache_ttl = os.getenv("PLAYLIST_CACHE_TTL", "3600")
persistent_window_days = os.getenv("PERSISTENT_WINDOW_DAYS", "3")
database_url = os.getenv("DATABASE_URL")
site_host = os.getenv("SITE_HOST", "https://devinelamusique.fr")
log_level = os.getenv("LOG_LEVEL", "INFO").upper()

ATTEMPT_COUNT = 6


class GameSettings(BaseModel):
    """Constants shared by the server and the client.

    Day numbering only agrees across callers when both use the same origin
    and offset, so the client reads them from /api/config instead of keeping
    its own copy.
    """

    start_date_utc: date
    reset_offset_hours: int
    snippet_seconds: List[float]
    track_length: float
    fr_playlist_url: str
    en_playlist_url: str
    playlist_fetch_limit: int = 500
    playlist_cache_ttl: int = 3600
    persistent_window_days: int = 3
    site_host: str = "https://devinelamusique.fr"

    @field_validator("reset_offset_hours")
    @classmethod
    def check_offset(cls, value: int) -> int:
        if not -23 <= value <= 23:
            raise ValueError("reset_offset_hours must be between -23 and 23")
        return value

    @field_validator("snippet_seconds", mode="before")
    @classmethod
    def split_snippet_seconds(cls, value):
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("snippet_seconds")
    @classmethod
    def check_snippet_seconds(cls, value: List[float]) -> List[float]:
        if len(value) != ATTEMPT_COUNT:
            raise ValueError(f"snippet_seconds must have {ATTEMPT_COUNT} entries")
        if any(b <= a for a, b in zip(value, value[1:])) or value[0] <= 0:
            raise ValueError("snippet_seconds must be positive and increasing")
        return value

    @field_validator("track_length", "playlist_fetch_limit", "persistent_window_days")
    @classmethod
    def check_positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value


def load_game_settings() -> GameSettings:
    """Build the settings from the environment. Raises ValidationError on bad config."""
    return GameSettings(
        start_date_utc=start_date_utc,
        reset_offset_hours=reset_offset_hours,
        snippet_seconds=snippet_seconds,
        track_length=track_length,
        fr_playlist_url=fr_playlist_url,
        en_playlist_url=en_playlist_url,
        playlist_fetch_limit=playlist_fetch_limit,
        playlist_cache_ttl=playlist_cache_ttl,
        persistent_window_days=persistent_window_days,
        site_host=site_host,
    )


if __name__ == "__main__":
    print(load_game_settings().model_dump_json(indent=2))
