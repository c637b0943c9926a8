import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from daily_song.cache import PlaylistCache
from daily_song.catalog_client import DeezerClient
from daily_song.dependencies import get_cache, get_catalog, get_daily_service, get_settings
from daily_song.domain.catalog_rules import GENRE_NAME_TO_ID
from daily_song.domain.day_resolver import clamp_day, day_start
from daily_song.load_settings import GameSettings
from daily_song.models.dc_models import (
    ConfigModel,
    DailyModel,
    SearchModel,
    SongsFiltersModel,
    SongsModel,
)
from daily_song.services.daily_service import DailyService
from daily_song.services.song_pool import browse_songs, search_suggestions

NO_STORE = {"cache-control": "no-store"}

rest_router = APIRouter()


def parse_lang(raw: Optional[str], allow_all: bool = False) -> str:
    """Anything but "en" (or "all" where allowed) means French."""
    lang = (raw or "fr").lower()
    if lang == "en":
        return "en"
    if allow_all and lang == "all":
        return "all"
    return "fr"


def parse_genre(raw: Optional[str]) -> str:
    return "rap" if (raw or "").lower() == "rap" else "all"


def parse_int(raw: Optional[str], default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class DailyAPI:
    @staticmethod
    @rest_router.get("/api/daily", response_model=DailyModel)
    async def get_daily(
        n: Optional[str] = None,
        lang: Optional[str] = None,
        genre: Optional[str] = None,
        daily_service: DailyService = Depends(get_daily_service),
    ):
        today = daily_service.today()
        day = clamp_day(n, today)
        daily = await daily_service.resolve(
            day, parse_lang(lang, allow_all=True), parse_genre(genre)
        )
        if daily is None:
            return JSONResponse(
                {"error": "No tracks available"}, status_code=500, headers=NO_STORE
            )
        return JSONResponse(daily.model_dump(mode="json"), headers=NO_STORE)


class SearchAPI:
    @staticmethod
    @rest_router.get("/api/search", response_model=SearchModel)
    async def search(
        q: str = "",
        limit: Optional[str] = None,
        catalog: DeezerClient = Depends(get_catalog),
    ) -> SearchModel:
        suggestions = await search_suggestions(catalog, q, parse_int(limit, 10))
        return SearchModel(suggestions=suggestions)


class SongsAPI:
    @staticmethod
    @rest_router.get("/api/songs", response_model=SongsModel)
    async def get_songs(
        genre: Optional[str] = None,
        lang: Optional[str] = None,
        catalog: DeezerClient = Depends(get_catalog),
        cache: PlaylistCache = Depends(get_cache),
        settings: GameSettings = Depends(get_settings),
    ) -> SongsModel:
        genre_filter = (genre or "all").lower()
        if genre_filter not in GENRE_NAME_TO_ID:
            genre_filter = "all"
        lang_filter = (lang or "all").lower()
        if lang_filter not in ("fr", "en"):
            lang_filter = "all"
        songs = await browse_songs(
            catalog, cache, genre_filter, lang_filter, settings.playlist_cache_ttl
        )
        logging.debug(f"songs: {len(songs)} for genre={genre_filter} lang={lang_filter}")
        return SongsModel(
            songs=songs, filters=SongsFiltersModel(genre=genre_filter, lang=lang_filter)
        )


class ConfigAPI:
    @staticmethod
    @rest_router.get("/api/config", response_model=ConfigModel)
    async def get_config(
        settings: GameSettings = Depends(get_settings),
        daily_service: DailyService = Depends(get_daily_service),
    ) -> ConfigModel:
        today = daily_service.today()
        return ConfigModel(
            start_date_utc=settings.start_date_utc.isoformat(),
            reset_offset_hours=settings.reset_offset_hours,
            snippet_seconds=settings.snippet_seconds,
            track_length=settings.track_length,
            today=today,
            next_day_at=day_start(
                today + 1, settings.start_date_utc, settings.reset_offset_hours
            ),
        )
