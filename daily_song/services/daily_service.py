"""Song-of-the-day resolution.

- Routers call this module; it owns cache keys and catalog calls.
- Catalog failures degrade to "no tracks" instead of propagating to HTTP.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from daily_song.cache import PlaylistCache
from daily_song.catalog_client import CatalogError, DeezerClient
from daily_song.domain.catalog_rules import dedupe_by_id, playlist_id_from_url
from daily_song.domain.day_resolver import (
    date_to_day_number,
    day_number_to_date,
    song_for_day,
)
from daily_song.load_settings import GameSettings
from daily_song.models.dc_models import DailyModel, SongModel
from daily_song.sources import playlists_for

LANGS = ("fr", "en", "all")
GENRES = ("all", "rap")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def daily_cache_key(lang: str, genre: str, n: int) -> str:
    return f"daily:{lang}:{genre}:{n}"


class DailyService:
    def __init__(
        self,
        settings: GameSettings,
        cache: PlaylistCache,
        catalog: DeezerClient,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.cache = cache
        self.catalog = catalog
        self._clock = clock

    def today(self) -> int:
        return date_to_day_number(
            self._clock(), self.settings.start_date_utc, self.settings.reset_offset_hours
        )

    def day_label(self, n: int) -> str:
        """YYYY-MM-DD label of day n."""
        return day_number_to_date(
            n, self.settings.start_date_utc, self.settings.reset_offset_hours
        ).isoformat()

    def recent_days(self, today: Optional[int] = None) -> List[int]:
        today = today or self.today()
        first = max(today - self.settings.persistent_window_days + 1, 1)
        return list(range(first, today + 1))

    def pinned_keys(self, today: Optional[int] = None) -> Set[str]:
        return {
            daily_cache_key(lang, genre, n)
            for n in self.recent_days(today)
            for lang in LANGS
            for genre in GENRES
        }

    async def playlist(self, lang: str, genre: str) -> List[SongModel]:
        """Songs of the daily pool for (lang, genre), in a stable order.

        Unreachable or empty playlists contribute nothing; neither is cached.
        """
        merged: List[SongModel] = []
        for url, language, limit in playlists_for(lang, genre, self.settings):
            key = f"playlist:{playlist_id_from_url(url)}:{language}"

            async def load(url=url, language=language, limit=limit):
                songs = await self.catalog.fetch_playlist(url, language, limit)
                if not songs:
                    # Raising keeps the empty result out of the cache.
                    raise CatalogError(f"Playlist {url} has no playable tracks")
                return songs

            try:
                songs = await self.cache.cached_fetch(
                    key, self.settings.playlist_cache_ttl, load
                )
            except CatalogError as e:
                logging.error(f"Playlist {url} unavailable: {e}")
                songs = []
            merged.extend(songs)
        return dedupe_by_id(merged)

    async def resolve(self, n: int, lang: str, genre: str) -> Optional[DailyModel]:
        """Resolve day n, or None when no track is available.

        Args:
            n (int): Day number, already clamped to [1, today]
            lang (str): "fr", "en" or "all"
            genre (str): "all" or "rap"

        Returns:
            DailyModel | None: Song of the day with its label date
        """

        async def load() -> DailyModel:
            songs = await self.playlist(lang, genre)
            if not songs:
                raise CatalogError("No tracks available", status_code=500)
            song = song_for_day(songs, n)
            return DailyModel(
                song=song,
                n=n,
                date=self.day_label(n),
                lang=song.language if lang == "all" else lang,
                genre=genre,
            )

        key = daily_cache_key(lang, genre, n)
        try:
            return await self.cache.cached_fetch(
                key,
                self.settings.playlist_cache_ttl,
                load,
                is_persistent=key in self.pinned_keys(),
            )
        except CatalogError as e:
            logging.error(f"Day {n} ({lang}/{genre}) unresolved: {e}")
            return None

    def refresh_persistent_window(self) -> None:
        """Pin the recent days and let everything else expire."""
        today = self.today()
        self.cache.update_persistent_keys(self.pinned_keys(today))
        self.cache.cache_clear()
        logging.info(f"Pinned days {self.recent_days(today)} in cache")
