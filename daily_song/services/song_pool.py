import logging
from typing import List

from daily_song.cache import PlaylistCache
from daily_song.catalog_client import CatalogError, DeezerClient
from daily_song.domain.catalog_rules import GENRE_NAME_TO_ID, editorial_id_from_url
from daily_song.models.dc_models import SongModel, SuggestionModel
from daily_song.sources import chart_source

MAX_SONGS = 50
MAX_SUGGESTIONS = 20
MIN_QUERY_LENGTH = 2


async def search_suggestions(catalog: DeezerClient, q: str, limit: int = 10) -> List[SuggestionModel]:
    """Title/artist suggestions for the guess input. Failures give an empty list."""
    q = (q or "").strip()
    if len(q) < MIN_QUERY_LENGTH:
        return []
    limit = min(max(limit, 1), MAX_SUGGESTIONS)
    try:
        return await catalog.search(q, limit)
    except CatalogError as e:
        logging.warning(f"Search failed for {q!r}: {e}")
        return []


async def browse_songs(
    catalog: DeezerClient, cache: PlaylistCache, genre: str, lang: str, ttl_seconds: float
) -> List[SongModel]:
    """Song pool from the France charts, or from a genre's top artists.

    Unknown genres fall back to the charts; lang "all" disables the filter.
    """
    if genre in GENRE_NAME_TO_ID:
        key = f"songs:{genre}"

        async def load():
            return await catalog.fetch_genre_songs(genre)
    else:
        key = "songs:all"
        charts = chart_source()

        async def load():
            return await catalog.fetch_chart_songs(
                editorial_id_from_url(charts.url), charts.limit or MAX_SONGS
            )

    try:
        base_songs = await cache.cached_fetch(key, ttl_seconds, load)
    except CatalogError as e:
        logging.error(f"Song pool {key} unavailable: {e}")
        return []
    songs = [s for s in base_songs if lang == "all" or s.language == lang]
    return songs[:MAX_SONGS]
