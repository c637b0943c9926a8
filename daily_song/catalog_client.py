import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from daily_song.domain.catalog_rules import (
    GENRE_NAME_TO_ID,
    detect_language,
    map_genre_name,
    playlist_id_from_url,
    year_from_release_date,
)
from daily_song.models.dc_models import SongModel, SuggestionModel

DEEZER_API_URL = "https://api.deezer.com"
MAX_ENRICHED_ALBUMS = 60


class CatalogError(Exception):
    """Raised when the music catalog cannot be reached or answers an error."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class DeezerClient:
    """Async client for the parts of the Deezer API the game consumes."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEEZER_API_URL,
        tries: int = 3,
        backoff_sec: float = 0.25,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client or httpx.AsyncClient(timeout=20.0)
        self.base_url = base_url.rstrip("/")
        self.tries = tries
        self.backoff_sec = backoff_sec
        self._sleep = sleep

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, retrying on 429/5xx and transport errors.

        Args:
            url (str): Absolute URL or a path under the API base URL
            params (dict, optional): Query parameters

        Raises:
            CatalogError: Non-retryable status, or every attempt failed

        Returns:
            Any: Decoded JSON body
        """
        if not url.startswith("http"):
            url = f"{self.base_url}/{url.lstrip('/')}"
        wait = self.backoff_sec
        last_error: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                response = await self.client.get(url, params=params)
            except httpx.TransportError as e:
                last_error = e
                logging.warning(
                    f"Attempt {attempt + 1}/{self.tries} failed for {url}: {e}"
                )
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise CatalogError(f"Invalid JSON from {url}") from e
                if not _is_retryable(response.status_code):
                    raise CatalogError(
                        f"HTTP {response.status_code} for {url}",
                        status_code=response.status_code,
                    )
                last_error = CatalogError(
                    f"HTTP {response.status_code} for {url}",
                    status_code=response.status_code,
                )
                logging.warning(
                    f"Attempt {attempt + 1}/{self.tries} got {response.status_code} for {url}"
                )
            if attempt < self.tries - 1:
                await self._sleep(wait)
                wait *= 2
        logging.error(f"All {self.tries} attempts failed for {url}")
        raise CatalogError(f"Failed to fetch {url}") from last_error

    @staticmethod
    def track_to_song(track: Dict[str, Any], language: Optional[str] = None) -> Optional[SongModel]:
        """Convert a catalog track to a SongModel. Tracks without a preview are dropped."""
        artist = track.get("artist") or {}
        album = track.get("album") or {}
        title = track.get("title_short") or track.get("title")
        if not track.get("preview") or track.get("id") is None or not title or not artist.get("name"):
            return None
        duration = track.get("duration")
        return SongModel(
            id=track["id"],
            title=title,
            artist=artist["name"],
            album=album.get("title"),
            length=duration if isinstance(duration, int) else None,
            cover=album.get("cover_medium") or album.get("cover"),
            preview=track["preview"],
            language=language,
        )

    async def fetch_playlist(self, url: str, language: str, limit: int = 300) -> List[SongModel]:
        """Return the playlist tracks in playlist order.

        Raises:
            CatalogError: The playlist or its tracklist could not be fetched
        """
        playlist_id = playlist_id_from_url(url)
        if not playlist_id:
            logging.warning(f"No playlist id in {url}")
            return []
        data = await self.fetch_json(f"playlist/{playlist_id}") or {}
        if data.get("error"):
            # Quota and unknown-playlist errors come back as 200 with an error body.
            raise CatalogError(f"Playlist {playlist_id}: {data['error']}")
        tracks = (data.get("tracks") or {}).get("data") or []
        tracklist = data.get("tracklist")
        if not tracks and tracklist:
            # Large playlists come back without embedded tracks.
            params = None if "limit=" in tracklist else {"limit": limit}
            tracks = ((await self.fetch_json(tracklist, params=params)) or {}).get("data") or []
        songs = [self.track_to_song(t, language) for t in tracks]
        return [s for s in songs if s is not None]

    async def search(self, q: str, limit: int = 10) -> List[SuggestionModel]:
        data = await self.fetch_json("search", params={"q": q, "limit": limit})
        suggestions = []
        for t in (data or {}).get("data") or []:
            title = t.get("title") or t.get("title_short")
            artist = (t.get("artist") or {}).get("name")
            if t.get("id") is not None and title and artist:
                suggestions.append(SuggestionModel(id=t["id"], title=title, artist=artist))
        return suggestions

    async def fetch_chart_songs(self, editorial_id: int, limit: int = 50) -> List[SongModel]:
        data = await self.fetch_json(f"editorial/{editorial_id}/charts", params={"limit": limit})
        tracks = ((data or {}).get("tracks") or {}).get("data") or []
        return await self.enrich_tracks(tracks)

    async def fetch_genre_songs(self, genre: str) -> List[SongModel]:
        """Top tracks of the ten leading artists of a genre."""
        genre_id = GENRE_NAME_TO_ID[genre]
        data = await self.fetch_json(f"genre/{genre_id}/artists")
        artists = ((data or {}).get("data") or [])[:10]

        async def top_tracks(artist_id: int) -> List[dict]:
            try:
                j = await self.fetch_json(f"artist/{artist_id}/top", params={"limit": 5})
                return (j or {}).get("data") or []
            except CatalogError as e:
                logging.warning(f"Top tracks failed for artist {artist_id}: {e}")
                return []

        track_lists = await asyncio.gather(*(top_tracks(a["id"]) for a in artists))
        tracks = [t for tl in track_lists for t in tl]
        return await self.enrich_tracks(tracks)

    async def enrich_tracks(self, tracks: List[dict]) -> List[SongModel]:
        """Add album year and genre to the tracks, then detect their language."""
        album_ids = []
        for t in tracks:
            album_id = (t.get("album") or {}).get("id")
            if album_id and album_id not in album_ids:
                album_ids.append(album_id)

        async def album_details(album_id: int) -> tuple:
            try:
                j = await self.fetch_json(f"album/{album_id}")
            except CatalogError as e:
                logging.debug(f"Album {album_id} lookup failed: {e}")
                return album_id, None
            genres = ((j or {}).get("genres") or {}).get("data") or []
            return album_id, {
                "year": year_from_release_date((j or {}).get("release_date")),
                "genre": map_genre_name(genres[0].get("name") if genres else None),
            }

        results = await asyncio.gather(
            *(album_details(a) for a in album_ids[:MAX_ENRICHED_ALBUMS])
        )
        albums = {album_id: extra for album_id, extra in results if extra}

        songs = []
        for t in tracks:
            song = self.track_to_song(t)
            if song is None:
                continue
            extra = albums.get((t.get("album") or {}).get("id")) or {}
            songs.append(
                song.model_copy(
                    update={
                        "year": extra.get("year"),
                        "genre": extra.get("genre"),
                        "language": detect_language(song.title, song.artist),
                    }
                )
            )
        return songs
