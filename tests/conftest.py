"""
Shared pytest fixtures for all tests.
Provides a fake Deezer API and an app wired to it, so tests run offline.
"""
import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List
from uuid import uuid4

import httpx
import pytest

# The engine is built at import time, so point it at a scratch file first.
_DB_DIR = tempfile.mkdtemp(prefix="daily_song_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'rounds.sqlite3'}"

from fastapi.testclient import TestClient  # noqa: E402

from daily_song.catalog_client import DeezerClient  # noqa: E402
from daily_song.load_settings import GameSettings  # noqa: E402
from daily_song.main import create_app  # noqa: E402

# 2025-05-26 12:00 UTC is day 5 with origin 2025-05-22 and a 2h rollover.
NOW = datetime(2025, 5, 26, 12, 0, tzinfo=timezone.utc)
TODAY = 5


def make_track(track_id: int, title: str, artist: str, album_id: int = 10, preview: str = "auto") -> dict:
    return {
        "id": track_id,
        "title": f"{title} (Remastered)",
        "title_short": title,
        "duration": 200,
        "preview": f"https://cdn.example/{track_id}.mp3" if preview == "auto" else preview,
        "artist": {"id": track_id * 100, "name": artist},
        "album": {"id": album_id, "title": f"Album {album_id}", "cover_medium": f"https://img.example/{album_id}.jpg"},
    }


FR_TRACKS = [
    make_track(1, "Étoile", "Zaz"),
    make_track(2, "Je veux", "Zaz"),
    make_track(3, "Tout le bonheur", "Christophe Maé"),
]
EN_TRACKS = [
    make_track(4, "Hello", "Adele"),
    make_track(5, "Flowers", "Miley Cyrus"),
]
RAP_FR_TRACKS = [
    make_track(6, "Bande organisée", "Jul"),
]


def deezer_routes() -> Dict[str, object]:
    return {
        "/playlist/111": {"id": 111, "tracks": {"data": FR_TRACKS}},
        "/playlist/222": {"id": 222, "tracks": {"data": EN_TRACKS}},
        "/playlist/11928321221": {"id": 11928321221, "tracks": {"data": RAP_FR_TRACKS}},
        "/search": {"data": [
            {"id": 1, "title": "Étoile", "artist": {"name": "Zaz"}},
            {"id": 9, "title": "", "artist": {"name": "Nobody"}},
        ]},
        "/editorial/110/charts": {"tracks": {"data": [
            make_track(7, "Je te le donne", "Vitaa", album_id=70),
            make_track(8, "Shape of you", "Ed Sheeran", album_id=80),
            make_track(9, "Nopreview", "Nobody", album_id=90, preview=""),
        ]}},
        "/album/70": {"release_date": "2021-03-05", "genres": {"data": [{"name": "Pop"}]}},
        "/album/80": {"release_date": "2017-01-06", "genres": {"data": [{"name": "Dance"}]}},
        "/genre/116/artists": {"data": [{"id": 31}]},
        "/artist/31/top": {"data": [make_track(11, "Bande organisée", "Jul", album_id=71)]},
        "/album/71": {"release_date": "2020-09-01", "genres": {"data": [{"name": "Rap/Hip Hop"}]}},
    }


class FakeDeezer:
    """Records every request and answers from a path -> JSON table."""

    def __init__(self, routes: Dict[str, object]):
        self.routes = routes
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, List[int]] = {}  # path -> status codes to answer first

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        pending = self.failures.get(path)
        if pending:
            return httpx.Response(pending.pop(0))
        if path not in self.routes:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.routes[path])

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings(
        start_date_utc=date(2025, 5, 22),
        reset_offset_hours=2,
        snippet_seconds=[0.2, 1, 2, 4, 8, 15],
        track_length=15,
        fr_playlist_url="https://www.deezer.com/fr/playlist/111",
        en_playlist_url="https://www.deezer.com/fr/playlist/222",
        site_host="https://example.test",
    )


@pytest.fixture
def fake_deezer() -> FakeDeezer:
    return FakeDeezer(deezer_routes())


@pytest.fixture
def make_catalog(fake_deezer: FakeDeezer) -> Callable[[], DeezerClient]:
    def factory(**kwargs) -> DeezerClient:
        transport = httpx.MockTransport(fake_deezer.handler)
        kwargs.setdefault("sleep", no_sleep)
        return DeezerClient(client=httpx.AsyncClient(transport=transport), **kwargs)

    return factory


@pytest.fixture
def client(settings, make_catalog):
    app = create_app(
        settings=settings,
        catalog=make_catalog(),
        clock=lambda: NOW,
        start_scheduler=False,
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def player_id() -> str:
    return uuid4().hex
