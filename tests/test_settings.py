from datetime import date

import pytest
from pydantic import ValidationError

from daily_song import load_settings
from daily_song.load_settings import GameSettings


def build(**overrides) -> GameSettings:
    values = dict(
        start_date_utc="2025-05-22",
        reset_offset_hours=2,
        snippet_seconds="0.2, 1, 2, 4, 8, 15",
        track_length=15,
        fr_playlist_url="https://www.deezer.com/fr/playlist/111",
        en_playlist_url="https://www.deezer.com/fr/playlist/222",
    )
    values.update(overrides)
    return GameSettings(**values)


def test_parses_string_values():
    settings = build()
    assert settings.start_date_utc == date(2025, 5, 22)
    assert settings.snippet_seconds == [0.2, 1, 2, 4, 8, 15]
    assert settings.playlist_cache_ttl == 3600
    assert settings.persistent_window_days == 3


@pytest.mark.parametrize(
    "overrides",
    [
        {"reset_offset_hours": 24},
        {"reset_offset_hours": -30},
        {"snippet_seconds": "1,2,3"},
        {"snippet_seconds": [1, 2, 2, 4, 8, 15]},
        {"snippet_seconds": [0, 1, 2, 4, 8, 15]},
        {"track_length": 0},
        {"playlist_fetch_limit": -1},
        {"persistent_window_days": 0},
        {"start_date_utc": "not a date"},
    ],
)
def test_rejects_bad_values(overrides):
    with pytest.raises(ValidationError):
        build(**overrides)


def test_load_game_settings_uses_module_values(monkeypatch):
    monkeypatch.setattr(load_settings, "reset_offset_hours", "-5")
    monkeypatch.setattr(load_settings, "start_date_utc", "2024-01-01")
    settings = load_settings.load_game_settings()
    assert settings.reset_offset_hours == -5
    assert settings.start_date_utc == date(2024, 1, 1)
