from types import SimpleNamespace

import pytest

from daily_song.domain.catalog_rules import (
    dedupe_by_id,
    detect_language,
    editorial_id_from_url,
    map_genre_name,
    playlist_id_from_url,
    year_from_release_date,
)
from daily_song import sources
from daily_song.sources import chart_source


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Rap/Hip Hop", "rap"),
        ("Hip-Hop", "rap"),
        ("Pop", "pop"),
        ("Dance", "electro"),
        ("Electro", "electro"),
        ("Deep House", "electro"),
        ("Rock", "rock"),
        ("Jazz", "Jazz"),
        (None, None),
        ("", None),
    ],
)
def test_map_genre_name(name, expected):
    assert map_genre_name(name) == expected


def test_detect_language():
    assert detect_language("Je te le donne", "Vitaa") == "fr"
    assert detect_language("Shape of you", "Ed Sheeran") == "en"
    assert detect_language("Bande organisée", "Jul") == "other"
    assert detect_language("", "") == "other"


def test_dedupe_keeps_first_occurrence():
    items = [SimpleNamespace(id=i, tag=t) for i, t in [(1, "a"), (2, "b"), (1, "c"), (3, "d")]]
    assert [(x.id, x.tag) for x in dedupe_by_id(items)] == [(1, "a"), (2, "b"), (3, "d")]


def test_playlist_id_from_url():
    assert playlist_id_from_url("https://www.deezer.com/fr/playlist/13800391181") == "13800391181"
    assert playlist_id_from_url("https://www.deezer.com/playlist/42?utm=x") == "42"
    assert playlist_id_from_url("https://www.deezer.com/fr/album/42") is None
    assert playlist_id_from_url("") is None


def test_year_from_release_date():
    assert year_from_release_date("2021-03-05") == 2021
    assert year_from_release_date("soon") is None
    assert year_from_release_date(None) is None


def test_editorial_id_from_url():
    assert editorial_id_from_url("https://api.deezer.com/editorial/110/charts") == 110
    assert editorial_id_from_url("https://www.deezer.com/fr/playlist/42") is None


def test_chart_source_comes_from_sources(monkeypatch):
    assert chart_source().id == "fr-editorial-charts"
    monkeypatch.setattr(sources, "SOURCES", [s for s in sources.SOURCES if s.type == "playlist"])
    with pytest.raises(LookupError):
        chart_source()
