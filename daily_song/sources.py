from dataclasses import dataclass
from typing import List, Optional, Tuple

from daily_song.load_settings import GameSettings


@dataclass(frozen=True)
class SourceDef:
    id: str
    type: str  # "editorial_charts" | "playlist"
    url: str
    language: str
    genre: str
    limit: Optional[int] = None
    provider: str = "deezer"


# Edit this list to control which charts/playlists feed the genre rounds.
SOURCES: List[SourceDef] = [
    SourceDef(
        id="fr-editorial-charts",
        type="editorial_charts",
        url="https://api.deezer.com/editorial/110/charts",
        language="fr",
        genre="pop",
        limit=50,
    ),
    SourceDef(
        id="playlist-11928321221-rap-fr",
        type="playlist",
        url="https://www.deezer.com/fr/playlist/11928321221",
        language="fr",
        genre="rap",
        limit=50,
    ),
    SourceDef(
        id="playlist-4676818664-rap-en",
        type="playlist",
        url="https://www.deezer.com/fr/playlist/4676818664",
        language="en",
        genre="rap",
        limit=50,
    ),
    SourceDef(
        id="playlist-1189520191-pop-fr",
        type="playlist",
        url="https://www.deezer.com/fr/playlist/1189520191",
        language="fr",
        genre="pop",
        limit=50,
    ),
    SourceDef(
        id="playlist-7873409502-pop-en",
        type="playlist",
        url="https://www.deezer.com/fr/playlist/7873409502",
        language="en",
        genre="pop",
        limit=50,
    ),
]


def playlists_for(lang: str, genre: str, settings: GameSettings) -> List[Tuple[str, str, int]]:
    """Return the (url, language, limit) playlists that make up a daily pool.

    Genre "all" uses the main playlist of each language; other genres use
    the matching playlist sources. Lang "all" concatenates FR then EN.
    """
    languages = ["fr", "en"] if lang == "all" else [lang]
    out = []
    for language in languages:
        if genre == "all":
            url = settings.fr_playlist_url if language == "fr" else settings.en_playlist_url
            out.append((url, language, settings.playlist_fetch_limit))
            continue
        for source in SOURCES:
            if source.type == "playlist" and source.language == language and source.genre == genre:
                out.append((source.url, language, source.limit or settings.playlist_fetch_limit))
    return out


def chart_source() -> SourceDef:
    """The editorial charts source behind the browsable song pool."""
    for source in SOURCES:
        if source.type == "editorial_charts":
            return source
    raise LookupError("No editorial_charts entry in SOURCES")
