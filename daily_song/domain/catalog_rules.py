"""Catalog heuristics that are independent from HTTP.

Rule of thumb:
- OK: mapping catalog names to game genres, guessing a track language.
- Not OK: fetching anything.
"""

import re
from typing import Iterable, List, Optional, TypeVar

T = TypeVar("T")

GENRE_NAME_TO_ID = {
    "rap": 116,  # Hip-Hop/Rap
    "pop": 132,
    "electro": 106,
    "rock": 152,
}

FR_HINTS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"l[aâ] ", r"le ", r"la ", r"les ", r"mon ", r"ma ", r"mes ", r"ne ",
        r"pas ", r"je ", r"tu ", r"toi", r"moi", r"avec", r"sans",
    )
]
EN_HINTS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r" the ", r" you ", r" love ", r"i\s", r" don't ", r" can't ")
]


def map_genre_name(name: Optional[str]) -> Optional[str]:
    """Fold a catalog genre name into one of the game genres when possible."""
    if not name:
        return None
    g = name.lower()
    if "hip" in g or "rap" in g:
        return "rap"
    if "pop" in g:
        return "pop"
    if "electro" in g or "dance" in g or "house" in g:
        return "electro"
    if "rock" in g:
        return "rock"
    return name


def detect_language(title: str, artist: str) -> str:
    lower = f"{title or ''} {artist or ''}".lower()
    if any(r.search(lower) for r in FR_HINTS):
        return "fr"
    if any(r.search(lower) for r in EN_HINTS):
        return "en"
    return "other"


def dedupe_by_id(items: Iterable[T]) -> List[T]:
    """Keep the first occurrence of every id, preserving order."""
    seen = set()
    out = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            out.append(item)
    return out


def playlist_id_from_url(url: str) -> Optional[str]:
    match = re.search(r"playlist/(\d+)", url or "")
    return match.group(1) if match else None


def year_from_release_date(value: Optional[str]) -> Optional[int]:
    if not value or len(value) < 4 or not value[:4].isdigit():
        return None
    return int(value[:4])


def editorial_id_from_url(url: str) -> Optional[int]:
    match = re.search(r"editorial/(\d+)", url or "")
    return int(match.group(1)) if match else None
