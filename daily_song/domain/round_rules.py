"""Round rules for one day's answer.

A round moves idle -> playing -> won | lost. Every transition returns a new
RoundStateModel; won and lost are terminal for the answer they belong to.
Snippet timing helpers live here too since the snippet length follows the
attempt count.
"""

import logging
import unicodedata
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from daily_song.models.dc_models import (
    RoundStateModel,
    RoundStatusModel,
    SongModel,
    StoredRoundModel,
)

MAX_ATTEMPTS = 6
MAX_REVEAL_INDEX = MAX_ATTEMPTS - 1
MAX_SNIPPET_INDEX = MAX_ATTEMPTS - 1
GUESS_SEPARATOR = "  "

SKIP_MARKERS = {"fr": "⏭️ Passé", "en": "⏭️ Skipped"}
HINT_LABELS = {
    "fr": ["Durée", "Genre", "Année", "Album", "Artiste"],
    "en": ["Duration", "Genre", "Year", "Album", "Artist"],
}

TERMINAL = (RoundStatusModel.won, RoundStatusModel.lost)


def normalize(text: str) -> str:
    """Strip diacritics and case so "Étoile" and "etoile" compare equal."""
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def format_guess(title: str, artist: str) -> str:
    return f"{title}{GUESS_SEPARATOR}{artist}"


def storage_key(n: int, lang: str, genre: str = "all") -> str:
    g = "rap" if genre == "rap" else "all"
    return f"dlm_daily_{lang}_{g}_{n}"


def start_round(answer_id: int) -> RoundStateModel:
    return RoundStateModel(answer_id=answer_id)


def is_finished(state: RoundStateModel) -> bool:
    return state.status in TERMINAL


def _advance(state: RoundStateModel, attempt: str) -> RoundStateModel:
    attempts = [*state.attempts, attempt]
    status = RoundStatusModel.lost if len(attempts) >= MAX_ATTEMPTS else RoundStatusModel.playing
    return state.model_copy(
        update={
            "attempts": attempts,
            "reveal_index": min(state.reveal_index + 1, MAX_REVEAL_INDEX),
            "snippet_index": min(state.snippet_index + 1, MAX_SNIPPET_INDEX),
            "status": status,
        }
    )


def submit_guess(
    state: RoundStateModel, title: str, artist: str, answer: SongModel
) -> RoundStateModel:
    """Apply a guess to the round.

    Args:
        state (RoundStateModel): Current round
        title (str): Guessed title
        artist (str): Guessed artist
        answer (SongModel): Song of the day

    Returns:
        RoundStateModel: The next round state, or `state` itself once the round is over
    """
    if is_finished(state):
        return state
    correct = normalize(title) == normalize(answer.title) and normalize(
        artist
    ) == normalize(answer.artist)
    attempt = format_guess(title, artist)
    if correct:
        return state.model_copy(
            update={
                "attempts": [*state.attempts, attempt],
                "status": RoundStatusModel.won,
            }
        )
    return _advance(state, attempt)


def skip(state: RoundStateModel, lang: str = "fr") -> RoundStateModel:
    if is_finished(state):
        return state
    return _advance(state, SKIP_MARKERS.get(lang, SKIP_MARKERS["fr"]))


def forfeit(state: RoundStateModel) -> RoundStateModel:
    if is_finished(state):
        return state
    return state.model_copy(
        update={
            "status": RoundStatusModel.lost,
            "reveal_index": MAX_REVEAL_INDEX,
            "snippet_index": MAX_SNIPPET_INDEX,
        }
    )


def reset(state: RoundStateModel) -> RoundStateModel:
    """Start over on the same answer."""
    return start_round(state.answer_id)


def to_stored(state: RoundStateModel) -> dict:
    return {
        "answerId": state.answer_id,
        "attempts": list(state.attempts),
        "revealIndex": state.reveal_index,
        "snippetIndex": state.snippet_index,
        "status": state.status.value,
    }


def restore_round(raw: Any, answer_id: int) -> Optional[RoundStateModel]:
    """Parse a stored record and clamp it into a valid round.

    Returns None when the record is malformed or belongs to another answer;
    the caller then starts a fresh round. Never raises.
    """
    if not isinstance(raw, dict):
        return None
    try:
        stored = StoredRoundModel.model_validate(raw)
    except ValidationError as e:
        logging.warning(f"Discarding stored round: {e.error_count()} invalid field(s)")
        return None
    if stored.answer_id != answer_id:
        return None

    attempts = stored.attempts[:MAX_ATTEMPTS]
    if stored.status in (RoundStatusModel.won.value, RoundStatusModel.lost.value):
        status = RoundStatusModel(stored.status)
    elif len(attempts) >= MAX_ATTEMPTS:
        status = RoundStatusModel.lost
    elif attempts:
        status = RoundStatusModel.playing
    else:
        status = RoundStatusModel.idle

    return RoundStateModel(
        answer_id=answer_id,
        attempts=attempts,
        reveal_index=min(max(stored.reveal_index, -1), MAX_REVEAL_INDEX),
        snippet_index=min(max(stored.snippet_index, 0), MAX_SNIPPET_INDEX),
        status=status,
    )


def classify_attempt(text: Optional[str], answer: SongModel) -> str:
    """Verdict for one attempt slot: empty, skipped, correct, artist or wrong."""
    if not text:
        return "empty"
    if text in SKIP_MARKERS.values():
        return "skipped"
    if normalize(text) == normalize(format_guess(answer.title, answer.artist)):
        return "correct"
    parts = text.split(GUESS_SEPARATOR)
    guessed_artist = parts[1].strip() if len(parts) > 1 else ""
    if normalize(guessed_artist) == normalize(answer.artist):
        return "artist"
    return "wrong"


def attempt_slots(state: RoundStateModel, answer: SongModel) -> List[tuple]:
    slots = []
    for i in range(MAX_ATTEMPTS):
        text = state.attempts[i] if i < len(state.attempts) else None
        slots.append((text, classify_attempt(text, answer)))
    return slots


def format_duration(seconds: float) -> str:
    m = int(seconds // 60)
    s = int(seconds % 60)
    return f"{m}:{s:02d}"


def format_snippet(seconds: float) -> str:
    return f"{seconds:.1f}s" if seconds < 1 else format_duration(seconds)


def hints_for(song: SongModel, reveal_index: int, lang: str = "fr") -> List[tuple]:
    """Return (label, value) pairs; value is None for hints not revealed yet."""
    values = [
        format_duration(song.length) if song.length else "",
        song.genre or "",
        str(song.year) if song.year else "",
        song.album or "",
        song.artist or "",
    ]
    labels = HINT_LABELS.get(lang, HINT_LABELS["fr"])
    return [
        (label, values[i] if i <= reveal_index else None)
        for i, label in enumerate(labels)
    ]


def snippet_limit(
    snippet_seconds: Sequence[float], snippet_index: int, track_length: float
) -> float:
    """Seconds of preview the player may hear at this snippet index."""
    idx = min(max(snippet_index, 0), len(snippet_seconds) - 1)
    return min(snippet_seconds[idx], track_length)


def snippet_progress(
    snippet_seconds: Sequence[float],
    snippet_index: int,
    track_length: float,
    playhead: float,
) -> tuple[float, float]:
    """Progress bar fractions: (unlocked part, played part) of the track length."""
    limit = snippet_limit(snippet_seconds, snippet_index, track_length)
    return limit / track_length, min(max(playhead, 0.0), limit) / track_length
