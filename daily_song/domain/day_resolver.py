"""Day numbering rules shared by every caller that needs "day N".

The game day changes at `offset_hours` past midnight UTC. Day 1 is the
origin date; instants before the origin's first rollover still count as day 1.

Rule of thumb:
- OK: date arithmetic on values passed in.
- Not OK: datetime.now(), reading settings, touching the catalog.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence, TypeVar, Union

T = TypeVar("T")

ONE_DAY = timedelta(days=1)


def _as_utc(instant: datetime) -> datetime:
    # Naive datetimes are read as UTC.
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def game_date(instant: datetime, offset_hours: int) -> date:
    """Return the calendar day an instant belongs to under the rollover rule."""
    return (_as_utc(instant) - timedelta(hours=offset_hours)).date()


def date_to_day_number(
    instant: Union[datetime, date], origin_date: date, offset_hours: int
) -> int:
    """Map an instant (or a calendar day) to its 1-based day number.

    Args:
        instant (datetime | date): A point in time, or an already resolved calendar day
        origin_date (date): Calendar day numbered 1
        offset_hours (int): Hours past midnight UTC at which the day rolls over

    Returns:
        int: Day number, never lower than 1
    """
    if isinstance(instant, datetime):
        day = game_date(instant, offset_hours)
    else:
        day = instant
    return max((day - origin_date).days + 1, 1)


def day_number_to_date(n: int, origin_date: date, offset_hours: int) -> date:
    """Inverse of date_to_day_number: the calendar day labelled by day `n`.

    The offset does not move the label, only the instant the day starts at
    (see day_start); it is accepted so both directions take the same constants.
    """
    return origin_date + (n - 1) * ONE_DAY


def day_start(n: int, origin_date: date, offset_hours: int) -> datetime:
    """Return the UTC instant at which day `n` begins."""
    label = day_number_to_date(n, origin_date, offset_hours)
    midnight = datetime.combine(label, time(0), tzinfo=timezone.utc)
    return midnight + timedelta(hours=offset_hours)


def clamp_day(raw: Optional[Union[str, int]], today: int) -> int:
    """Resolve a requested day number against today.

    Missing or non-numeric values default to today, numbers are clamped to [1, today].
    """
    if raw is None or raw == "":
        return today
    try:
        n = int(raw)
    except (TypeError, ValueError):
        return today
    return min(max(n, 1), today)


def playlist_index(n: int, length: int) -> int:
    """The i-th day gets the i-th track, wrapping past the end of the playlist."""
    if length <= 0:
        raise ValueError("playlist is empty")
    return (n - 1) % length


def song_for_day(playlist: Sequence[T], n: int) -> T:
    return playlist[playlist_index(n, len(playlist))]
