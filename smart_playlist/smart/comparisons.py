"""
Track comparators used to order smart playlists

Every orderable field has one ascending comparator with the classic
``compare(a, b) -> negative | zero | positive`` contract. The descending
comparator is its numeric negation. Comparators are resolved through a
lookup table keyed by OrderField, so an unknown field can never reach here.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..spotify.models import SpotifyTrack

Comparator = Callable[[SpotifyTrack, SpotifyTrack], int]

# Missing dates sort before every real date
EARLIEST_DATE = date.min
EARLIEST_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


class OrderField(Enum):
    """Fields a smart playlist can be ordered by (values match the form input)"""
    ARTIST = "artist"
    ALBUM = "album"
    RELEASE_DATE = "release date"
    DURATION = "duration"
    LIBRARY_ADD_DATE = "library add date"
    POPULARITY = "popularity"
    SONG = "song"


class OrderDirection(Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


def _compare_values(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_by_artist(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.all_artists.casefold(), b.all_artists.casefold())


def compare_by_album(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.album.name.casefold(), b.album.name.casefold())


def compare_by_song(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.name.casefold(), b.name.casefold())


def compare_by_release_date(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.album.release or EARLIEST_DATE, b.album.release or EARLIEST_DATE)


def _added_at_key(track: SpotifyTrack) -> datetime:
    if track.added_at is None:
        return EARLIEST_DATETIME
    if track.added_at.tzinfo is None:
        return track.added_at.replace(tzinfo=timezone.utc)
    return track.added_at


def compare_by_library_add_date(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(_added_at_key(a), _added_at_key(b))


def compare_by_duration(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.duration_ms, b.duration_ms)


def compare_by_popularity(a: SpotifyTrack, b: SpotifyTrack) -> int:
    return _compare_values(a.popularity, b.popularity)


ASCENDING_COMPARATORS: Dict[OrderField, Comparator] = {
    OrderField.ARTIST: compare_by_artist,
    OrderField.ALBUM: compare_by_album,
    OrderField.RELEASE_DATE: compare_by_release_date,
    OrderField.DURATION: compare_by_duration,
    OrderField.LIBRARY_ADD_DATE: compare_by_library_add_date,
    OrderField.POPULARITY: compare_by_popularity,
    OrderField.SONG: compare_by_song,
}


def reverse_comparison(compare: Comparator) -> Comparator:
    """Descending counterpart of an ascending comparator"""
    def descending(a: SpotifyTrack, b: SpotifyTrack) -> int:
        return -compare(a, b)

    descending.__name__ = f"{compare.__name__}_descending"
    return descending


def get_comparator(field: OrderField, direction: OrderDirection) -> Optional[Comparator]:
    """
    Resolve the comparator for a field and direction

    Args:
        field: Field to order by
        direction: Ascending or descending

    Returns:
        Comparator function, or None if the field has no comparator
    """
    ascending = ASCENDING_COMPARATORS.get(field)
    if ascending is None:
        return None

    if direction is OrderDirection.DESCENDING:
        return reverse_comparison(ascending)
    return ascending
