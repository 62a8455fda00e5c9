"""
Limit engine: truncate an ordered track list by count or total duration
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence, Union

from ..spotify.models import SpotifyTrack
from ..utils.helpers import parse_bool, to_number
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LimitKind(Enum):
    COUNT = "count"
    DURATION = "duration"  # milliseconds


@dataclass(frozen=True)
class DisabledLimit:
    """No truncation"""

    @property
    def enabled(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {'enabled': False, 'type': None, 'value': None}


@dataclass(frozen=True)
class EnabledLimit:
    """
    Truncate to ``value`` tracks (count) or ``value`` milliseconds (duration)
    """
    kind: LimitKind
    value: int

    @property
    def enabled(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {'enabled': True, 'type': self.kind.value, 'value': self.value}


LimitSpec = Union[DisabledLimit, EnabledLimit]

DISABLED_LIMIT = DisabledLimit()


def parse_limit_spec(enabled: Any, kind: Any, value: Any) -> LimitSpec:
    """
    Validate raw limit input

    Args:
        enabled: Raw "limit enabled" flag
        kind: "count" or "duration"
        value: Number of tracks, or duration budget in milliseconds

    Returns:
        EnabledLimit for recognised, non-negative values, otherwise DISABLED_LIMIT
    """
    if not parse_bool(enabled):
        return DISABLED_LIMIT

    try:
        limit_kind = kind if isinstance(kind, LimitKind) else LimitKind(kind)
    except ValueError:
        logger.debug(f"Ignoring limit with unknown type {kind!r}")
        return DISABLED_LIMIT

    number = to_number(value)
    if number is None or number < 0:
        logger.debug(f"Ignoring limit with invalid value {value!r}")
        return DISABLED_LIMIT

    return EnabledLimit(limit_kind, int(number))


def _duration_prefix_length(tracks: Sequence[SpotifyTrack], budget: int) -> int:
    total = 0
    for position, track in enumerate(tracks):
        total += track.duration_ms
        if total > budget:
            return position
    return len(tracks)


def apply_limit(tracks: Sequence[SpotifyTrack], limit: LimitSpec) -> List[SpotifyTrack]:
    """
    Truncate an ordered track list

    Count keeps the first N tracks. Duration keeps leading tracks while the
    running total stays within the budget; the first track that would exceed
    it is excluded and nothing after it is considered.

    Args:
        tracks: Tracks in their final order
        limit: Limit to apply

    Returns:
        New list holding the kept tracks
    """
    if not limit.enabled:
        return list(tracks)

    if limit.kind is LimitKind.COUNT:
        return list(tracks[:limit.value])

    return list(tracks[:_duration_prefix_length(tracks, limit.value)])


def is_limit_satisfied(tracks: Sequence[SpotifyTrack], limit: LimitSpec) -> bool:
    """
    Whether tracks appended after ``tracks`` can no longer be kept

    Only meaningful when tracks are kept in retrieval order: once this is
    True, further retrieval cannot change the limited result.
    """
    return is_limit_reached(len(tracks), sum(track.duration_ms for track in tracks), limit)


def is_limit_reached(count: int, total_duration_ms: int, limit: LimitSpec) -> bool:
    """
    Same as is_limit_satisfied, from running totals of the tracks kept so far

    A duration budget is reached once the total meets or passes it: at that
    point any appended track would overflow.
    """
    if not limit.enabled:
        return False

    if limit.kind is LimitKind.COUNT:
        return count >= limit.value

    return total_duration_ms >= limit.value
