"""
Ordering engine for smart playlists

Tracks are ordered incrementally as they stream in from retrieval: every
track that passes the rules is inserted into a sorted sequence of indices
with a binary search, costing O(log k) comparisons per insert instead of a
full re-sort after every page.

Order specifications are a tagged variant. DisabledOrder means "keep
retrieval order" and has no comparator; EnabledOrder always carries a
resolved comparator, so callers never check for a missing one.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..spotify.models import SpotifyTrack
from ..utils.helpers import parse_bool
from ..utils.logger import get_logger
from .comparisons import Comparator, OrderDirection, OrderField, get_comparator

logger = get_logger(__name__)


@dataclass(frozen=True)
class DisabledOrder:
    """No ordering: tracks keep the order they were retrieved in"""

    @property
    def enabled(self) -> bool:
        return False

    @property
    def field(self) -> None:
        return None

    @property
    def direction(self) -> None:
        return None

    @property
    def comparison_function(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'comparisonFunction': None,
            'direction': None,
            'enabled': False,
            'field': None
        }


@dataclass(frozen=True)
class EnabledOrder:
    """Ordering by one field in one direction, with its resolved comparator"""
    field: OrderField
    direction: OrderDirection
    comparator: Comparator

    @property
    def enabled(self) -> bool:
        return True

    @property
    def comparison_function(self) -> Comparator:
        return self.comparator

    def to_dict(self) -> Dict[str, Any]:
        return {
            'comparisonFunction': self.comparator,
            'direction': self.direction.value,
            'enabled': True,
            'field': self.field.value
        }


OrderSpec = Union[DisabledOrder, EnabledOrder]

DISABLED_ORDER = DisabledOrder()


def parse_order_spec(enabled: Any, field: Any, direction: Any) -> OrderSpec:
    """
    Validate raw ordering input

    Args:
        enabled: Raw "order enabled" flag (checkbox value, bool, ...)
        field: Field name such as "release date"
        direction: "ascending" or "descending"

    Returns:
        EnabledOrder when every value is recognised, otherwise DISABLED_ORDER
    """
    if not parse_bool(enabled):
        return DISABLED_ORDER

    try:
        order_field = field if isinstance(field, OrderField) else OrderField(field)
        order_direction = direction if isinstance(direction, OrderDirection) else OrderDirection(direction)
    except ValueError:
        logger.debug(f"Ignoring ordering with field={field!r} direction={direction!r}")
        return DISABLED_ORDER

    comparator = get_comparator(order_field, order_direction)
    if comparator is None:
        return DISABLED_ORDER

    return EnabledOrder(order_field, order_direction, comparator)


def find_insert_position(
    candidate: SpotifyTrack,
    track_pool: Sequence[SpotifyTrack],
    ordered_indices: Sequence[int],
    compare: Comparator
) -> int:
    """
    Binary search for where a candidate belongs in a sorted index sequence

    Equal tracks go after the existing run of equals, so tracks that compare
    equal keep their retrieval order. This differs from the common variant
    that collapses both bounds to the midpoint on a tie, which can put an
    equal track in front of the one it was compared with.

    Returns:
        Position in ``ordered_indices`` to insert at
    """
    lower = 0
    upper = len(ordered_indices)

    while lower < upper:
        middle = (lower + upper) // 2
        if compare(candidate, track_pool[ordered_indices[middle]]) < 0:
            upper = middle
        else:
            lower = middle + 1

    return lower


def insert_ordered(
    target_index: Any,
    track_pool: Sequence[SpotifyTrack],
    ordered_indices: Any,
    compare: Optional[Comparator]
) -> List[int]:
    """
    Insert a pool index into a sorted index list, keeping it sorted

    Bad input never raises. A non-list ``ordered_indices`` yields an empty
    list; an invalid target index, an empty pool or a missing comparator
    return ``ordered_indices`` unchanged. With a disabled order, callers
    append instead of calling this.

    Args:
        target_index: Index of the new track in ``track_pool``
        track_pool: Every candidate track retrieved so far
        ordered_indices: Indices already inserted, sorted per ``compare``
        compare: Active comparator

    Returns:
        ``ordered_indices`` with ``target_index`` inserted (modified in place)
    """
    if not isinstance(ordered_indices, list):
        return []

    if isinstance(target_index, bool) or not isinstance(target_index, int):
        return ordered_indices

    if not track_pool:
        return ordered_indices

    if not 0 <= target_index < len(track_pool):
        return ordered_indices

    if not callable(compare):
        return ordered_indices

    position = find_insert_position(track_pool[target_index], track_pool, ordered_indices, compare)
    ordered_indices.insert(position, target_index)
    return ordered_indices


class OrderedTrackSequence:
    """
    Tracks kept sorted by the active order as they are added

    The sequence owns an arena (the candidate pool, in retrieval order) and
    a list of arena indices sorted per the order spec. ``insert`` is the
    only operation that changes the index list.

    Usage:
        sequence = OrderedTrackSequence(order)
        for track in candidates:
            sequence.add(track)
        ordered = sequence.tracks()
    """

    def __init__(self, order: OrderSpec = DISABLED_ORDER):
        self.order = order
        self._pool: List[SpotifyTrack] = []
        self._indices: List[int] = []
        self._inserted = set()
        self._total_duration_ms = 0

    @property
    def pool(self) -> List[SpotifyTrack]:
        """Candidate tracks in retrieval order"""
        return list(self._pool)

    @property
    def indices(self) -> List[int]:
        """Pool indices in sorted order"""
        return list(self._indices)

    def add(self, track: SpotifyTrack) -> int:
        """
        Add a track to the pool and insert it into the ordering

        Returns:
            The pool index assigned to the track
        """
        self._pool.append(track)
        index = len(self._pool) - 1
        self.insert(index)
        return index

    def insert(self, index: int) -> None:
        """
        Insert a pool index, keeping the sequence sorted

        Raises:
            ValueError: If the index is outside the pool or already inserted
        """
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._pool):
            raise ValueError(f"Track index out of range: {index!r}")
        if index in self._inserted:
            raise ValueError(f"Track index already inserted: {index}")

        if self.order.enabled:
            insert_ordered(index, self._pool, self._indices, self.order.comparison_function)
        else:
            self._indices.append(index)
        self._inserted.add(index)
        self._total_duration_ms += self._pool[index].duration_ms

    @property
    def total_duration_ms(self) -> int:
        """Summed duration of the inserted tracks"""
        return self._total_duration_ms

    def tracks(self) -> List[SpotifyTrack]:
        """Tracks in sorted order"""
        return [self._pool[index] for index in self._indices]

    def __iter__(self) -> Iterator[SpotifyTrack]:
        return (self._pool[index] for index in self._indices)

    def __len__(self) -> int:
        return len(self._indices)
