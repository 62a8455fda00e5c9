"""
Utility functions and helpers for smart-playlist
Small value parsers shared by the request parser, rule evaluator and models
"""

import math
import re
from datetime import date
from typing import Any, Iterator, List, Optional, Sequence, TypeVar, Union


T = TypeVar('T')

# Raw form values that count as "switched on" for checkboxes and toggles
TRUTHY_STRINGS = {'1', 'true', 'on', 'yes', 'y', 'enabled'}

RELEASE_DATE_PATTERN = re.compile(r'^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?')


def parse_bool(value: Any) -> bool:
    """
    Interpret a raw form value as a boolean flag

    HTML checkboxes submit "on", JSON bodies submit real booleans and query
    strings submit "true"/"1". Anything unrecognised is False.

    Args:
        value: Raw value from the user input

    Returns:
        True if the value represents an enabled flag
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Convert a raw operand to a finite number

    Args:
        value: String or number from the user input

    Returns:
        Float value, or None when the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_release_date(release_date: Optional[str], precision: Optional[str] = None) -> Optional[date]:
    """
    Parse a Spotify release date of any precision

    Spotify reports "1967", "1967-06" or "1967-06-01" depending on the
    album's release_date_precision. Missing month and day components are
    filled with 1 so every precision sorts chronologically.

    Args:
        release_date: Release date string from the album object
        precision: "year", "month" or "day" (informational only)

    Returns:
        date instance, or None if the string is empty or malformed
    """
    if not release_date:
        return None

    match = RELEASE_DATE_PATTERN.match(release_date.strip())
    if not match:
        return None

    year = int(match.group(1))
    month = int(match.group(2)) if match.group(2) and precision != 'year' else 1
    day = int(match.group(3)) if match.group(3) and precision not in ('year', 'month') else 1

    try:
        return date(year, month, day)
    except ValueError:
        # Spotify occasionally reports "0000" for unknown releases
        return None


def format_duration(milliseconds: Union[int, float]) -> str:
    """
    Format duration in milliseconds to human-readable string

    Args:
        milliseconds: Duration in milliseconds

    Returns:
        Formatted duration string (M:SS or H:MM:SS)
    """
    if not milliseconds or milliseconds < 0:
        return "0:00"

    seconds = int(milliseconds // 1000)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    else:
        return f"{minutes}:{secs:02d}"


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """
    Split a sequence into consecutive batches

    Args:
        items: Sequence to split
        size: Maximum batch size (must be positive)

    Yields:
        Lists of at most ``size`` items, in order
    """
    if size <= 0:
        raise ValueError(f"Batch size must be positive: {size}")

    for start in range(0, len(items), size):
        yield list(items[start:start + size])
