"""
Rule evaluation for smart playlists

A rule is a (field, operator, operand) predicate authored by the user. A
track belongs to a smart playlist only if it satisfies every rule (pure AND;
an empty rule list matches everything).

Rules fail closed: an unknown field or operator, an operator that makes no
sense for the field, a non-numeric operand for a numeric comparison or a
track without a release year all make the rule evaluate to False. Nothing in
this module raises for bad input; a malformed rule just yields an empty or
partial result.

Field semantics:
    album, song  - case-insensitive text
    artist       - case-insensitive text over every credited artist;
                   equal/contains hold if ANY artist matches,
                   notEqual holds if NO artist is equal
    year         - numeric, the album's release year
"""

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..spotify.models import SpotifyTrack
from ..utils.helpers import to_number
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RuleField(Enum):
    ALBUM = "album"
    ARTIST = "artist"
    SONG = "song"
    YEAR = "year"


class RuleOperator(Enum):
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN = "lessThan"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    CONTAINS = "contains"


def _any_equal(values: List[str], operand: str) -> bool:
    return any(value.casefold() == operand for value in values)


def _none_equal(values: List[str], operand: str) -> bool:
    return not _any_equal(values, operand)


def _any_contains(values: List[str], operand: str) -> bool:
    return any(operand in value.casefold() for value in values)


TEXT_OPERATORS: Dict[RuleOperator, Callable[[List[str], str], bool]] = {
    RuleOperator.EQUAL: _any_equal,
    RuleOperator.NOT_EQUAL: _none_equal,
    RuleOperator.CONTAINS: _any_contains,
}

NUMERIC_OPERATORS: Dict[RuleOperator, Callable[[float, float], bool]] = {
    RuleOperator.EQUAL: operator.eq,
    RuleOperator.NOT_EQUAL: operator.ne,
    RuleOperator.GREATER_THAN: operator.gt,
    RuleOperator.GREATER_THAN_OR_EQUAL: operator.ge,
    RuleOperator.LESS_THAN: operator.lt,
    RuleOperator.LESS_THAN_OR_EQUAL: operator.le,
}


def _evaluate_text(values: List[str], rule_operator: RuleOperator, operand: Any) -> bool:
    compare = TEXT_OPERATORS.get(rule_operator)
    if compare is None or operand is None:
        return False
    return compare(values, str(operand).casefold())


def _evaluate_number(value: Optional[int], rule_operator: RuleOperator, operand: Any) -> bool:
    compare = NUMERIC_OPERATORS.get(rule_operator)
    number = to_number(operand)
    if compare is None or value is None or number is None:
        return False
    return compare(value, number)


# Field -> (value extractor, evaluator)
RULE_FIELDS: Dict[RuleField, Tuple[Callable[[SpotifyTrack], Any], Callable[..., bool]]] = {
    RuleField.ALBUM: (lambda track: [track.album.name], _evaluate_text),
    RuleField.ARTIST: (lambda track: track.artist_names, _evaluate_text),
    RuleField.SONG: (lambda track: [track.name], _evaluate_text),
    RuleField.YEAR: (lambda track: track.album.release_year, _evaluate_number),
}


@dataclass(frozen=True)
class Rule:
    """
    A validated rule

    Attributes:
        field: Track field the rule inspects
        operator: Comparison applied to the field value
        operand: User-supplied value (text, or a number for year rules)
    """
    field: RuleField
    operator: RuleOperator
    operand: Union[str, int, float]

    def evaluate(self, track: SpotifyTrack) -> bool:
        extract, evaluate = RULE_FIELDS[self.field]
        try:
            return evaluate(extract(track), self.operator, self.operand)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Rule {self} failed on track {getattr(track, 'id', None)}: {e}")
            return False


@dataclass(frozen=True)
class UnsupportedRule:
    """A rule whose field or operator was not recognised; never matches"""
    field: Any
    operator: Any
    operand: Any = None

    def evaluate(self, track: SpotifyTrack) -> bool:
        return False


AnyRule = Union[Rule, UnsupportedRule]


def _to_enum(enum_type, value):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return None


def parse_rule(field: Any, rule_operator: Any, operand: Any) -> AnyRule:
    """
    Validate raw rule input

    Args:
        field: Field name (e.g. "artist") or RuleField
        rule_operator: Operator name (e.g. "contains") or RuleOperator
        operand: Raw operand

    Returns:
        Rule when both field and operator are recognised, otherwise an
        UnsupportedRule that excludes every track
    """
    parsed_field = _to_enum(RuleField, field)
    parsed_operator = _to_enum(RuleOperator, rule_operator)

    if parsed_field is None or parsed_operator is None or operand is None:
        logger.debug(f"Unsupported rule: field={field!r} operator={rule_operator!r} operand={operand!r}")
        return UnsupportedRule(field, rule_operator, operand)

    return Rule(parsed_field, parsed_operator, operand)


def matches(track: SpotifyTrack, rules: Iterable[AnyRule]) -> bool:
    """
    Check a track against a rule list

    Args:
        track: Candidate track
        rules: Rules to apply; an empty list matches every track

    Returns:
        True only if every rule holds for the track
    """
    return all(rule.evaluate(track) for rule in rules)
