"""
Smart playlist generation engine

retrieve -> filter -> order -> limit -> enrich, driven by SmartPlaylistGenerator.
"""

from .comparisons import OrderDirection, OrderField, get_comparator, reverse_comparison
from .enrichment import EnrichmentService, ImageDimensionProber
from .generator import GenerationResult, GenerationStage, SmartPlaylistGenerator
from .limits import (
    DISABLED_LIMIT,
    DisabledLimit,
    EnabledLimit,
    LimitKind,
    apply_limit,
    is_limit_reached,
    is_limit_satisfied,
    parse_limit_spec
)
from .ordering import (
    DISABLED_ORDER,
    DisabledOrder,
    EnabledOrder,
    OrderedTrackSequence,
    insert_ordered,
    parse_order_spec
)
from .request import SmartPlaylistRequest
from .retrieval import TrackRetriever, TrackSource, iter_cursor_pages, iter_offset_pages
from .rules import Rule, RuleField, RuleOperator, UnsupportedRule, matches, parse_rule

__all__ = [
    # Orchestration
    'SmartPlaylistGenerator',
    'SmartPlaylistRequest',
    'GenerationResult',
    'GenerationStage',

    # Rules
    'Rule',
    'UnsupportedRule',
    'RuleField',
    'RuleOperator',
    'parse_rule',
    'matches',

    # Ordering
    'OrderField',
    'OrderDirection',
    'DisabledOrder',
    'EnabledOrder',
    'DISABLED_ORDER',
    'OrderedTrackSequence',
    'parse_order_spec',
    'insert_ordered',
    'get_comparator',
    'reverse_comparison',

    # Limits
    'LimitKind',
    'DisabledLimit',
    'EnabledLimit',
    'DISABLED_LIMIT',
    'parse_limit_spec',
    'apply_limit',
    'is_limit_reached',
    'is_limit_satisfied',

    # Retrieval and enrichment
    'TrackSource',
    'TrackRetriever',
    'iter_offset_pages',
    'iter_cursor_pages',
    'EnrichmentService',
    'ImageDimensionProber'
]
