"""
Smart playlist request: validated user input for one generation

The presentation layer hands over raw form fields. Everything is validated
and defaulted here; unrecognised values disable the feature they belong to
(or, for rules, produce a rule that never matches) instead of raising.

Form fields:
    playlistName, playlistDescription
    playlistIsPublic, playlistIsCollaborative
    playlistRuleType-N, playlistRuleOperator-N, playlistRuleData-N
    playlistOrderEnabled, playlistOrderField, playlistOrderDirection
    playlistLimitEnabled, playlistLimitType, playlistLimitValue
    playlistSources (list or comma separated)
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..config.settings import Settings, get_settings
from ..utils.helpers import parse_bool
from ..utils.logger import get_logger
from .limits import DISABLED_LIMIT, LimitSpec, parse_limit_spec
from .ordering import DISABLED_ORDER, OrderSpec, parse_order_spec
from .retrieval import TrackSource
from .rules import AnyRule, parse_rule

logger = get_logger(__name__)

DEFAULT_PLAYLIST_NAME = "Smart Playlist"

RULE_TYPE_FIELD = re.compile(r'^playlistRuleType-(\d+)$')


def _parse_sources(raw: Any) -> List[TrackSource]:
    if isinstance(raw, str):
        values = raw.split(',')
    elif isinstance(raw, (list, tuple)):
        values = raw
    else:
        return []

    sources = []
    for value in values:
        try:
            source = TrackSource(str(value).strip())
        except ValueError:
            logger.debug(f"Ignoring unknown track source {value!r}")
            continue
        if source not in sources:
            sources.append(source)
    return sources


def _get_list(form: Mapping[str, Any], key: str) -> Any:
    # Multi-value form mappings (werkzeug MultiDict) expose getlist
    getlist = getattr(form, 'getlist', None)
    if callable(getlist):
        values = getlist(key)
        if len(values) > 1:
            return values
    return form.get(key)


@dataclass
class SmartPlaylistRequest:
    """
    Everything needed to generate one smart playlist

    Attributes:
        name: Title of the playlist to create
        description: User description (the banner is added on creation)
        public: Visibility of the created playlist
        collaborative: Whether followers may edit (ignored when public)
        rules: Rules every track must satisfy
        order: Ordering of the result
        limit: Truncation of the ordered result
        sources: Library collections to draw candidates from
    """
    name: str = DEFAULT_PLAYLIST_NAME
    description: str = ""
    public: bool = False
    collaborative: bool = False
    rules: List[AnyRule] = field(default_factory=list)
    order: OrderSpec = DISABLED_ORDER
    limit: LimitSpec = DISABLED_LIMIT
    sources: List[TrackSource] = field(default_factory=lambda: [TrackSource.SAVED_TRACKS])

    @classmethod
    def from_form(cls, form: Mapping[str, Any], settings: Optional[Settings] = None) -> 'SmartPlaylistRequest':
        """
        Build a request from raw form fields

        Args:
            form: Submitted form data (dict or multi-value mapping)
            settings: Provides the default sources when none are submitted

        Returns:
            SmartPlaylistRequest with every field validated
        """
        settings = settings or get_settings()

        rule_numbers = sorted(
            int(match.group(1))
            for match in (RULE_TYPE_FIELD.match(key) for key in form.keys())
            if match
        )
        rules = [
            parse_rule(
                form.get(f'playlistRuleType-{number}'),
                form.get(f'playlistRuleOperator-{number}'),
                form.get(f'playlistRuleData-{number}')
            )
            for number in rule_numbers
        ]

        order = parse_order_spec(
            form.get('playlistOrderEnabled'),
            form.get('playlistOrderField'),
            form.get('playlistOrderDirection')
        )
        limit = parse_limit_spec(
            form.get('playlistLimitEnabled'),
            form.get('playlistLimitType'),
            form.get('playlistLimitValue')
        )

        sources = _parse_sources(_get_list(form, 'playlistSources'))
        if not sources:
            sources = _parse_sources(settings.retrieval.sources) or [TrackSource.SAVED_TRACKS]

        public = parse_bool(form.get('playlistIsPublic'))
        collaborative = parse_bool(form.get('playlistIsCollaborative')) and not public

        return cls(
            name=(form.get('playlistName') or '').strip() or DEFAULT_PLAYLIST_NAME,
            description=(form.get('playlistDescription') or '').strip(),
            public=public,
            collaborative=collaborative,
            rules=rules,
            order=order,
            limit=limit,
            sources=sources
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'public': self.public,
            'collaborative': self.collaborative,
            'rules': [
                {
                    'field': getattr(rule.field, 'value', rule.field),
                    'operator': getattr(rule.operator, 'value', rule.operator),
                    'operand': rule.operand
                }
                for rule in self.rules
            ],
            'order': {key: value for key, value in self.order.to_dict().items() if key != 'comparisonFunction'},
            'limit': self.limit.to_dict(),
            'sources': [source.value for source in self.sources]
        }
