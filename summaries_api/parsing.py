"""Turn the completion text into structured summary fields.

The prompts ask for labelled sections with ``-`` bullets. When any section
comes back empty the whole response is re-read line by line instead.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import List

logger = logging.getLogger('summaries_api.parsing')

DEFAULT_EMOTIONAL_TONE = 'The session showed a supportive and constructive atmosphere'
DEFAULT_GROUP_SENTIMENT = 'The group showed positive engagement and mutual support'

_BULLET = re.compile(r'^[-•*]\s*')


@dataclass
class SessionSummaryData:
    key_points: List[str] = field(default_factory=list)
    emotional_tone: str = ''
    action_items: List[str] = field(default_factory=list)
    suggested_resources: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GroupSummaryData:
    topics_covered: List[str] = field(default_factory=list)
    group_sentiment: str = ''
    recommended_resources: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _lines(response: str) -> List[str]:
    return [line.strip() for line in (response or '').split('\n') if line.strip()]


def _strip_bullets(lines: List[str]) -> List[str]:
    return [_BULLET.sub('', line) for line in lines]


def _sections(response: str, headers: dict, prose_section: str) -> dict:
    """Collect ``-`` bullets under each header; the prose section keeps its last plain line."""
    found = {name: [] for name in headers.values()}
    found[prose_section] = ''
    current = None
    for line in _lines(response):
        header = next((name for label, name in headers.items() if line.startswith(label)), None)
        if header is not None:
            current = header
        elif line.startswith('-') and current:
            content = line[1:].strip()
            if content and current != prose_section:
                found[current].append(content)
        elif current == prose_section:
            found[prose_section] = line
    return found


def fallback_session_summary(response: str) -> SessionSummaryData:
    lines = _lines(response)
    return SessionSummaryData(
        key_points=_strip_bullets(lines[0:3]),
        emotional_tone=DEFAULT_EMOTIONAL_TONE,
        action_items=_strip_bullets(lines[3:5]),
        suggested_resources=_strip_bullets(lines[5:7]),
    )


def fallback_group_summary(response: str) -> GroupSummaryData:
    lines = _lines(response)
    return GroupSummaryData(
        topics_covered=_strip_bullets(lines[0:3]),
        group_sentiment=DEFAULT_GROUP_SENTIMENT,
        recommended_resources=_strip_bullets(lines[3:5]),
    )


def parse_session_summary(response: str) -> SessionSummaryData:
    found = _sections(
        response,
        {
            'KEY POINTS:': 'key_points',
            'EMOTIONAL TONE:': 'emotional_tone',
            'ACTION ITEMS:': 'action_items',
            'SUGGESTED RESOURCES:': 'suggested_resources',
        },
        prose_section='emotional_tone',
    )
    if not all(found.values()):
        logger.warning("[parsing] Structured session summary parsing failed, using fallback parsing")
        return fallback_session_summary(response)
    return SessionSummaryData(**found)


def parse_group_summary(response: str) -> GroupSummaryData:
    found = _sections(
        response,
        {
            'TOPICS COVERED:': 'topics_covered',
            'GROUP SENTIMENT:': 'group_sentiment',
            'RECOMMENDED RESOURCES:': 'recommended_resources',
        },
        prose_section='group_sentiment',
    )
    if not all(found.values()):
        logger.warning("[parsing] Structured group summary parsing failed, using fallback parsing")
        return fallback_group_summary(response)
    return GroupSummaryData(**found)
