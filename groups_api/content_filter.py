"""Keyword-based moderation for group content.

``filter_content`` is a pure function of the text and the keyword table below:
it never touches the database and never raises.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Tuple

logger = logging.getLogger('groups_api.content_filter')

SEVERITY_LOW = 'LOW'
SEVERITY_MEDIUM = 'MEDIUM'
SEVERITY_HIGH = 'HIGH'

ACTION_NONE = 'NONE'
ACTION_WARN = 'WARN'
ACTION_MUTE = 'MUTE'
ACTION_LISTENER_RESPONSE = 'LISTENER_RESPONSE'
ACTION_BAN = 'BAN'
ACTION_LOCK_ROOM = 'LOCK_ROOM'

KEYWORD_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    'violence': ('violence', 'kill', 'attack', 'weapon'),
    'self_harm': ('suicide', 'self-harm', 'overdose'),
    'harassment': ('hate', 'harassment', 'bullying', 'annoying', 'idiot'),
    'illegal': ('illegal', 'scam', 'fraud', 'counterfeit', 'money-laundering', 'drugs', 'spam'),
    'inappropriate': ('inappropriate', 'explicit', 'nsfw'),
    'misinformation': ('hoax', 'conspiracy', 'miracle cure'),
}

# Any of these forces HIGH + BAN whatever else matched
SCAM_KEYWORDS = frozenset({'scam', 'fraud', 'illegal', 'counterfeit', 'money-laundering'})

KEYWORDS: Tuple[str, ...] = tuple(k for terms in KEYWORD_CATEGORIES.values() for k in terms)

# A keyword matches when it starts at a word boundary, so "hated" matches "hate" but "whatever" does not.
_PATTERNS = [(k, re.compile(r'(?<![a-z0-9])' + re.escape(k))) for k in KEYWORDS]


@dataclass(frozen=True)
class ContentFilterResult:
    content: str
    type: str
    severity: str
    flagged_terms: List[str] = field(default_factory=list)
    suggested_action: str = ACTION_NONE
    confidence: float = 0.95

    def to_dict(self) -> dict:
        return asdict(self)


def match_keywords(content: str) -> List[str]:
    text = (content or '').lower()
    return [keyword for keyword, pattern in _PATTERNS if pattern.search(text)]


def classify(flagged_terms: List[str]) -> Tuple[str, str]:
    """Map matched keywords to ``(severity, suggested_action)``."""
    if not flagged_terms:
        return SEVERITY_LOW, ACTION_NONE
    if SCAM_KEYWORDS.intersection(flagged_terms):
        return SEVERITY_HIGH, ACTION_BAN
    if len(flagged_terms) >= 3:
        return SEVERITY_HIGH, ACTION_LISTENER_RESPONSE
    if len(flagged_terms) == 2:
        return SEVERITY_MEDIUM, ACTION_MUTE
    return SEVERITY_LOW, ACTION_WARN


def filter_content(content: str, content_type: str = 'MESSAGE') -> ContentFilterResult:
    try:
        flagged = match_keywords(content)
        severity, action = classify(flagged)
        return ContentFilterResult(
            content=content,
            type=content_type,
            severity=severity,
            flagged_terms=flagged,
            suggested_action=action,
            confidence=0.8 if flagged else 0.95,
        )
    except Exception as e:
        logger.error(f"[content_filter] Failed to filter content: {e}")
        return ContentFilterResult(
            content=content,
            type=content_type,
            severity=SEVERITY_LOW,
            flagged_terms=[],
            suggested_action=ACTION_NONE,
            confidence=0.5,
        )
