"""
Domain tag generation.

Tags are derived from a table of domain patterns. Each row fires only when
its patterns match at least ``min_matches`` times across the segment text,
so a single incidental mention does not tag a segment.
"""
import logging
import re
from typing import List, NamedTuple, Sequence, Tuple

from chatsplitter.core.config import DEFAULT_TAG_PREFIX
from chatsplitter.core.models import Message

logger = logging.getLogger(__name__)

MAX_TAGS = 5


class DomainPattern(NamedTuple):
    patterns: Tuple[re.Pattern, ...]
    tag: str
    min_matches: int


def _p(*sources: str) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(s, re.I) for s in sources)


DOMAIN_PATTERNS: Tuple[DomainPattern, ...] = (
    DomainPattern(
        _p(r"\b(python|javascript|typescript|java(?!script)|rust|golang|ruby|swift|kotlin|php|csharp|c\+\+)(?!\w)"),
        "coding", 2,
    ),
    DomainPattern(_p(r"\bpython\b"), "coding/python", 2),
    DomainPattern(_p(r"\b(javascript|typescript)\b"), "coding/javascript", 2),
    DomainPattern(_p(r"\b(sql|postgres|mysql|sqlite|mongodb|database\s+(schema|design|query))\b"), "database", 2),
    DomainPattern(
        _p(r"\b(api\s+(endpoint|call|key)|rest\s*api|graphql|webhook|http\s+(request|response))\b"),
        "web", 2,
    ),
    DomainPattern(
        _p(r"\b(figma|wireframe|prototype|ui\s*/?\s*ux|user\s+interface|mockup|responsive\s+design)\b"),
        "design", 2,
    ),
    DomainPattern(
        _p(r"\b(essay|blog\s+post|proofread(ing)?|copywriting|thesis|dissertation|write\s+(a|an|my)\s+(blog|article|essay))\b"),
        "writing", 2,
    ),
    DomainPattern(
        _p(
            r"(\bfunction\s*\(|\bclass\s+\w+\s*[{:(]|\bimport\s+\{|\bexport\s+(default|const|function)\b|"
            r"\bconst\s+\w+\s*=|\bconsole\.log\b|\bstack\s*trace\b|\bcompiler\b|\bruntime\s+error\b|\bdef\s+\w+\s*\()"
        ),
        "coding", 3,
    ),
    DomainPattern(
        _p(r"\b(real\s*estate|property|mortgage|housing|rent(al)?|landlord|lease|condo|apartment)\b"),
        "real-estate", 2,
    ),
    DomainPattern(_p(r"\b(invest(ment|ing)?|portfolio|stocks?|crypto|dividends?|roi|capital\s+gains?)\b"), "finance", 2),
    DomainPattern(
        _p(r"\b(citizenship|passport|visa|immigra(tion|te)|residency|green\s*card|work\s*permit)\b"),
        "immigration", 2,
    ),
    DomainPattern(_p(r"\b(travel|flights?|hotels?|airbnb|destination|itinerary|vacation|trip)\b"), "travel", 2),
    DomainPattern(_p(r"\b(health(care)?|medical|doctor|hospital|insurance|wellness|therapy)\b"), "health", 2),
    DomainPattern(
        _p(r"\b(machine\s*learning|neural\s*network|deep\s*learning|nlp|transformers?|gpt|llms?|fine[\s-]*tun(e|ing))\b"),
        "ai-ml", 2,
    ),
)


def normalize_prefix(tag_prefix: str) -> str:
    return tag_prefix.rstrip("/") or DEFAULT_TAG_PREFIX


def count_matches(text: str, domain: DomainPattern) -> int:
    """Total matches of a domain's patterns in ``text``."""
    return sum(len(pattern.findall(text)) for pattern in domain.patterns)


def generate_tags(
    messages: Sequence[Message],
    tag_prefix: str = DEFAULT_TAG_PREFIX,
    domains: Sequence[DomainPattern] = DOMAIN_PATTERNS,
) -> List[str]:
    """
    Generate up to five namespaced domain tags for a run of messages.

    Parameters
    ----------
    messages : Sequence[Message]
        Messages to scan
    tag_prefix : str
        Namespace, e.g. ``ai-chat`` produces ``ai-chat/coding``
    domains : Sequence[DomainPattern]
        Pattern table, evaluated in order

    Returns
    -------
    list[str]
        Matched tags in table order, or just the bare prefix if nothing matched
    """
    prefix = normalize_prefix(tag_prefix)
    text = " ".join(m.plain_text for m in messages)
    tags: List[str] = []

    for domain in domains:
        if len(tags) >= MAX_TAGS:
            break
        tag = f"{prefix}/{domain.tag}"
        if tag in tags:
            continue
        matches = count_matches(text, domain)
        if matches >= domain.min_matches:
            logger.debug("Tag %s fired with %d matches", tag, matches)
            tags.append(tag)

    if not tags:
        tags.append(prefix)
    return tags


def extract_tag_prefix(tags: Sequence[str]) -> str:
    """Recover the tag prefix from previously generated tags."""
    if not tags:
        return DEFAULT_TAG_PREFIX
    first = tags[0]
    slash = first.find("/")
    return first[:slash] if slash > 0 else first
