"""
Summary and key-information extraction for segments.

Derives a short summary, key points from assistant list items (or headings)
and cleaned outbound links from a segment's messages.
"""
import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from chatsplitter.core.models import KeyInfo, Message
from chatsplitter.core.text import strip_markdown
from chatsplitter.generators.items import (
    URL_PATTERN,
    add_unique,
    clean_markdown_inline,
    is_markdown_only,
    strip_urls,
    truncate_item,
)
from chatsplitter.generators.summary_builder import (
    extract_questions,
    extract_takeaways,
    extract_topics,
)

logger = logging.getLogger(__name__)

MAX_KEY_POINTS = 6
MAX_SUMMARY_PART = 100
NO_SUMMARY = "No summary available."

TRACKING_PARAMS = frozenset([
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'fbclid', 'gclid', 'ref', 'source', 'mc_cid', 'mc_eid',
])

_LIST_ITEM = re.compile(r"^(\s{0,4})(?:[-*+]|\d+\.)\s+(.+)")
_HEADING = re.compile(r"^#{2,4}\s+(.+)")


def _first_meaningful_line(text: str) -> Optional[str]:
    in_fence = False
    for line in text.split("\n"):
        if line.strip().startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence or is_markdown_only(line):
            continue
        cleaned = strip_urls(clean_markdown_inline(strip_markdown(line)))
        if cleaned and not is_markdown_only(cleaned):
            return cleaned
    return None


def _cap(text: str, limit: int = MAX_SUMMARY_PART) -> str:
    if len(text) <= limit:
        return text
    cut = text.rfind(" ", 0, limit)
    return text[:cut if cut > limit * 0.5 else limit].rstrip(" ,;:")


def generate_summary(messages: Sequence[Message]) -> str:
    """
    Build a one or two sentence summary.

    Combines the opening of the first user message with the first sentence of
    the first assistant reply. URLs and markdown-only lines are skipped.
    """
    parts: List[str] = []

    first_user = next((m for m in messages if m.is_user), None)
    if first_user is not None:
        question = _first_meaningful_line(first_user.plain_text)
        if question:
            parts.append(_cap(question))

    first_assistant = next((m for m in messages if m.is_assistant), None)
    if first_assistant is not None:
        line = _first_meaningful_line(first_assistant.plain_text)
        if line:
            sentence = re.split(r"(?<=[.!?])\s", line, maxsplit=1)[0].rstrip(".!?").strip()
            if sentence:
                parts.append(_cap(sentence) + ".")

    return " -- ".join(parts) or NO_SUMMARY


def extract_key_points(messages: Sequence[Message]) -> List[str]:
    """
    Up to six key points from assistant list items.

    Only top-level items (indent of four spaces or less) of ten or more
    characters count. Falls back to level 2-4 headings when no list item
    qualifies. Messages of any role are used if there is no assistant text.
    """
    sources = [m for m in messages if m.is_assistant] or list(messages)
    points: List[str] = []

    for msg in sources:
        for line in msg.plain_text.split("\n"):
            match = _LIST_ITEM.match(line)
            if not match:
                continue
            item = clean_markdown_inline(match.group(2).strip())
            if len(item) < 10 or re.fullmatch(r"[-_=*~`#]+", item):
                continue
            add_unique(points, truncate_item(item))
            if len(points) >= MAX_KEY_POINTS:
                return points

    if points:
        return points

    for msg in sources:
        for line in msg.plain_text.split("\n"):
            match = _HEADING.match(line)
            if not match:
                continue
            heading = clean_markdown_inline(match.group(1).strip())
            if len(heading) < 5:
                continue
            add_unique(points, truncate_item(heading))
            if len(points) >= MAX_KEY_POINTS:
                return points

    return points


def clean_url(url: str) -> str:
    """
    Normalize an outbound link.

    Drops trailing punctuation, tracking parameters and trailing slashes.
    Unparseable URLs are returned with only the punctuation stripped.
    """
    cleaned = re.sub(r"[.)>,;:!?]+$", "", url)
    try:
        parts = urlsplit(cleaned)
    except ValueError:
        logger.debug("Could not parse URL %s", cleaned)
        return cleaned
    if not parts.netloc:
        return cleaned

    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS]
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(query), parts.fragment))


def format_link(url: str) -> str:
    """Render a URL as ``[domain](url)``."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        host = None
    if not host:
        return url
    return f"[{re.sub(r'^www[.]', '', host)}]({url})"


def extract_links(messages: Sequence[Message]) -> List[str]:
    """Deduplicated, cleaned outbound links in order of first appearance."""
    seen = set()
    links: List[str] = []
    for msg in messages:
        for match in URL_PATTERN.finditer(msg.plain_text):
            url = clean_url(match.group(0))
            if url and url not in seen:
                seen.add(url)
                links.append(format_link(url))
    return links


def extract_key_info(
    messages: Sequence[Message],
    summary: Optional[str] = None,
    tags: Sequence[str] = (),
    include_details: bool = False,
) -> KeyInfo:
    """
    Bundle summary, key points, links and tags for a segment.

    Parameters
    ----------
    messages : Sequence[Message]
        Segment messages
    summary : str, optional
        Existing summary; generated when omitted
    tags : Sequence[str]
        Segment tags, passed through
    include_details : bool
        Also extract questions asked, topics covered and key takeaways

    Returns
    -------
    KeyInfo
    """
    info = KeyInfo(
        summary=summary if summary else generate_summary(messages),
        key_points=extract_key_points(messages),
        links=extract_links(messages),
        tags=list(tags),
    )
    if include_details:
        info = info.model_copy(update={
            "questions": extract_questions(messages),
            "topics": extract_topics(messages),
            "takeaways": extract_takeaways(messages),
        })
    return info
