"""
Shared helpers for extracted items: inline markdown cleanup, normalized
deduplication and length capping.
"""
import re
from typing import List, Sequence

MAX_ITEM_LENGTH = 200

URL_PATTERN = re.compile(r"https?://[^\s)<>\"\]]+")
_MARKDOWN_ONLY_LINE = re.compile(r"^[\s\-=*_#>`~|:+]*$")
_SENTENCE_END = re.compile(r"^.*?[.!?](?=\s|$)", re.S)


def clean_markdown_inline(text: str) -> str:
    """Strip inline emphasis, code spans and links, keeping their text."""
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    text = re.sub(r"\*([^*]+)\*", r"\1", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    text = re.sub(r"~~([^~]+)~~", r"\1", text)
    return text


def is_markdown_only(line: str) -> bool:
    """True for lines made only of markdown syntax (rules, fences, bare markers)."""
    stripped = line.strip()
    return not stripped or stripped.startswith("```") or bool(_MARKDOWN_ONLY_LINE.match(stripped))


def strip_urls(text: str) -> str:
    return re.sub(r"\s{2,}", " ", URL_PATTERN.sub("", text)).strip()


def normalize(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    text = re.sub(r"[^a-z0-9\s]", "", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def is_duplicate(item: str, existing: Sequence[str]) -> bool:
    """True if ``item`` equals, contains or is contained in an existing item."""
    norm = normalize(item)
    for other in existing:
        other_norm = normalize(other)
        if other_norm == norm or other_norm in norm or norm in other_norm:
            return True
    return False


def truncate_item(text: str, max_length: int = MAX_ITEM_LENGTH) -> str:
    """Cap an item at a sentence end, else a word boundary with an ellipsis."""
    if len(text) <= max_length:
        return text
    head = text[:max_length]
    sentence = _SENTENCE_END.match(head)
    if sentence:
        return sentence.group(0).strip()
    last_space = text.rfind(" ", 0, max_length)
    if last_space > max_length * 0.5:
        return text[:last_space] + "..."
    return head + "..."


def add_unique(items: List[str], candidate: str) -> bool:
    """Append ``candidate`` unless it duplicates an existing item."""
    if is_duplicate(candidate, items):
        return False
    items.append(candidate)
    return True
