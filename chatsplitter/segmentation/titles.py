"""
Heuristic title generation.

Titles come from an ordered chain of strategies; the first strategy that
produces a result wins:

1. Comparison detection ("React vs Vue")
2. Named entities plus a short topic kernel from the first user sentence
3. The cleaned first user sentence
4. The most frequent content keywords

Every strategy is a plain function ``(messages) -> Optional[str]`` so each
can be exercised on its own.
"""
import logging
import re
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from chatsplitter.core.models import Message
from chatsplitter.core.text import (
    CODE_FENCE,
    TRAILING_PUNCT,
    extract_first_sentence,
    strip_filler_and_actions,
    strip_markdown,
)
from chatsplitter.core.utils import STOP_WORDS, content_tokens

logger = logging.getLogger(__name__)

TitleStrategy = Callable[[Sequence[Message]], Optional[str]]

MAX_TITLE_LENGTH = 72
MAX_COMPARISON_SIDE_LENGTH = 45
MAX_KERNEL_WORDS = 4
MAX_ENTITIES = 2
MIN_ENTITY_SCORE = 3
USER_ENTITY_WEIGHT = 3
ASSISTANT_ENTITY_WEIGHT = 1
ENTITY_SIMILARITY = 85
UNTITLED = "Untitled Topic"

COMPARISON_PATTERNS = [
    re.compile(r"^(?:the\s+)?(?:main\s+|key\s+)?differences?\s+between\s+(?P<a>.+?)\s+and\s+(?P<b>.+)$", re.I),
    re.compile(r"^compar(?:e|ing|ison of)\s+(?P<a>.+?)\s+(?:and|with|to|vs\.?|versus)\s+(?P<b>.+)$", re.I),
    re.compile(r"^(?:should i (?:use|choose|pick|go with)|which is better,?)\s+(?P<a>.+?)\s+or\s+(?P<b>.+)$", re.I),
    re.compile(r"^(?P<a>.+?)\s+(?:vs\.?|versus)\s+(?P<b>.+)$", re.I),
]

_PREPOSITIONAL_TAIL = re.compile(
    r"\s+(?:for|in|when|on|with|to|regarding|about|as|if|which|that|because|since)\b.*$",
    re.I,
)

_MULTIWORD_ENTITY = re.compile(r"\b[A-Z][\w+#.-]*[\w+#](?:[ \t]+[A-Z][\w+#.-]*[\w+#])+")
_ACRONYM = re.compile(r"\b[A-Z][A-Z0-9]{1,5}s?\b")
IGNORED_ACRONYMS = frozenset(["OK", "AM", "PM", "ID", "TL", "DR", "FYI", "ASAP", "IMO", "BTW", "LOL", "TBH"])
ENTITY_LEADERS = frozenset([
    "the", "a", "an", "this", "that", "my", "our", "your", "in", "on", "for", "what",
    "how", "can", "could", "should", "when", "why", "if", "is", "are", "using", "with",
])

MINOR_WORDS = frozenset([
    'a', 'an', 'the', 'and', 'but', 'or', 'for', 'nor', 'on', 'at',
    'to', 'by', 'of', 'in', 'is', 'it', 'vs', 'with', 'as', 'if',
])


def _is_acronym(word: str) -> bool:
    letters = [c for c in word if c.isalpha()]
    return len(word) >= 2 and bool(letters) and all(c.isupper() for c in letters) and word.isalnum()


def to_title_case(text: str) -> str:
    """
    Title-case a phrase.

    ALL-CAPS acronyms and words with internal capitals ("GitHub") are kept
    as written; minor words are lowercased unless they open the title.
    """
    words = text.split()
    result = []
    for i, word in enumerate(words):
        if _is_acronym(word) or any(c.isupper() for c in word[1:]):
            result.append(word)
            continue
        lower = word.lower()
        if i > 0 and lower in MINOR_WORDS:
            result.append(lower)
        else:
            result.append(lower[:1].upper() + lower[1:])
    return " ".join(result)


def truncate_title(text: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """
    Cap a title at ``max_length`` characters without cutting a word.

    Prefers a phrase boundary (comma, semicolon, colon), then a break before
    a conjunction, then the last word boundary.
    """
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]

    phrase = re.match(r"^(.+)[,;:](?:\s|$)", truncated)
    if phrase and len(phrase.group(1)) > max_length * 0.4:
        return phrase.group(1).strip()

    conjunction = re.match(r"^(.+)\s+(?:and|or|but)\s+", truncated, re.I)
    if conjunction and len(conjunction.group(1)) > max_length * 0.4:
        return conjunction.group(1).strip()

    if text[max_length].isspace():
        return truncated.rstrip(" ,;:-")
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space].rstrip(" ,;:-")
    # a single word longer than the limit
    return truncated


def _first_user(messages: Sequence[Message]) -> Optional[Message]:
    for msg in messages:
        if msg.is_user:
            return msg
    return None


def _first_user_sentence(messages: Sequence[Message]) -> Optional[str]:
    first = _first_user(messages)
    if first is None:
        return None
    sentence = extract_first_sentence(strip_markdown(first.plain_text))
    return sentence or None


# ============================================================
# Strategies
# ============================================================


def _clean_side(side: str, take_last_clause: bool = False) -> str:
    if take_last_clause:
        side = re.split(r"[:;,]\s*", side)[-1]
        side = re.sub(r"^.*\b(?:between|whether|either)\s+", "", side, flags=re.I)
    side = _PREPOSITIONAL_TAIL.sub("", side)
    side = TRAILING_PUNCT.sub("", side).strip()
    return truncate_title(to_title_case(side), MAX_COMPARISON_SIDE_LENGTH)


def comparison_title(messages: Sequence[Message]) -> Optional[str]:
    """Detect "X vs Y" / "difference between X and Y" / "compare X and Y"."""
    sentence = _first_user_sentence(messages)
    if not sentence:
        return None
    cleaned = TRAILING_PUNCT.sub("", strip_filler_and_actions(sentence))

    for pattern in COMPARISON_PATTERNS:
        match = pattern.match(cleaned)
        if not match:
            continue
        side_a = _clean_side(match.group("a"), take_last_clause=True)
        side_b = _clean_side(match.group("b"))
        if side_a and side_b:
            return f"{side_a} vs {side_b}"
    return None


def _split_sentences(text: str) -> List[str]:
    lines = []
    for line in CODE_FENCE.sub(" ", text).split("\n"):
        stripped = line.strip()
        # headings and list labels are title-cased by convention, not entities
        if not stripped or re.match(r"^(#{1,6}\s|[-*+]\s|\d+[.)]\s)", stripped):
            continue
        lines.append(stripped)
    sentences: List[str] = []
    for line in lines:
        sentences.extend(s for s in re.split(r"(?<=[.!?])\s+", strip_markdown(line)) if s)
    return sentences


def _normalize_entity(candidate: str) -> Optional[str]:
    words = candidate.split()
    while words and words[0].lower() in ENTITY_LEADERS:
        words = words[1:]
    if len(words) < 2:
        return None
    return " ".join(words).rstrip(".")


def extract_entities(messages: Sequence[Message]) -> List[Tuple[str, int]]:
    """
    Extract capitalized multi-word entities and acronyms with weighted counts.

    Mentions in user messages count three times as much as assistant
    mentions. Near-duplicates (typos, containment) are merged into the
    better-scored spelling.

    Returns
    -------
    list[tuple[str, int]]
        (entity, score) pairs, best first; ties keep first-seen order
    """
    scores: Counter = Counter()
    for msg in messages:
        weight = USER_ENTITY_WEIGHT if msg.is_user else ASSISTANT_ENTITY_WEIGHT
        for sentence in _split_sentences(msg.plain_text):
            if sentence.isupper():
                continue
            found: List[str] = []
            for match in _MULTIWORD_ENTITY.finditer(sentence):
                entity = _normalize_entity(match.group(0))
                if entity:
                    found.append(entity)
            for match in _ACRONYM.finditer(sentence):
                acronym = match.group(0)
                if acronym.rstrip("s") in IGNORED_ACRONYMS:
                    continue
                if any(acronym in f.split() for f in found):
                    continue
                found.append(acronym)
            for entity in found:
                scores[entity] += weight

    merged: Dict[str, int] = {}
    for entity, score in scores.most_common():
        target = None
        for kept in merged:
            a, b = entity.lower(), kept.lower()
            if fuzz.ratio(a, b) >= ENTITY_SIMILARITY or set(a.split()) <= set(b.split()) \
                    or set(b.split()) <= set(a.split()):
                target = kept
                break
        if target is None:
            merged[entity] = score
        else:
            merged[target] += score

    return sorted(merged.items(), key=lambda item: -item[1])


def extract_topic_kernel(sentence: str, entities: Sequence[str] = ()) -> Optional[str]:
    """
    Reduce a sentence to a short topic phrase.

    Strips openers and contextual references, removes the given entities and
    trims stop words from both ends, keeping at most four words.
    """
    text = TRAILING_PUNCT.sub("", strip_filler_and_actions(sentence))
    for entity in entities:
        text = re.sub(re.escape(entity), " ", text, flags=re.I)
    words = [w.strip(",;:()\"'") for w in text.split()]
    words = [w for w in words if w]
    while words and words[0].lower() in STOP_WORDS:
        words = words[1:]
    words = words[:MAX_KERNEL_WORDS]
    while words and words[-1].lower() in STOP_WORDS:
        words = words[:-1]
    if not words or not content_tokens(" ".join(words)):
        return None
    return to_title_case(" ".join(words))


def entity_title(messages: Sequence[Message]) -> Optional[str]:
    """Compose "{Entities} {Kernel}" from named entities and the first user sentence."""
    if _first_user(messages) is None:
        return None
    ranked = [(e, s) for e, s in extract_entities(messages) if s >= MIN_ENTITY_SCORE]
    if not ranked:
        return None
    entities = [e for e, _ in ranked[:MAX_ENTITIES]]
    label = " & ".join(entities)

    sentence = _first_user_sentence(messages)
    kernel = extract_topic_kernel(sentence, entities) if sentence else None
    if kernel:
        return f"{label} {kernel}"
    return label


def sentence_title(messages: Sequence[Message]) -> Optional[str]:
    """Title-case the first user sentence with openers stripped."""
    sentence = _first_user_sentence(messages)
    if not sentence:
        return None
    cleaned = TRAILING_PUNCT.sub("", strip_filler_and_actions(sentence))
    if not cleaned:
        return None
    return to_title_case(cleaned)


def keyword_title(messages: Sequence[Message]) -> Optional[str]:
    """Top three content keywords across all messages."""
    freq = Counter()
    for msg in messages:
        freq.update(content_tokens(msg.plain_text))
    top = [word for word, _ in freq.most_common(3)]
    if not top:
        return UNTITLED
    return to_title_case(" ".join(top))


def first_of(*strategies: TitleStrategy) -> TitleStrategy:
    """
    Combine strategies into one that returns the first non-empty result.

    Parameters
    ----------
    *strategies : callable
        Functions ``(messages) -> Optional[str]``, tried in order

    Returns
    -------
    callable
        Strategy returning the first result that is neither None nor empty
    """
    def chain(messages: Sequence[Message]) -> Optional[str]:
        for strategy in strategies:
            result = strategy(messages)
            if result:
                logger.debug("Title from %s: %r", getattr(strategy, "__name__", strategy), result)
                return result
        return None

    return chain


TITLE_STRATEGIES: Tuple[TitleStrategy, ...] = (
    comparison_title,
    entity_title,
    sentence_title,
    keyword_title,
)

_title_chain = first_of(*TITLE_STRATEGIES)


def generate_title(messages: Sequence[Message]) -> str:
    """
    Generate a short title for a run of messages.

    Returns
    -------
    str
        Title of at most 72 characters, never cut mid-word
    """
    title = _title_chain(messages) or UNTITLED
    return truncate_title(title, MAX_TITLE_LENGTH)
