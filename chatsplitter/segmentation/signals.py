"""
Boundary evidence signals.

Each scorer inspects the messages around a candidate boundary and returns a
score in [0, 1]: 0 means no evidence of a topic change, 1 strong evidence.
All scorers are pure functions of message content and metadata.
"""
import logging
import re
from collections import Counter
from typing import List, Optional, Sequence, Set

import numpy as np

from chatsplitter.core.models import Message
from chatsplitter.core.utils import content_tokens, count_words

logger = logging.getLogger(__name__)

TRANSITION_SCAN_CHARS = 200

TRANSITION_STRONG = [
    re.compile(r"^(let'?s|can we|i want to)\s+(move on|switch|change|talk about|discuss)", re.I),
    re.compile(r"^(on a different|new)\s+(note|topic|subject)", re.I),
    re.compile(r"^(switching|changing|moving)\s+(to|on to)", re.I),
]

TRANSITION_MODERATE = [
    re.compile(r"^(now|next|also|another)\b.*\?", re.I),
    re.compile(
        r"^(ok\s+)?(let'?s|can we|i want to)\s+"
        r"(explore|create|look at|go|try|start|build|make|do|set up|work on)\b",
        re.I,
    ),
    re.compile(r"^(ok\s+)?(perfect|great|thanks?|thank you)[\s,.!]*(can you|could you|let'?s|now)\b", re.I),
    re.compile(r"^(ok\s+)?(perfect|great|thanks?|thank you)[\s,.!]+[\w\s,]*\b(can you|could you|help|let'?s)\b", re.I),
]

REINTRODUCTION_STRONG = [
    re.compile(r"^(i have a question|can you help|i need help|could you explain|what('?s| is| are))\b", re.I),
]

REINTRODUCTION_MODERATE = [
    re.compile(r"^(how (do|can|should)|why (do|does|is)|is (it|there)|tell me about)\b", re.I),
]

MIN_WINDOW_VOCABULARY = 5

GAP_THRESHOLD_MINUTES = 30.0
MAX_GAP_MINUTES = 120.0

MIN_ASSISTANT_WORDS = 300
MIN_HEADINGS = 2
MIN_LIST_ITEMS = 3
MAX_NEXT_USER_WORDS = 100

_HEADING = re.compile(r"^#{1,6}\s+", re.M)
_LIST_ITEM = re.compile(r"^\s*[-*+]\s+|^\s*\d+[.)]\s+", re.M)


def _match_strength(text: str, strong: Sequence[re.Pattern], moderate: Sequence[re.Pattern]) -> float:
    for pattern in strong:
        if pattern.search(text):
            return 1.0
    for pattern in moderate:
        if pattern.search(text):
            return 0.5
    return 0.0


def score_transition_phrases(message: Message) -> float:
    """
    Detect explicit topic-switch language at the start of a user message.

    Only the first 200 characters are inspected. Returns 1.0 for a strong
    pattern ("let's move on to..."), 0.5 for a moderate one ("also, ...?"),
    otherwise 0.0.
    """
    if not message.is_user:
        return 0.0
    text = message.plain_text[:TRANSITION_SCAN_CHARS].strip()
    return _match_strength(text, TRANSITION_STRONG, TRANSITION_MODERATE)


def score_reintroduction(message: Message) -> float:
    """Detect question-opening phrasing ("I have a question...", "How do...")."""
    if not message.is_user:
        return 0.0
    text = message.plain_text.strip()
    return _match_strength(text, REINTRODUCTION_STRONG, REINTRODUCTION_MODERATE)


def _window_tokens(messages: Sequence[Message], start: int, end: int) -> List[str]:
    tokens: List[str] = []
    for msg in messages[max(0, start):min(len(messages), end)]:
        tokens.extend(content_tokens(msg.plain_text))
    return tokens


def score_domain_shift(messages: Sequence[Message], boundary_index: int, window_size: int) -> float:
    """
    Vocabulary turnover across a boundary, as ``1 - Jaccard(before, after)``.

    The windows are the ``window_size`` messages on each side of the
    boundary. Returns 0.0 when either window has fewer than five distinct
    content tokens.
    """
    before: Set[str] = set(_window_tokens(messages, boundary_index - window_size, boundary_index))
    after: Set[str] = set(_window_tokens(messages, boundary_index, boundary_index + window_size))

    if len(before) < MIN_WINDOW_VOCABULARY or len(after) < MIN_WINDOW_VOCABULARY:
        return 0.0

    union = before | after
    jaccard = len(before & after) / len(union)
    return 1.0 - jaccard


def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    sim = float(np.dot(a, b) / denom)
    return max(0.0, min(1.0, sim))


def score_vocabulary_shift(messages: Sequence[Message], boundary_index: int, window_size: int) -> float:
    """
    Term-frequency drift across a boundary, as ``1 - cosine(before, after)``.

    Returns 0.0 when either window has no content terms.
    """
    before_tf = Counter(_window_tokens(messages, boundary_index - window_size, boundary_index))
    after_tf = Counter(_window_tokens(messages, boundary_index, boundary_index + window_size))

    if not before_tf or not after_tf:
        return 0.0

    vocabulary = sorted(set(before_tf) | set(after_tf))
    a = np.array([before_tf.get(term, 0) for term in vocabulary], dtype=np.float64)
    b = np.array([after_tf.get(term, 0) for term in vocabulary], dtype=np.float64)
    return 1.0 - _cosine_similarity(a, b)


def score_temporal_gap(before: Message, after: Message) -> float:
    """
    Score the pause between two adjacent messages.

    Below 30 minutes scores 0; longer gaps scale linearly, reaching 1.0 at
    two hours. Missing timestamps score 0.
    """
    if before.timestamp is None or after.timestamp is None:
        return 0.0
    try:
        gap_minutes = (after.timestamp - before.timestamp).total_seconds() / 60.0
    except TypeError:
        # naive vs aware datetimes
        logger.debug("Cannot compare timestamps of messages %d and %d", before.index, after.index)
        return 0.0

    if gap_minutes < GAP_THRESHOLD_MINUTES:
        return 0.0
    return min(1.0, gap_minutes / MAX_GAP_MINUTES)


def score_self_contained(previous: Message, next_user: Message) -> float:
    """
    Detect a wrapped-up answer followed by a fresh, lightweight question.

    Scores 1.0 only when ``previous`` is a long (300+ words), structured
    (2+ headings or 3+ list items) assistant response and ``next_user`` is a
    short (100 words or fewer) user message.
    """
    if not previous.is_assistant or not next_user.is_user:
        return 0.0

    text = previous.plain_text
    if count_words(text) < MIN_ASSISTANT_WORDS:
        return 0.0

    headings = len(_HEADING.findall(text))
    list_items = len(_LIST_ITEM.findall(text))
    if headings < MIN_HEADINGS and list_items < MIN_LIST_ITEMS:
        return 0.0

    if count_words(next_user.plain_text) > MAX_NEXT_USER_WORDS:
        return 0.0

    return 1.0


def explain_match(message: Message, strong: Sequence[re.Pattern], moderate: Sequence[re.Pattern]) -> Optional[str]:
    """Return the matched phrase for a pattern-table signal, if any."""
    text = message.plain_text[:TRANSITION_SCAN_CHARS].strip()
    for pattern in list(strong) + list(moderate):
        match = pattern.search(text)
        if match:
            return match.group(0)[:60]
    return None
