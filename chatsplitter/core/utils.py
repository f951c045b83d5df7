"""
Utility functions for text processing.

Word counting, tokenization and stop-word filtering shared by the signal
scorers and the title/tag/summary generators.
"""
import re
import unicodedata
from typing import Iterable, List

STOP_WORDS = frozenset([
    'a', 'about', 'above', 'after', 'again', 'against', 'all', 'also', 'am', 'an',
    'and', 'any', 'are', 'as', 'at', 'be', 'because', 'been', 'before', 'being',
    'below', 'between', 'both', 'but', 'by', 'can', 'could', 'did', 'do', 'does',
    'doing', 'down', 'during', 'each', 'few', 'for', 'from', 'further', 'get',
    'got', 'had', 'has', 'have', 'having', 'he', 'her', 'here', 'hers', 'herself',
    'him', 'himself', 'his', 'how', 'i', 'if', 'in', 'into', 'is', 'it', 'its',
    'itself', 'just', 'know', 'let', 'like', 'make', 'may', 'me', 'might', 'more',
    'most', 'much', 'must', 'my', 'myself', 'no', 'nor', 'not', 'now', 'of', 'off',
    'on', 'once', 'only', 'or', 'other', 'ought', 'our', 'ours', 'ourselves', 'out',
    'over', 'own', 'per', 'put', 'quite', 're', 'really', 'right', 'said', 'same',
    'say', 'shall', 'she', 'should', 'so', 'some', 'such', 'take', 'than', 'that',
    'the', 'their', 'theirs', 'them', 'themselves', 'then', 'there', 'these', 'they',
    'this', 'those', 'through', 'to', 'too', 'under', 'until', 'up', 'upon', 'us',
    'use', 'very', 'want', 'was', 'we', 'well', 'were', 'what', 'when', 'where',
    'which', 'while', 'who', 'whom', 'why', 'will', 'with', 'would', 'yes', 'yet',
    'you', 'your', 'yours', 'yourself', 'yourselves',
])

MIN_TOKEN_LENGTH = 3


def _is_separator(ch: str) -> bool:
    # whitespace and Unicode punctuation (categories P*); symbols such as + or = stay in tokens
    return ch.isspace() or unicodedata.category(ch).startswith("P")


def count_words(text: str) -> int:
    """
    Count words in a text string.

    Parameters
    ----
    text : str
        Text to count words in

    Returns
    ----
    int
        Word count
    """
    if not text or not isinstance(text, str):
        return 0

    # Split on whitespace runs
    words = re.findall(r'\S+', text)
    return len(words)


def total_words(texts: Iterable[str]) -> int:
    """Sum of word counts across several texts."""
    return sum(count_words(t) for t in texts)


def tokenize(text: str) -> List[str]:
    """
    Split text into lowercase tokens.

    Splits on whitespace and Unicode punctuation and drops tokens shorter than
    three characters.

    Parameters
    ----
    text : str
        Raw text

    Returns
    ----
    list[str]
        Tokens in order of appearance
    """
    if not text:
        return []
    spaced = "".join(" " if _is_separator(ch) else ch for ch in text.lower())
    return [t for t in spaced.split() if len(t) >= MIN_TOKEN_LENGTH]


def remove_stop_words(tokens: Iterable[str]) -> List[str]:
    """Drop tokens that appear in the closed stop-word list."""
    return [t for t in tokens if t not in STOP_WORDS]


def content_tokens(text: str) -> List[str]:
    """Tokenize and stop-word filter in one step."""
    return remove_stop_words(tokenize(text))
