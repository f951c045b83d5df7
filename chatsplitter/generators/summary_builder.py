"""
Detail extraction for segment summaries: questions asked, topics covered and
key takeaways.
"""
import re
from typing import List, Sequence

from chatsplitter.core.models import Message
from chatsplitter.core.text import (
    extract_first_sentence,
    strip_filler_and_actions,
    strip_markdown,
)
from chatsplitter.generators.items import add_unique, clean_markdown_inline, truncate_item

MAX_QUESTIONS = 8
MAX_TOPICS = 8
MAX_TAKEAWAYS = 6

GREETING_PATTERN = re.compile(
    r"^(sure|absolutely|of course|great question|good question|certainly|definitely|"
    r"i'?d be happy to|i can help|happy to help|here'?s|let me|okay|yes)[,!.]?\s*",
    re.I,
)

TAKEAWAY_PATTERNS = [re.compile(p, re.I) for p in (
    r"\brecommend\b",
    r"\bsuggest\b",
    r"\bshould\s+consider\b",
    r"\bkey\s+takeaway\b",
    r"\bin\s+summary\b",
    r"\bin\s+conclusion\b",
    r"\bmost\s+important\b",
    r"\bthe\s+best\s+option\b",
    r"\bto\s+summarize\b",
    r"\bbottom\s+line\b",
    r"\boverall\b",
    r"\bultimately\b",
    r"\bmy\s+advice\b",
    r"\bthe\s+main\b",
    r"\bi'?d\s+go\s+with\b",
    r"\byou'?ll\s+want\s+to\b",
    r"\bthe\s+key\s+(?:thing|point|factor)\b",
)]

_FIRST_SENTENCE = re.compile(r"^[^.!?]*[.!?]")
_NUMBERING = re.compile(r"^(\d+\.\s*|step\s+\d+[:.]\s*|part\s+[a-z0-9]+[:.]\s*)", re.I)
_STRUCTURAL_LINE = re.compile(r"^(#{1,6}\s|[-*+]\s|\d+\.\s|[-=]{3,}$|```)")


def _is_takeaway(text: str) -> bool:
    return any(p.search(text) for p in TAKEAWAY_PATTERNS)


def split_into_sentences(text: str) -> List[str]:
    """Split prose into sentences at terminal punctuation and line breaks, ignoring fenced code."""
    stripped = re.sub(r"```.*?```", "", text, flags=re.S)
    return [part.strip() for part in re.split(r"(?<=[.!?])\s+|\n+", stripped) if part.strip()]


def extract_questions(messages: Sequence[Message]) -> List[str]:
    """Opening question of each user turn, cleaned of filler and deduplicated."""
    questions: List[str] = []
    for msg in messages:
        if not msg.is_user:
            continue
        text = strip_markdown(msg.plain_text.strip())
        if not text:
            continue
        sentence = strip_filler_and_actions(extract_first_sentence(text))
        sentence = clean_markdown_inline(re.sub(r"^[,;:.!?\-]+\s*", "", sentence).strip())
        if len(sentence) < 5:
            continue
        add_unique(questions, truncate_item(sentence))
        if len(questions) >= MAX_QUESTIONS:
            break
    return questions


def extract_topics(messages: Sequence[Message]) -> List[str]:
    """
    Topics covered, from assistant headings.

    Without headings, falls back to the first meaningful sentence of each
    assistant reply (greetings stripped).
    """
    replies = [m for m in messages if m.is_assistant]
    topics: List[str] = []

    for msg in replies:
        for line in msg.plain_text.split("\n"):
            match = re.match(r"^#{2,4}\s+(.+)", line)
            if not match:
                continue
            text = _NUMBERING.sub("", clean_markdown_inline(match.group(1).strip())).strip()
            if len(text) < 3:
                continue
            add_unique(topics, truncate_item(text))
            if len(topics) >= MAX_TOPICS:
                return topics

    if topics:
        return topics

    for msg in replies:
        lines = [
            line.strip() for line in msg.plain_text.split("\n")
            if len(line.strip()) >= 15
            and not _STRUCTURAL_LINE.match(line.strip())
            and not re.search(r"(https?:)?//\S+", line)
        ]
        if not lines:
            continue
        opening = GREETING_PATTERN.sub("", lines[0]).strip()
        if len(opening) < 10:
            continue
        match = _FIRST_SENTENCE.match(opening)
        sentence = clean_markdown_inline(match.group(0).strip() if match else opening[:150].strip())
        if len(sentence) < 10:
            continue
        add_unique(topics, truncate_item(sentence))
        if len(topics) >= MAX_TOPICS:
            break

    return topics


def extract_takeaways(messages: Sequence[Message]) -> List[str]:
    """
    Key takeaways from assistant replies.

    Sources, in order: sentences with recommendation or conclusion language,
    bolded phrases with such language, and finally the opening sentence of
    the last paragraph of the last reply.
    """
    replies = [m for m in messages if m.is_assistant]
    if not replies:
        return []
    takeaways: List[str] = []

    for msg in replies:
        for sentence in split_into_sentences(msg.plain_text):
            if len(sentence) < 15 or not _is_takeaway(sentence):
                continue
            cleaned = clean_markdown_inline(sentence).strip()
            cleaned = re.sub(r"^\d+\.\s+", "", re.sub(r"^[-*+]\s+", "", cleaned))
            if len(cleaned) < 15:
                continue
            add_unique(takeaways, truncate_item(cleaned))
            if len(takeaways) >= MAX_TAKEAWAYS:
                return takeaways

    for msg in replies:
        for match in re.finditer(r"\*\*([^*]{15,})\*\*", msg.plain_text):
            text = match.group(1).strip()
            if len(text) < 15 or not _is_takeaway(text):
                continue
            add_unique(takeaways, truncate_item(text))
            if len(takeaways) >= MAX_TAKEAWAYS:
                return takeaways

    if not takeaways:
        paragraphs = [p for p in re.split(r"\n\n+", replies[-1].plain_text) if p.strip()]
        if len(paragraphs) > 1:
            last = paragraphs[-1].strip()
            if len(last) >= 20 and not _STRUCTURAL_LINE.match(last):
                match = _FIRST_SENTENCE.match(last)
                sentence = clean_markdown_inline(match.group(0).strip() if match else last[:200].strip())
                if len(sentence) >= 15:
                    takeaways.append(truncate_item(sentence))

    return takeaways
