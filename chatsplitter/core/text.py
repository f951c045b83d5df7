"""
Sentence-level text cleanup shared by title generation and summary
extraction: markdown stripping, first-sentence extraction and removal of
conversational openers.
"""
import re

FILLER_PREFIXES = [
    re.compile(r"^(can you|could you|please|would you|i want you to|help me|i need you to)[,;:.!?]?\s+", re.I),
    re.compile(
        r"^(ok so|ok perfect|ok great|okay|ok|perfect|great|awesome|thanks|thank you|alright so|alright|"
        r"yeah so|yeah|sure|got it|hey|hi|hello|so|also|now|next|another question)[,;:.!?]?\s+",
        re.I,
    ),
]

ACTION_VERB_PATTERNS = [
    re.compile(
        r"^(explain|describe|summari[sz]e|tell me( more)? about|show me( how to)?|give me|walk me through|"
        r"teach me( about)?|help me( to)?( understand| with)?|write( me)?|create|generate|draft|list|outline)"
        r"[,;:]?\s+",
        re.I,
    ),
    re.compile(
        r"^(i (want|need|would like|'d like) to (know|learn|understand|figure out)( about| how| if| whether)?|"
        r"i'?m (trying|looking|wondering) (to|how|about|if|whether)|i was wondering (if|whether|about)|"
        r"i have a question( about)?|do you know( if| whether)?)[,;:]?\s+",
        re.I,
    ),
    re.compile(r"^(what (is|are)|what'?s|how (do|can|should|would) (i|we|you)|how to|why (is|are|do|does))\s+", re.I),
]

CONTEXTUAL_REFS = re.compile(
    r"\b(number\s+(one|two|three|four|five|six|seven|eight|nine|ten|\d+)|option\s+[a-d])\b\s*|#\d+\b\s*",
    re.I,
)

LEADING_PUNCT = re.compile(r"^[,;:.!?\-]+\s*")
TRAILING_PUNCT = re.compile(r"[\s,;:.!?\-]+$")
SENTENCE_PATTERN = re.compile(r"^.*?[.!?](?=\s|$)")

CODE_FENCE = re.compile(r"```.*?```", re.S)


def strip_markdown(text: str) -> str:
    """Remove markdown syntax, keeping the readable text."""
    text = CODE_FENCE.sub(" ", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"!\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    text = re.sub(r"__([^_]+)__", r"\1", text)
    text = re.sub(r"(?<![\w*])\*([^*\n]+)\*(?![\w*])", r"\1", text)
    text = re.sub(r"~~([^~]+)~~", r"\1", text)
    text = re.sub(r"^\s{0,3}#{1,6}\s+", "", text, flags=re.M)
    text = re.sub(r"^\s{0,3}>\s?", "", text, flags=re.M)
    return text.strip()


def extract_first_sentence(text: str) -> str:
    """
    Return the first sentence of the first non-empty line.

    Very short sentences (under 15 characters) fall back to the first 120
    characters of the line to keep some context.
    """
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        return ""
    first_line = lines[0]
    # "vs." would otherwise end the sentence
    protected = re.sub(r"\b(vs|versus)\.", r"\1", first_line, flags=re.I)
    match = SENTENCE_PATTERN.match(protected)
    if match:
        extracted = match.group(0)[:-1].strip()
        if len(extracted) < 15:
            return protected[:120].strip()
        return extracted
    return protected[:120].strip()


def strip_filler_and_actions(sentence: str) -> str:
    """
    Iteratively strip filler openers, action verbs and contextual references.

    Repeats until the sentence stops changing, so stacked openers
    ("ok so can you explain ...") are all removed.
    """
    current = sentence.strip()
    while True:
        previous = current
        for pattern in FILLER_PREFIXES + ACTION_VERB_PATTERNS:
            stripped = pattern.sub("", current, count=1)
            if stripped != current:
                current = LEADING_PUNCT.sub("", stripped.strip())
        current = CONTEXTUAL_REFS.sub("", current)
        current = re.sub(r"\s{2,}", " ", current).strip()
        current = LEADING_PUNCT.sub("", current)
        if current == previous:
            return current

