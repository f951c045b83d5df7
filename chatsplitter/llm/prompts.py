"""
Prompt construction for LLM-assisted segmentation.
"""
from typing import Sequence, Union

from chatsplitter.core.models import Granularity, Message

PREVIEW_CHARS = 200
MAX_LLM_TITLE_LENGTH = 50

GRANULARITY_INSTRUCTIONS = {
    Granularity.COARSE: (
        "Only split when there is a very clear and major topic change. "
        "Prefer fewer, larger segments."
    ),
    Granularity.MEDIUM: (
        "Split when the conversation moves to a distinctly different topic. "
        "Balance between too many and too few segments."
    ),
    Granularity.FINE: (
        "Split when you detect any meaningful shift in subject matter, "
        "even within a broader topic."
    ),
}


def format_message_preview(message: Message) -> str:
    """One line per message: ``[index] role: first 200 characters``."""
    preview = message.plain_text[:PREVIEW_CHARS].replace("\n", " ")
    return f"[{message.index}] {message.role.value}: {preview}"


def build_segmentation_prompt(messages: Sequence[Message], granularity: Union[Granularity, str]) -> str:
    """
    Build the prompt asking the model for a JSON array of segments.

    Parameters
    ----------
    messages : Sequence[Message]
        Messages of one chunk
    granularity : Granularity or str
        Controls how eagerly the model is asked to split

    Returns
    -------
    str
    """
    granularity = Granularity(granularity)
    conversation = "\n".join(format_message_preview(m) for m in messages)

    return f"""You are analyzing a conversation to identify topic segments. Your goal is to find natural topic boundaries.

GRANULARITY: {granularity.value}
{GRANULARITY_INSTRUCTIONS[granularity]}

RULES:
- Only split BEFORE user messages (never in the middle of an assistant response)
- Each segment must contain at least one user message and one assistant message
- Provide a short descriptive title for each segment (max {MAX_LLM_TITLE_LENGTH} characters)
- Provide a 1-2 sentence summary for each segment
- Assign a confidence score (0.0 to 1.0) for each segment boundary

CONVERSATION:
{conversation}

Respond with ONLY a JSON array. No other text before or after. Format:
[
  {{
    "startIndex": <first message index>,
    "endIndex": <last message index>,
    "title": "<topic title>",
    "summary": "<1-2 sentence summary>",
    "confidence": <0.0 to 1.0>
  }}
]

Example output for a 2-segment conversation:
[
  {{"startIndex": 0, "endIndex": 5, "title": "Project Setup", "summary": "Discussion about initial project configuration.", "confidence": 1.0}},
  {{"startIndex": 6, "endIndex": 12, "title": "Database Design", "summary": "Planning the database schema and relationships.", "confidence": 0.85}}
]"""
