"""
Character-budgeted conversation chunking for the LLM backend.
"""
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict

from chatsplitter.core.models import Message

DEFAULT_TARGET_CHARS = 12000
DEFAULT_OVERLAP_MESSAGES = 4


class MessageChunk(BaseModel):
    """A run of messages sent to the model in one request."""

    model_config = ConfigDict(frozen=True)

    messages: List[Message]
    start_index: int
    end_index: int


def _chunk(messages: Sequence[Message]) -> MessageChunk:
    return MessageChunk(
        messages=list(messages),
        start_index=messages[0].index,
        end_index=messages[-1].index,
    )


def chunk_conversation(
    messages: Sequence[Message],
    target_chars: int = DEFAULT_TARGET_CHARS,
    overlap_messages: int = DEFAULT_OVERLAP_MESSAGES,
) -> List[MessageChunk]:
    """
    Split a conversation into chunks of roughly ``target_chars`` characters.

    Consecutive chunks share ``overlap_messages`` messages so the model sees
    context on both sides of a chunk edge. A conversation that fits in the
    budget is returned as a single chunk.

    Parameters
    ----------
    messages : Sequence[Message]
        The conversation, in order
    target_chars : int
        Character budget per chunk; a chunk closes once it reaches the budget
    overlap_messages : int
        Messages repeated at the start of the next chunk

    Returns
    -------
    list[MessageChunk]
        Chunks in order; empty for an empty conversation
    """
    if not messages:
        return []

    total = sum(len(m.plain_text) for m in messages)
    if total <= target_chars:
        return [_chunk(messages)]

    chunks: List[MessageChunk] = []
    start = 0
    while start < len(messages):
        size = 0
        end = start
        while end < len(messages) and size < target_chars:
            size += len(messages[end].plain_text)
            end += 1
        chunks.append(_chunk(messages[start:end]))

        if end >= len(messages):
            break
        # always advance, even when a single message exceeds the budget
        start = max(end - overlap_messages, start + 1)

    return chunks
