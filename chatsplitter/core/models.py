"""
Domain models for conversation segmentation.

These models represent the structure of messages, boundary evaluations and
segments independent of the format the conversation was imported from.

All models use Pydantic for validation, serialization, and type safety. They
are frozen: operators that "change" a segment return a new instance.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatsplitter.core.utils import count_words


class Role(str, Enum):
    """Message author roles consumed by the segmentation engine."""

    USER = "user"
    ASSISTANT = "assistant"


class SegmentationMethod(str, Enum):
    """How a segment was produced."""

    HEURISTIC = "heuristic"
    LLM = "llm"
    MANUAL = "manual"


class Granularity(str, Enum):
    """Named presets controlling how aggressively boundaries are accepted."""

    COARSE = "coarse"
    MEDIUM = "medium"
    FINE = "fine"


class ContentType(str, Enum):
    """Kind of transcript being segmented."""

    CHAT = "chat"  # Human/assistant dialogue
    DOCUMENT = "document"  # Non-dialogue text reinterpreted as messages


class Message(BaseModel):
    """
    A single turn in a conversation.

    Created once by the parsing layer and read-only afterwards.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: int = Field(ge=0)
    role: Role
    plain_text: str = Field(alias="plainText")
    timestamp: Optional[datetime] = None

    @property
    def is_user(self) -> bool:
        return self.role == Role.USER

    @property
    def is_assistant(self) -> bool:
        return self.role == Role.ASSISTANT

    @property
    def word_count(self) -> int:
        return count_words(self.plain_text)


class SignalResult(BaseModel):
    """Score produced by one signal for one candidate boundary."""

    model_config = ConfigDict(frozen=True)

    signal: str
    score: float = Field(ge=0.0, le=1.0)
    weight: float = 0.0
    detail: Optional[str] = None

    @property
    def contribution(self) -> float:
        """Weighted contribution of this signal to the composite score."""
        return self.score * self.weight


class SegmentBoundary(BaseModel):
    """
    A candidate split point immediately before a user message.

    Attributes
    ----------
    before_index : int
        Position of the first message of the segment that would start here
    score : float
        Composite score, the weighted sum of all signal scores
    signals : list[SignalResult]
        Individual signal evaluations, in evaluation order
    """

    model_config = ConfigDict(frozen=True)

    before_index: int
    score: float
    signals: List[SignalResult] = Field(default_factory=list)

    def signal(self, name: str) -> Optional[SignalResult]:
        """Look up a signal result by name."""
        for result in self.signals:
            if result.signal == name:
                return result
        return None


class Segment(BaseModel):
    """
    A contiguous, non-overlapping slice of a conversation on a single topic.

    Attributes
    ----------
    id : str
        Opaque identifier; regenerated whenever the message set changes
    title : str
        Short generated (or user supplied) title
    summary : str
        One or two sentence summary
    tags : list[str]
        Domain tags namespaced under the configured tag prefix
    messages : list[Message]
        The messages covered by this segment, in order
    start_index : int
        Index of the first message (inclusive)
    end_index : int
        Index of the last message (inclusive)
    confidence : float
        Score of the boundary that starts this segment (0-1)
    method : SegmentationMethod
        Which path produced the segment
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    summary: str = ""
    tags: List[str] = Field(default_factory=list)
    messages: List[Message] = Field(min_length=1)
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    method: SegmentationMethod = SegmentationMethod.HEURISTIC

    @model_validator(mode="after")
    def _check_range(self) -> "Segment":
        if self.end_index < self.start_index:
            raise ValueError(
                f"end_index {self.end_index} precedes start_index {self.start_index}"
            )
        return self

    @property
    def message_count(self) -> int:
        """Number of messages in this segment."""
        return len(self.messages)

    @property
    def word_count(self) -> int:
        """Total words across all messages in this segment."""
        return sum(m.word_count for m in self.messages)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for rendering layers."""
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "tags": list(self.tags),
            "start_index": self.start_index,
            "end_index": self.end_index,
            "message_count": self.message_count,
            "confidence": self.confidence,
            "method": self.method.value,
        }


class SegmentationResult(BaseModel):
    """Output of a segmentation run that may have fallen back to heuristics."""

    model_config = ConfigDict(frozen=True)

    segments: List[Segment]
    used_fallback: bool = False
    fallback_reason: Optional[str] = None

    @property
    def method(self) -> SegmentationMethod:
        if self.used_fallback or not self.segments:
            return SegmentationMethod.HEURISTIC
        return self.segments[0].method


class KeyInfo(BaseModel):
    """Structured information extracted from a segment's messages."""

    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    links: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    takeaways: List[str] = Field(default_factory=list)
