"""
Exception hierarchy for chatsplitter.

The heuristic path never raises for valid input. Only the LLM backend
raises, and everything it raises derives from ``LLMSegmentationError`` so
callers can fall back with a single ``except`` clause.
"""


class ChatSplitterError(Exception):
    """Base class for all chatsplitter errors."""


class LLMSegmentationError(ChatSplitterError):
    """Recoverable failure of the LLM backend; callers fall back to heuristics."""


class LLMUnavailableError(LLMSegmentationError):
    """The model endpoint is unreachable or returned a non-200 status."""


class LLMResponseError(LLMSegmentationError):
    """The model returned an empty or unparseable response."""


class LLMValidationError(LLMSegmentationError):
    """Parsed segments reference unknown messages or have inverted ranges."""
