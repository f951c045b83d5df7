"""
Core models, configuration and text utilities shared by every layer.
"""
from .models import (
    ContentType,
    Granularity,
    KeyInfo,
    Message,
    Role,
    Segment,
    SegmentBoundary,
    SegmentationMethod,
    SegmentationResult,
    SignalResult,
)
from .config import (
    DEFAULT_SIGNAL_WEIGHTS,
    DOCUMENT_SIGNAL_WEIGHTS,
    GRANULARITY_PRESETS,
    GranularityThresholds,
    SegmentationConfig,
    Settings,
)
from .errors import (
    ChatSplitterError,
    LLMResponseError,
    LLMSegmentationError,
    LLMUnavailableError,
    LLMValidationError,
)

__all__ = [
    # Models
    "ContentType",
    "Granularity",
    "KeyInfo",
    "Message",
    "Role",
    "Segment",
    "SegmentBoundary",
    "SegmentationMethod",
    "SegmentationResult",
    "SignalResult",
    # Config
    "DEFAULT_SIGNAL_WEIGHTS",
    "DOCUMENT_SIGNAL_WEIGHTS",
    "GRANULARITY_PRESETS",
    "GranularityThresholds",
    "SegmentationConfig",
    "Settings",
    # Errors
    "ChatSplitterError",
    "LLMResponseError",
    "LLMSegmentationError",
    "LLMUnavailableError",
    "LLMValidationError",
]
