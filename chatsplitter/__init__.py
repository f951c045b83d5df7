"""
chatsplitter: split AI chat transcripts into topic segments.
"""
from chatsplitter.core.config import SegmentationConfig
from chatsplitter.core.models import Message, Segment, SegmentationResult
from chatsplitter.segmentation import (
    merge_segments,
    rename_segment,
    segment,
    segment_with_fallback,
    split_segment,
)

__version__ = "0.3.0"

__all__ = [
    "Message",
    "Segment",
    "SegmentationConfig",
    "SegmentationResult",
    "merge_segments",
    "rename_segment",
    "segment",
    "segment_with_fallback",
    "split_segment",
]
