"""
Heuristic conversation segmentation.

Six independent signals score every candidate boundary (the position before
a user message); a greedy assembler accepts the strongest boundaries that
keep every segment above the minimum size, and each segment gets a generated
title, summary and tags. Segments can then be merged, split or renamed by
hand.
"""
from .scorer import describe_boundaries, score_boundaries, score_boundary
from .segmenter import build_segment, segment, segment_with_fallback
from .editor import merge_segments, rename_segment, split_segment
from .tags import generate_tags
from .titles import generate_title

__all__ = [
    # Scoring
    "score_boundary",
    "score_boundaries",
    "describe_boundaries",
    # Assembly
    "build_segment",
    "segment",
    "segment_with_fallback",
    # Editing
    "merge_segments",
    "split_segment",
    "rename_segment",
    # Generators
    "generate_tags",
    "generate_title",
]
