"""
Boundary scoring.

Evaluates every candidate boundary (the position before each user message
except the first message) as a weighted sum of the six signal scores.
"""
import logging
from typing import List, Sequence

from chatsplitter.core.config import (
    DOMAIN_SHIFT,
    REINTRODUCTION,
    SELF_CONTAINED,
    TEMPORAL_GAP,
    TRANSITION_PHRASES,
    VOCABULARY_SHIFT,
    SegmentationConfig,
)
from chatsplitter.core.models import Message, SegmentBoundary, SignalResult
from chatsplitter.segmentation import signals

logger = logging.getLogger(__name__)


def score_boundary(
    messages: Sequence[Message],
    position: int,
    config: SegmentationConfig,
) -> SegmentBoundary:
    """
    Compute all signals for the boundary before ``messages[position]``.

    Parameters
    ----------
    messages : Sequence[Message]
        The full conversation
    position : int
        Position of the user message that would start the new segment
    config : SegmentationConfig
        Supplies signal weights and the shift window size

    Returns
    -------
    SegmentBoundary
    """
    current = messages[position]
    previous = messages[position - 1]
    window = config.window_size

    results = [
        SignalResult(
            signal=TRANSITION_PHRASES,
            score=signals.score_transition_phrases(current),
            weight=config.weight(TRANSITION_PHRASES),
            detail=signals.explain_match(current, signals.TRANSITION_STRONG, signals.TRANSITION_MODERATE),
        ),
        SignalResult(
            signal=DOMAIN_SHIFT,
            score=signals.score_domain_shift(messages, position, window),
            weight=config.weight(DOMAIN_SHIFT),
        ),
        SignalResult(
            signal=VOCABULARY_SHIFT,
            score=signals.score_vocabulary_shift(messages, position, window),
            weight=config.weight(VOCABULARY_SHIFT),
        ),
        SignalResult(
            signal=TEMPORAL_GAP,
            score=signals.score_temporal_gap(previous, current),
            weight=config.weight(TEMPORAL_GAP),
        ),
        SignalResult(
            signal=SELF_CONTAINED,
            score=signals.score_self_contained(previous, current),
            weight=config.weight(SELF_CONTAINED),
        ),
        SignalResult(
            signal=REINTRODUCTION,
            score=signals.score_reintroduction(current),
            weight=config.weight(REINTRODUCTION),
            detail=signals.explain_match(current, signals.REINTRODUCTION_STRONG, signals.REINTRODUCTION_MODERATE),
        ),
    ]

    composite = sum(r.contribution for r in results)
    return SegmentBoundary(before_index=position, score=composite, signals=results)


def score_boundaries(
    messages: Sequence[Message],
    config: SegmentationConfig,
) -> List[SegmentBoundary]:
    """
    Score every candidate boundary in a conversation.

    Only user messages after the first position are candidates, so every
    segment starts with a user turn (or is the first segment).

    Returns
    -------
    list[SegmentBoundary]
        One boundary per candidate, in conversation order
    """
    boundaries: List[SegmentBoundary] = []
    for position in range(1, len(messages)):
        if not messages[position].is_user:
            continue
        boundary = score_boundary(messages, position, config)
        logger.debug(
            "Boundary before %d: score=%.4f (%s)",
            position,
            boundary.score,
            ", ".join(f"{r.signal}={r.score:.2f}" for r in boundary.signals if r.score > 0),
        )
        boundaries.append(boundary)
    return boundaries


def describe_boundaries(
    messages: Sequence[Message],
    boundaries: Sequence[SegmentBoundary],
    config: SegmentationConfig,
) -> str:
    """
    Render a human-readable report of boundary scores.

    Lists each boundary with a preview of the message that starts it and the
    non-zero weighted contribution of each signal.
    """
    threshold = config.thresholds.confidence_threshold
    lines = [
        f"Messages: {len(messages)}",
        f"Granularity: {config.granularity.value} (threshold {threshold:.2f})",
        "",
    ]
    for boundary in boundaries:
        preview = messages[boundary.before_index].plain_text[:80].replace("\n", " ")
        marker = "  ABOVE THRESHOLD" if boundary.score >= threshold else ""
        lines.append(f"--- Boundary at msg [{boundary.before_index}]: \"{preview}\"")
        lines.append(f"    Composite score: {boundary.score:.4f}{marker}")
        for result in boundary.signals:
            if result.score > 0:
                lines.append(
                    f"      {result.signal}: raw={result.score:.3f} * weight={result.weight:.2f}"
                    f" = {result.contribution:.4f}"
                )
        lines.append("")
    return "\n".join(lines)
