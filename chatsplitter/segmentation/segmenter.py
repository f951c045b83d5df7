"""
Heuristic segment assembly.

Turns scored boundaries into a partition of the conversation. The assembler
is greedy: candidates above the confidence threshold are tried best first,
and each is accepted only if every segment of the resulting partition still
meets the minimum message and word counts.
"""
import logging
import uuid
from typing import List, Sequence

from chatsplitter.core.config import SegmentationConfig
from chatsplitter.core.errors import LLMSegmentationError
from chatsplitter.core.models import Message, Segment, SegmentationMethod, SegmentationResult
from chatsplitter.generators.key_info import generate_summary
from chatsplitter.segmentation.scorer import score_boundaries
from chatsplitter.segmentation.tags import generate_tags
from chatsplitter.segmentation.titles import generate_title

logger = logging.getLogger(__name__)


def new_segment_id() -> str:
    return str(uuid.uuid4())


def build_segment(
    messages: Sequence[Message],
    confidence: float,
    tag_prefix: str,
    method: SegmentationMethod = SegmentationMethod.HEURISTIC,
) -> Segment:
    """
    Materialize a segment with a generated title, summary and tags.

    Parameters
    ----------
    messages : Sequence[Message]
        Contiguous, non-empty run of messages
    confidence : float
        Score of the boundary that starts the segment; clamped to [0, 1]
    tag_prefix : str
        Namespace for generated tags
    method : SegmentationMethod
        Path that produced the segment

    Returns
    -------
    Segment
    """
    run = list(messages)
    return Segment(
        id=new_segment_id(),
        title=generate_title(run),
        summary=generate_summary(run),
        tags=generate_tags(run, tag_prefix),
        messages=run,
        start_index=run[0].index,
        end_index=run[-1].index,
        confidence=min(1.0, max(0.0, confidence)),
        method=method,
    )


def _all_segments_meet_minimum(
    word_counts: Sequence[int],
    starts: Sequence[int],
    config: SegmentationConfig,
) -> bool:
    """
    Check that every segment of a trial partition is large enough.

    ``starts`` are sorted boundary positions (excluding 0). Works on
    positions and precomputed per-message word counts only.
    """
    min_messages = config.thresholds.min_messages
    min_words = config.thresholds.min_words
    edges = [0] + list(starts) + [len(word_counts)]

    for begin, end in zip(edges, edges[1:]):
        if end - begin < min_messages:
            return False
        if sum(word_counts[begin:end]) < min_words:
            return False
    return True


def _single_segment(messages: Sequence[Message], config: SegmentationConfig) -> List[Segment]:
    return [build_segment(messages, 1.0, config.tag_prefix)]


def segment(messages: Sequence[Message], config: SegmentationConfig) -> List[Segment]:
    """
    Split a conversation into topic segments.

    Parameters
    ----------
    messages : Sequence[Message]
        The conversation, in order
    config : SegmentationConfig
        Weights, thresholds and tag prefix for this run

    Returns
    -------
    list[Segment]
        Contiguous, non-overlapping segments covering every message. A
        single segment with confidence 1.0 when nothing can be split; an
        empty list only for an empty conversation.
    """
    if not messages:
        return []
    if len(messages) < 2 or not any(m.is_user for m in messages):
        logger.debug("Conversation cannot be split (%d messages)", len(messages))
        return _single_segment(messages, config)

    boundaries = score_boundaries(messages, config)
    threshold = config.thresholds.confidence_threshold
    # sorted() is stable, so equal scores keep conversation order
    candidates = sorted(
        (b for b in boundaries if b.score >= threshold),
        key=lambda b: -b.score,
    )

    word_counts = [m.word_count for m in messages]
    accepted: List[int] = []
    for boundary in candidates:
        trial = sorted(accepted + [boundary.before_index])
        if _all_segments_meet_minimum(word_counts, trial, config):
            accepted = trial
            logger.debug("Accepted boundary before %d (score=%.4f)", boundary.before_index, boundary.score)
        else:
            logger.debug("Rejected boundary before %d: segment below minimum size", boundary.before_index)

    if not accepted:
        logger.info("No boundary accepted; returning a single segment of %d messages", len(messages))
        return _single_segment(messages, config)

    scores = {b.before_index: b.score for b in boundaries}
    edges = [0] + accepted + [len(messages)]
    segments = []
    for begin, end in zip(edges, edges[1:]):
        confidence = 1.0 if begin == 0 else scores[begin]
        segments.append(build_segment(messages[begin:end], confidence, config.tag_prefix))

    logger.info(
        "Split %d messages into %d segments (%s granularity)",
        len(messages), len(segments), config.granularity.value,
    )
    return segments


def segment_with_fallback(
    messages: Sequence[Message],
    config: SegmentationConfig,
    llm_segmenter=None,
) -> SegmentationResult:
    """
    Segment with the LLM backend, falling back to the heuristic path.

    Parameters
    ----------
    messages : Sequence[Message]
        The conversation, in order
    config : SegmentationConfig
        Configuration shared by both paths
    llm_segmenter : optional
        Object with ``segment(messages, config) -> List[Segment]`` raising
        ``LLMSegmentationError`` on failure. When None the heuristic path is
        used directly and no fallback is reported.

    Returns
    -------
    SegmentationResult
        Segments plus whether (and why) the heuristic fallback was used
    """
    if llm_segmenter is None or not messages:
        return SegmentationResult(segments=segment(messages, config))

    try:
        segments = llm_segmenter.segment(messages, config)
    except LLMSegmentationError as e:
        logger.warning("LLM segmentation failed, falling back to heuristics: %s", e)
        return SegmentationResult(
            segments=segment(messages, config),
            used_fallback=True,
            fallback_reason=str(e),
        )
    return SegmentationResult(segments=segments)
