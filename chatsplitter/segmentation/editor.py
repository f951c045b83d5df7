"""
Manual segment editing: merge, split and rename.

All operations take the full segment list and return a new list. Requests
that cannot be applied (unknown ids, non-adjacent segments, a split point
outside the segment) return the input list unchanged.
"""
import logging
from typing import List, Optional, Sequence

from chatsplitter.core.models import Segment, SegmentationMethod
from chatsplitter.segmentation.segmenter import new_segment_id
from chatsplitter.segmentation.tags import extract_tag_prefix, generate_tags
from chatsplitter.segmentation.titles import generate_title

logger = logging.getLogger(__name__)


def find_segment(segments: Sequence[Segment], segment_id: str) -> Optional[int]:
    """Position of the segment with ``segment_id`` in the list, or None."""
    for position, seg in enumerate(segments):
        if seg.id == segment_id:
            return position
    return None


def merge_segments(segments: Sequence[Segment], id_a: str, id_b: str) -> List[Segment]:
    """
    Merge two adjacent segments into one.

    The merged segment keeps the earlier segment's title, summary and
    confidence, gets a new id and tags regenerated from the combined
    messages. The order of ``id_a`` and ``id_b`` does not matter.

    Parameters
    ----------
    segments : Sequence[Segment]
        The conversation's segment list
    id_a, id_b : str
        Ids of the two segments to merge

    Returns
    -------
    list[Segment]
        New segment list, or the input unchanged if either id is missing or
        the segments are not adjacent
    """
    pos_a = find_segment(segments, id_a)
    pos_b = find_segment(segments, id_b)
    if pos_a is None or pos_b is None:
        logger.debug("Merge ignored: unknown segment id")
        return list(segments)
    if abs(pos_a - pos_b) != 1:
        logger.debug("Merge ignored: segments at %d and %d are not adjacent", pos_a, pos_b)
        return list(segments)

    low = min(pos_a, pos_b)
    first, second = segments[low], segments[low + 1]
    messages = list(first.messages) + list(second.messages)

    merged = Segment(
        id=new_segment_id(),
        title=first.title,
        summary=first.summary,
        tags=generate_tags(messages, extract_tag_prefix(first.tags)),
        messages=messages,
        start_index=first.start_index,
        end_index=second.end_index,
        confidence=first.confidence,
        method=SegmentationMethod.MANUAL,
    )
    return list(segments[:low]) + [merged] + list(segments[low + 2:])


def split_segment(segments: Sequence[Segment], segment_id: str, at_message_index: int) -> List[Segment]:
    """
    Split a segment in two before the message with ``at_message_index``.

    The index must fall strictly inside the segment: splitting before its
    first message (or past its last) is a no-op. Both halves get new ids,
    fresh titles and regenerated tags. The first half keeps the original
    summary and confidence; the second starts with an empty summary and
    confidence 0.

    Returns
    -------
    list[Segment]
        New segment list, or the input unchanged if the split is not possible
    """
    position = find_segment(segments, segment_id)
    if position is None:
        logger.debug("Split ignored: unknown segment id %s", segment_id)
        return list(segments)

    seg = segments[position]
    local = at_message_index - seg.start_index
    if local <= 0 or local >= len(seg.messages):
        logger.debug(
            "Split ignored: index %d outside (%d, %d]", at_message_index, seg.start_index, seg.end_index
        )
        return list(segments)

    head, tail = list(seg.messages[:local]), list(seg.messages[local:])
    tag_prefix = extract_tag_prefix(seg.tags)

    first = Segment(
        id=new_segment_id(),
        title=generate_title(head),
        summary=seg.summary,
        tags=generate_tags(head, tag_prefix),
        messages=head,
        start_index=seg.start_index,
        end_index=head[-1].index,
        confidence=seg.confidence,
        method=SegmentationMethod.MANUAL,
    )
    second = Segment(
        id=new_segment_id(),
        title=generate_title(tail),
        summary="",
        tags=generate_tags(tail, tag_prefix),
        messages=tail,
        start_index=tail[0].index,
        end_index=seg.end_index,
        confidence=0.0,
        method=SegmentationMethod.MANUAL,
    )
    return list(segments[:position]) + [first, second] + list(segments[position + 1:])


def rename_segment(segments: Sequence[Segment], segment_id: str, new_title: str) -> List[Segment]:
    """Replace the title of one segment; every other field is preserved."""
    return [
        seg.model_copy(update={"title": new_title}) if seg.id == segment_id else seg
        for seg in segments
    ]
