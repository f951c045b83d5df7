"""
Tests for manual segment editing (merge, split, rename).
"""
import pytest

from chatsplitter.core.config import SegmentationConfig
from chatsplitter.core.models import Granularity, Message, Role, SegmentationMethod
from chatsplitter.segmentation.editor import find_segment, merge_segments, rename_segment, split_segment
from chatsplitter.segmentation.segmenter import build_segment, segment


def _conversation(*turns):
    roles = {"u": Role.USER, "a": Role.ASSISTANT}
    return [Message(index=i, role=roles[r], plain_text=t) for i, (r, t) in enumerate(turns)]


@pytest.fixture
def messages():
    return _conversation(
        ("u", "How do I write a Python decorator that caches results?"),
        ("a", "Use functools.lru_cache, or write a Python wrapper that stores results in a dict."),
        ("u", "Can you help me plan a trip to Japan in April?"),
        ("a", "Spend four days in Tokyo, then take the train to Kyoto for the cherry blossoms on your trip."),
        ("u", "What hotel areas do you recommend in Kyoto?"),
        ("a", "Stay near Gion or Kyoto Station for easy travel to the temples."),
    )


@pytest.fixture
def segments(messages):
    return [
        build_segment(messages[0:2], 1.0, "notes"),
        build_segment(messages[2:4], 0.7, "notes"),
        build_segment(messages[4:6], 0.5, "notes"),
    ]


def _ranges(segments):
    return [(s.start_index, s.end_index) for s in segments]


class TestMerge:
    """Tests for merge_segments."""

    def test_merges_adjacent_segments(self, segments):
        result = merge_segments(segments, segments[1].id, segments[2].id)

        assert _ranges(result) == [(0, 1), (2, 5)]
        merged = result[1]
        assert merged.title == segments[1].title
        assert merged.summary == segments[1].summary
        assert merged.confidence == 0.7
        assert merged.method == SegmentationMethod.MANUAL
        assert merged.message_count == 4
        assert merged.id not in {s.id for s in segments}

    def test_argument_order_does_not_matter(self, segments):
        result = merge_segments(segments, segments[1].id, segments[0].id)
        assert _ranges(result) == [(0, 3), (4, 5)]
        assert result[0].title == segments[0].title

    def test_tags_regenerated_with_same_prefix(self, segments):
        result = merge_segments(segments, segments[1].id, segments[2].id)
        assert all(tag.startswith("notes") for tag in result[1].tags)
        assert "notes/travel" in result[1].tags

    def test_non_adjacent_is_noop(self, segments):
        assert merge_segments(segments, segments[0].id, segments[2].id) == segments

    def test_unknown_id_is_noop(self, segments):
        assert merge_segments(segments, "missing", segments[0].id) == segments


class TestSplit:
    """Tests for split_segment."""

    def test_split_inside_segment(self, messages):
        whole = [build_segment(messages, 1.0, "ai-chat")]
        result = split_segment(whole, whole[0].id, 2)

        assert _ranges(result) == [(0, 1), (2, 5)]
        first, second = result
        assert first.summary == whole[0].summary
        assert first.confidence == 1.0
        assert second.summary == ""
        assert second.confidence == 0.0
        assert first.method == second.method == SegmentationMethod.MANUAL
        assert first.id != whole[0].id and second.id != whole[0].id

    def test_split_regenerates_titles_and_tags(self, messages):
        whole = [build_segment(messages, 1.0, "ai-chat")]
        first, second = split_segment(whole, whole[0].id, 2)
        assert "ai-chat/coding/python" in first.tags
        assert "ai-chat/coding/python" not in second.tags
        assert first.title != second.title

    def test_split_at_segment_start_is_noop(self, segments):
        target = segments[1]
        assert split_segment(segments, target.id, target.start_index) == segments

    def test_split_past_segment_end_is_noop(self, segments):
        target = segments[1]
        assert split_segment(segments, target.id, target.end_index + 1) == segments

    def test_split_unknown_id_is_noop(self, segments):
        assert split_segment(segments, "missing", 3) == segments

    def test_merge_then_split_restores_partition(self, segments):
        merged = merge_segments(segments, segments[0].id, segments[1].id)
        restored = split_segment(merged, merged[0].id, segments[1].start_index)

        assert _ranges(restored) == _ranges(segments)
        assert [[m.index for m in s.messages] for s in restored] == [
            [m.index for m in s.messages] for s in segments
        ]


class TestRename:
    """Tests for rename_segment."""

    def test_rename_only_touches_title(self, segments):
        result = rename_segment(segments, segments[1].id, "Japan Trip")

        assert result[1].title == "Japan Trip"
        assert result[1].model_dump(exclude={"title"}) == segments[1].model_dump(exclude={"title"})
        assert result[0] == segments[0]
        assert result[2] == segments[2]

    def test_rename_is_idempotent(self, segments):
        once = rename_segment(segments, segments[0].id, "Caching")
        twice = rename_segment(once, segments[0].id, "Caching")
        assert once == twice

    def test_unknown_id_changes_nothing(self, segments):
        assert rename_segment(segments, "missing", "Anything") == segments


class TestFindSegment:
    """Tests for find_segment."""

    def test_finds_position(self, segments):
        assert find_segment(segments, segments[2].id) == 2

    def test_missing(self, segments):
        assert find_segment(segments, "nope") is None


def test_editing_heuristic_output():
    """Operators accept whatever the assembler produced."""
    messages = _conversation(
        ("u", "Let's talk about Rust ownership and borrowing rules."),
        ("a", "Each value has one owner; borrowing lends access without moving it."),
        ("u", "On a different note, what should I cook for dinner tonight?"),
        ("a", "A quick vegetable stir fry with rice takes about twenty minutes."),
    )
    config = SegmentationConfig.for_granularity(Granularity.FINE, min_messages=2, min_words=10)
    produced = segment(messages, config)
    if len(produced) == 2:
        merged = merge_segments(produced, produced[0].id, produced[1].id)
        assert _ranges(merged) == [(0, 3)]
    else:
        split = split_segment(produced, produced[0].id, 2)
        assert _ranges(split) == [(0, 1), (2, 3)]
