"""
Tests for the six boundary signals.
"""
from datetime import datetime, timedelta

import pytest

from chatsplitter.core.models import Message, Role
from chatsplitter.segmentation import signals


def _user(text, index=0, timestamp=None):
    return Message(index=index, role=Role.USER, plain_text=text, timestamp=timestamp)


def _assistant(text, index=0, timestamp=None):
    return Message(index=index, role=Role.ASSISTANT, plain_text=text, timestamp=timestamp)


def _structured_answer(words=320, headings=3):
    """A long assistant answer with markdown headings."""
    sections = []
    per_section = words // headings + 1
    for i in range(headings):
        sections.append(f"## Section {i + 1}\n" + " ".join(["detail"] * per_section))
    return "\n\n".join(sections)


class TestTransitionPhrases:
    """Tests for score_transition_phrases."""

    @pytest.mark.parametrize("text", [
        "Let's move on to deployment",
        "On a different note, what about taxes?",
        "Switching to the frontend now",
    ])
    def test_strong(self, text):
        assert signals.score_transition_phrases(_user(text)) == 1.0

    @pytest.mark.parametrize("text", [
        "Also, can you help me with my budget spreadsheet in Python?",
        "Thanks! Can you show me the tests?",
        "ok let's build the login page",
    ])
    def test_moderate(self, text):
        assert signals.score_transition_phrases(_user(text)) == 0.5

    def test_no_match(self):
        assert signals.score_transition_phrases(_user("The error still happens on line 12")) == 0.0

    def test_only_first_200_characters(self):
        text = "x" * 250 + " Let's move on to something else"
        assert signals.score_transition_phrases(_user(text)) == 0.0

    def test_assistant_messages_never_score(self):
        assert signals.score_transition_phrases(_assistant("Let's move on to deployment")) == 0.0


class TestReintroduction:
    """Tests for score_reintroduction."""

    def test_strong(self):
        assert signals.score_reintroduction(_user("I have a question about mortgages")) == 1.0
        assert signals.score_reintroduction(_user("Can you help with my CV?")) == 1.0

    def test_moderate(self):
        assert signals.score_reintroduction(_user("How do I rotate logs?")) == 0.5

    def test_none(self):
        assert signals.score_reintroduction(_user("That worked, thanks")) == 0.0


class TestDomainShift:
    """Tests for score_domain_shift."""

    def test_disjoint_vocabulary_scores_one(self):
        messages = [
            _user("planning itinerary flights hotels museums beaches", 0),
            _assistant("itinerary flights hotels museums beaches sunsets", 1),
            _user("python function variable loop exception module", 2),
            _assistant("python function variable loop exception decorator", 3),
        ]
        assert signals.score_domain_shift(messages, 2, 4) == 1.0

    def test_identical_vocabulary_scores_zero(self):
        messages = [
            _user("python function variable loop exception", 0),
            _user("python function variable loop exception", 1),
        ]
        assert signals.score_domain_shift(messages, 1, 4) == 0.0

    def test_insufficient_vocabulary(self):
        messages = [_user("hello world", 0), _user("python function variable loop exception", 1)]
        assert signals.score_domain_shift(messages, 1, 4) == 0.0


class TestVocabularyShift:
    """Tests for score_vocabulary_shift."""

    def test_disjoint_terms_score_one(self):
        messages = [_user("apples oranges", 0), _user("engines turbines", 1)]
        assert signals.score_vocabulary_shift(messages, 1, 4) == pytest.approx(1.0)

    def test_same_distribution_scores_zero(self):
        messages = [_user("apples oranges apples", 0), _user("apples oranges apples", 1)]
        assert signals.score_vocabulary_shift(messages, 1, 4) == pytest.approx(0.0)

    def test_empty_window(self):
        messages = [_user("the and of", 0), _user("apples oranges", 1)]
        assert signals.score_vocabulary_shift(messages, 1, 4) == 0.0


class TestTemporalGap:
    """Tests for score_temporal_gap."""

    def _pair(self, minutes):
        start = datetime(2024, 5, 1, 9, 0)
        return _assistant("a", 0, start), _user("b", 1, start + timedelta(minutes=minutes))

    def test_short_gap(self):
        assert signals.score_temporal_gap(*self._pair(29)) == 0.0

    def test_scales_linearly(self):
        assert signals.score_temporal_gap(*self._pair(60)) == pytest.approx(0.5)

    def test_caps_at_one(self):
        assert signals.score_temporal_gap(*self._pair(600)) == 1.0

    def test_missing_timestamps(self):
        assert signals.score_temporal_gap(_assistant("a"), _user("b")) == 0.0


class TestSelfContained:
    """Tests for score_self_contained."""

    def test_structured_answer_then_short_question(self):
        previous = _assistant(_structured_answer(), 0)
        assert signals.score_self_contained(previous, _user("What about visas?", 1)) == 1.0

    def test_list_items_count_as_structure(self):
        bullets = "\n".join(f"- point {i} " + " ".join(["word"] * 80) for i in range(4))
        previous = _assistant(bullets, 0)
        assert signals.score_self_contained(previous, _user("Thanks, next?", 1)) == 1.0

    def test_short_answer(self):
        previous = _assistant("## One\n## Two\nshort", 0)
        assert signals.score_self_contained(previous, _user("ok", 1)) == 0.0

    def test_unstructured_answer(self):
        previous = _assistant(" ".join(["plain"] * 400), 0)
        assert signals.score_self_contained(previous, _user("ok", 1)) == 0.0

    def test_long_follow_up(self):
        previous = _assistant(_structured_answer(), 0)
        assert signals.score_self_contained(previous, _user(" ".join(["word"] * 150), 1)) == 0.0

    def test_previous_must_be_assistant(self):
        previous = _user(_structured_answer(), 0)
        assert signals.score_self_contained(previous, _user("ok", 1)) == 0.0
