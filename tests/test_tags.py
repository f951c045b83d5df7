"""
Tests for domain tag generation.
"""
from chatsplitter.core.models import Message, Role
from chatsplitter.segmentation.tags import (
    DOMAIN_PATTERNS,
    MAX_TAGS,
    count_matches,
    extract_tag_prefix,
    generate_tags,
)


def _conversation(*turns):
    roles = {"u": Role.USER, "a": Role.ASSISTANT}
    return [Message(index=i, role=roles[r], plain_text=t) for i, (r, t) in enumerate(turns)]


class TestGenerateTags:
    """Tests for generate_tags."""

    def test_python_conversation(self):
        messages = _conversation(
            ("u", "How do I read a CSV file in Python?"),
            ("a", "Python's csv module has a reader for that."),
        )
        assert generate_tags(messages) == ["ai-chat/coding", "ai-chat/coding/python"]

    def test_single_mention_does_not_fire(self):
        messages = _conversation(("u", "I once wrote some Python."), ("a", "Nice."))
        assert generate_tags(messages) == ["ai-chat"]

    def test_custom_prefix(self):
        messages = _conversation(("u", "Find flights and a hotel for my trip to Rome"))
        assert generate_tags(messages, "notes/") == ["notes/travel"]

    def test_same_tag_from_two_rows_listed_once(self):
        messages = _conversation(
            ("u", "My Python script fails"),
            ("a", "def main(): ... def helper(): ... def run(): ... Python stack trace above."),
        )
        tags = generate_tags(messages)
        assert tags.count("ai-chat/coding") == 1

    def test_at_most_five_tags(self):
        text = "python python javascript javascript sql sql graphql graphql figma figma essay essay"
        tags = generate_tags(_conversation(("u", text)))
        assert len(tags) == MAX_TAGS
        assert tags == [
            "ai-chat/coding",
            "ai-chat/coding/python",
            "ai-chat/coding/javascript",
            "ai-chat/database",
            "ai-chat/web",
        ]

    def test_idempotent(self):
        messages = _conversation(
            ("u", "Compare mortgage rates for a condo"),
            ("a", "Mortgage rates for a condo depend on the property and your rental income."),
        )
        assert generate_tags(messages) == generate_tags(messages)

    def test_empty_messages(self):
        assert generate_tags([]) == ["ai-chat"]


class TestTagHelpers:
    """Tests for count_matches and extract_tag_prefix."""

    def test_count_matches(self):
        python_row = next(d for d in DOMAIN_PATTERNS if d.tag == "coding/python")
        assert count_matches("Python and python and pythonic", python_row) == 2

    def test_extract_prefix(self):
        assert extract_tag_prefix(["notes/coding", "notes/web"]) == "notes"

    def test_extract_bare_prefix(self):
        assert extract_tag_prefix(["notes"]) == "notes"

    def test_extract_default(self):
        assert extract_tag_prefix([]) == "ai-chat"
