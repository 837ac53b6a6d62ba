"""
Unit Tests for Document Splitter
================================

Tests for splitting concatenated skill files on the document separator.
"""

from skilldocs.core.frontmatter.splitter import (
    Segment,
    fence_marker,
    iter_fenced_lines,
    split_documents,
)

from tests.data.sample_skill_documents import (
    CONCATENATED,
    DOUBLE_SEPARATOR,
    SEPARATOR,
    SEPARATOR_IN_FENCE,
    TRAILING_SEPARATOR,
    VALID_SKILL,
)


class TestFenceTracking:
    """Test code fence detection."""

    def test_fence_marker(self):
        assert fence_marker("```") == "```"
        assert fence_marker("```python") == "```"
        assert fence_marker("~~~~") == "~~~~"
        assert fence_marker("   ```") == "```"
        assert fence_marker("    ```") is None  # indented code block
        assert fence_marker("``") is None
        assert fence_marker("text ```") is None

    def test_inside_state_is_reported_before_line(self):
        lines = ["a", "```", "b", "```", "c"]
        states = [inside for _, _, inside, _ in iter_fenced_lines(lines)]
        assert states == [False, False, True, True, False]

    def test_closing_fence_must_match_character(self):
        lines = ["~~~", "```", "still code", "~~~", "text"]
        states = [inside for _, _, inside, _ in iter_fenced_lines(lines)]
        assert states == [False, True, True, True, False]

    def test_fence_with_info_string_does_not_close(self):
        lines = ["```", "```python", "code", "```", "text"]
        states = [inside for _, _, inside, _ in iter_fenced_lines(lines)]
        assert states == [False, True, True, True, False]


class TestSplitDocuments:
    """Test splitting on the separator token."""

    def test_single_document(self):
        segments = split_documents(VALID_SKILL, SEPARATOR)

        assert segments == [Segment(index=0, text=VALID_SKILL, start_line=1)]

    def test_two_documents(self):
        segments = split_documents(CONCATENATED, SEPARATOR)

        assert len(segments) == 2
        assert [s.index for s in segments] == [0, 1]
        assert segments[0].start_line == 1
        # Separator sits on line 10, so the second document starts on 11
        assert segments[1].start_line == 11
        assert segments[0].text.startswith("---\nname: docker-basics")
        assert segments[1].text.startswith("---\nname: kubernetes-basics")
        assert SEPARATOR not in segments[0].text + segments[1].text

    def test_trailing_separator_is_dropped(self):
        segments = split_documents(TRAILING_SEPARATOR, SEPARATOR)

        assert len(segments) == 1
        assert segments[0].text == VALID_SKILL

    def test_double_separator_keeps_blank_segment(self):
        segments = split_documents(DOUBLE_SEPARATOR, SEPARATOR)

        assert len(segments) == 3
        assert segments[1].is_blank
        assert segments[1].start_line == 10
        assert segments[2].start_line == 12
        assert not segments[2].is_blank

    def test_separator_inside_code_fence_is_ignored(self):
        segments = split_documents(SEPARATOR_IN_FENCE, SEPARATOR)

        assert len(segments) == 1
        assert SEPARATOR in segments[0].text

    def test_separator_with_surrounding_whitespace(self):
        content = f"# One\n   {SEPARATOR}  \n# Two\n"
        segments = split_documents(content, SEPARATOR)

        assert [s.text for s in segments] == ["# One\n", "# Two\n"]

    def test_separator_must_fill_the_line(self):
        content = f"# One\nSee {SEPARATOR} for details\n"
        segments = split_documents(content, SEPARATOR)

        assert len(segments) == 1

    def test_custom_separator(self):
        content = "# One\n=== next ===\n# Two\n"
        segments = split_documents(content, "=== next ===")

        assert len(segments) == 2
        assert segments[1].start_line == 3

    def test_empty_text(self):
        segments = split_documents("", SEPARATOR)

        assert len(segments) == 1
        assert segments[0].is_blank

    def test_crlf_line_endings(self):
        content = f"# One\r\n{SEPARATOR}\r\n# Two\r\n"
        segments = split_documents(content, SEPARATOR)

        assert [s.text for s in segments] == ["# One\r\n", "# Two\r\n"]
