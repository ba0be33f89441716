"""
Tests for clause-number repair.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdrecon.utils.numbering import is_numbering_fragment, merge_numbering_fragments


class TestNumberingFragments:
    """Tests for joining bare clause numbers with their text."""

    def test_fragment_detection(self):
        assert is_numbering_fragment(".1")
        assert is_numbering_fragment("  .12 ")
        assert not is_numbering_fragment("1.")
        assert not is_numbering_fragment(".1a")
        assert not is_numbering_fragment(".1 Scope")

    def test_joins_with_next_line(self):
        text = "1.1 General\n.1\nThe intent of this Request"
        assert merge_numbering_fragments(text) == "1.1 General\n.1 The intent of this Request"

    def test_skips_blank_lines(self):
        text = ".1\n\nThe intent of this Request\n\n.2\n\n\nThe scope"
        assert merge_numbering_fragments(text) == (
            ".1 The intent of this Request\n\n.2 The scope"
        )

    def test_text_without_fragments_unchanged(self):
        text = "# Heading\n\n- item\n\n| a | b |\n| --- | --- |"
        assert merge_numbering_fragments(text) == text

    def test_trailing_fragment_kept(self):
        assert merge_numbering_fragments("Intro\n\n.3") == "Intro\n\n.3"
        assert merge_numbering_fragments(".3\n\n") == ".3\n\n"

    def test_consecutive_fragments(self):
        # The first fragment absorbs the second as its text
        assert merge_numbering_fragments(".1\n.2\nText") == ".1 .2\nText"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
