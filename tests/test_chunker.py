"""
Tests for the word-window text chunker.
"""

import pytest

from advanced_memory.graphrag.chunker import TextChunker


def _words(n: int) -> str:
    return " ".join(f"w{i}" for i in range(n))


class TestTextChunker:
    def test_short_text_single_unit(self):
        units = TextChunker(chunk_size=10, chunk_overlap=2).chunk("one two three", "doc-1")

        assert len(units) == 1
        assert units[0].content == "one two three"
        assert units[0].document_id == "doc-1"
        assert units[0].position == 0

    def test_overlap_between_units(self):
        units = TextChunker(chunk_size=10, chunk_overlap=3).chunk(_words(25), "doc-1")

        assert [u.position for u in units] == [0, 1, 2, 3]
        first, second = units[0].content.split(), units[1].content.split()
        assert first[-3:] == second[:3]
        assert units[-1].content.split()[-1] == "w24"

    def test_every_word_covered(self):
        units = TextChunker(chunk_size=7, chunk_overlap=2).chunk(_words(30), "doc-1")
        covered = {w for u in units for w in u.content.split()}
        assert covered == set(_words(30).split())

    def test_exact_fit_has_no_trailing_unit(self):
        units = TextChunker(chunk_size=10, chunk_overlap=0).chunk(_words(20), "doc-1")
        assert len(units) == 2

    def test_whitespace_collapsed(self):
        units = TextChunker(chunk_size=10, chunk_overlap=0).chunk("a\n\n b \t c", "doc-1")
        assert units[0].content == "a b c"

    @pytest.mark.parametrize("text", ["", "   \n "])
    def test_blank_text(self, text):
        assert TextChunker().chunk(text, "doc-1") == []

    @pytest.mark.parametrize("size,overlap", [(0, 0), (10, 10), (10, -1)])
    def test_invalid_configuration(self, size, overlap):
        with pytest.raises(ValueError):
            TextChunker(chunk_size=size, chunk_overlap=overlap)
