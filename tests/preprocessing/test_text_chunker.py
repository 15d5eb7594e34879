"""
Tests for the overlapping text chunker.
"""
import pytest

from docsearch.preprocessing import TextChunker, chunk_text


def assert_spans_valid(text, chunks, chunk_size):
    """Offsets are contiguous indices into text and cover it."""
    assert [c.index for c in chunks] == list(range(len(chunks)))
    for chunk in chunks:
        assert 0 <= chunk.start_offset < chunk.end_offset <= len(text)
        assert chunk.content == text[chunk.start_offset:chunk.end_offset]
        assert len(chunk.content) <= chunk_size

    assert chunks[0].start_offset == 0
    assert chunks[-1].end_offset == len(text)
    for prev, nxt in zip(chunks, chunks[1:]):
        # No gaps between consecutive chunks
        assert nxt.start_offset <= prev.end_offset
        assert nxt.start_offset > prev.start_offset


class TestTextChunker:
    """Window walk and word-boundary behaviour."""

    def test_empty_text(self):
        assert chunk_text("") == []

    def test_short_text_is_single_chunk(self):
        chunks = chunk_text("Hello world")

        assert len(chunks) == 1
        assert chunks[0].content == "Hello world"
        assert chunks[0].index == 0
        assert (chunks[0].start_offset, chunks[0].end_offset) == (0, 11)

    def test_text_exactly_chunk_size(self):
        text = "a" * 50
        chunks = chunk_text(text, chunk_size=50, overlap=10)

        assert len(chunks) == 1
        assert chunks[0].end_offset == 50

    def test_repeated_words_split_on_boundaries(self):
        text = "word " * 150
        chunks = chunk_text(text, chunk_size=50, overlap=10)

        assert len(chunks) >= 2
        assert_spans_valid(text, chunks, 50)

        for chunk in chunks:
            # Every chunk starts on a word and never cuts one in half
            assert chunk.content.startswith("word")
            for token in chunk.content.split():
                assert token == "word"

        for prev, nxt in zip(chunks, chunks[1:]):
            assert nxt.start_offset < prev.end_offset

    def test_no_whitespace_falls_back_to_hard_split(self):
        text = "x" * 230
        chunks = chunk_text(text, chunk_size=100, overlap=20)

        assert_spans_valid(text, chunks, 100)
        assert chunks[0].end_offset == 100
        assert chunks[1].start_offset == 80

    def test_boundary_scan_is_bounded(self):
        # Only whitespace is far outside the backward scan window
        text = "a " + "b" * 400
        chunks = chunk_text(text, chunk_size=300, overlap=0)

        assert chunks[0].end_offset == 300

    def test_cut_lands_after_whitespace_run(self):
        text = "alpha    " + "b" * 30
        chunks = chunk_text(text, chunk_size=20, overlap=0)

        assert chunks[0].content == "alpha    "
        assert chunks[1].start_offset == 9

    def test_large_overlap_still_makes_progress(self):
        text = "ab " * 40
        chunks = chunk_text(text, chunk_size=10, overlap=9)

        assert_spans_valid(text, chunks, 10)

    def test_unicode_offsets_are_code_points(self):
        text = "héllo wörld ünïcode " * 10
        chunks = chunk_text(text, chunk_size=40, overlap=5)

        assert_spans_valid(text, chunks, 40)

    @pytest.mark.parametrize("chunk_size,overlap,expected", [
        (0, 10, (1000, 10)),
        (-5, 0, (1000, 0)),
        (100, -1, (100, 0)),
        (100, 100, (100, 50)),
        (100, 250, (100, 50)),
    ])
    def test_invalid_parameters_are_coerced(self, chunk_size, overlap, expected):
        chunker = TextChunker(chunk_size=chunk_size, overlap=overlap)

        assert (chunker.chunk_size, chunker.overlap) == expected

    def test_defaults(self):
        chunker = TextChunker()

        assert chunker.chunk_size == 1000
        assert chunker.overlap == 100

    def test_separator_controls_are_not_word_breaks(self):
        # \x1f is whitespace to str.isspace() but must not attract the cut
        text = "alpha " + "x\x1fy" * 10
        chunks = chunk_text(text, chunk_size=20, overlap=0)

        assert chunks[0].content == "alpha "
        assert_spans_valid(text, chunks, 20)
