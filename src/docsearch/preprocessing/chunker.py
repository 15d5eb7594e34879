"""
Overlapping Text Chunker
Splits text into fixed-size windows that prefer to break on whitespace.

Offsets are code-point positions into the original string (Python str
indexing), half-open [start_offset, end_offset).
"""
from dataclasses import dataclass
from typing import List

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 100
# Longest backward scan when looking for a word boundary
MAX_BOUNDARY_SCAN = 100
# File, group, record and unit separators: str.isspace() accepts them, but
# they are data delimiters, not word breaks
SEPARATOR_CONTROLS = frozenset("\x1c\x1d\x1e\x1f")


@dataclass(frozen=True)
class TextChunk:
    content: str
    index: int
    start_offset: int
    end_offset: int


class TextChunker:
    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP):
        if chunk_size <= 0:
            chunk_size = DEFAULT_CHUNK_SIZE
        if overlap < 0:
            overlap = 0
        if overlap >= chunk_size:
            overlap = chunk_size // 2

        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk_text(self, text: str) -> List[TextChunk]:
        """Split text into overlapping chunks respecting word boundaries."""
        if not text:
            return []

        total_len = len(text)
        if total_len <= self.chunk_size:
            return [TextChunk(content=text, index=0, start_offset=0, end_offset=total_len)]

        chunks: List[TextChunk] = []
        position = 0

        while position < total_len:
            end_pos = min(position + self.chunk_size, total_len)

            actual_end = end_pos
            if end_pos < total_len:
                actual_end = self._find_word_boundary(text, position, end_pos)

            chunks.append(TextChunk(
                content=text[position:actual_end],
                index=len(chunks),
                start_offset=position,
                end_offset=actual_end,
            ))

            if actual_end >= total_len:
                break

            next_position = max(actual_end - self.overlap, 0)
            # An early whitespace cut with a large overlap would walk backwards
            if next_position <= position:
                next_position = actual_end
            position = next_position

        return chunks

    def _find_word_boundary(self, text: str, start_pos: int, end_pos: int) -> int:
        """
        Scan backward from end_pos for the last whitespace within the scan
        window and cut just past it. Falls back to end_pos (mid-word split).
        """
        max_scan_back = min(MAX_BOUNDARY_SCAN, self.chunk_size)
        scan_start = max(end_pos - max_scan_back, start_pos)

        for i in range(end_pos - 1, scan_start - 1, -1):
            if _is_word_break(text[i]):
                split_pos = i + 1
                while split_pos < end_pos and _is_word_break(text[split_pos]):
                    split_pos += 1
                return split_pos

        return end_pos


def _is_word_break(char: str) -> bool:
    return char.isspace() and char not in SEPARATOR_CONTROLS


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> List[TextChunk]:
    """Convenience wrapper around TextChunker."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap).chunk_text(text)
