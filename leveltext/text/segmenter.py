"""Plain-text to chunk segmentation.

Responsibilities:
- Split extracted text into word-bounded chunks for translation calls.
- Keep chunk boundaries on paragraph or sentence boundaries, never mid-sentence.
- Preserve source word order so chunks concatenate back to the input.
"""

from __future__ import annotations

from ..models.datatypes import ChunkBand
from .words import count_words, split_lines, split_paragraphs, split_sentences


_MERGE_SEPARATOR = "\n\n"


class Segmenter:
    """Create paragraph/sentence-aligned chunks within a word-count band."""

    def __init__(self, band: ChunkBand) -> None:
        """Initialize segmenter with a validated word-count band."""

        band.validate()
        self.band = band

    def to_chunks(self, text: str, single_chunk: bool = False) -> list[str]:
        """Split text into ordered chunks.

        Args:
            text: Raw plain text.
            single_chunk: Bypass splitting and return the whole text as one chunk.

        Returns:
            Ordered non-empty chunk list; empty when the text is blank.
        """

        stripped = text.strip()
        if not stripped:
            return []
        if single_chunk:
            return [stripped]

        segments = self._paragraph_segments(stripped)
        segments = self._split_oversized(segments)
        merged = self._merge_small(segments)
        return [chunk for chunk in merged if chunk.strip()]

    def _paragraph_segments(self, text: str) -> list[str]:
        """Split on blank lines, falling back to single newlines for one long block."""

        segments = split_paragraphs(text)
        if len(segments) <= 1 and count_words(text) > self.band.max_words:
            segments = split_lines(text)
        return segments

    def _split_oversized(self, segments: list[str]) -> list[str]:
        """Re-split segments above `max_words` at sentence boundaries."""

        result: list[str] = []
        for segment in segments:
            if count_words(segment) <= self.band.max_words:
                result.append(segment)
                continue
            result.extend(self._split_at_sentences(segment, self.band.target_words))
        return result

    @staticmethod
    def _split_at_sentences(text: str, limit_words: int) -> list[str]:
        """Accumulate sentences into sub-chunks of at most `limit_words` where possible.

        A single sentence above the limit is kept whole.
        """

        chunks: list[str] = []
        current = ""
        current_words = 0
        for sentence in split_sentences(text):
            sentence_words = count_words(sentence)
            if current_words + sentence_words <= limit_words:
                current += sentence
                current_words += sentence_words
                continue
            if current.strip():
                chunks.append(current.strip())
            current = sentence
            current_words = sentence_words
        if current.strip():
            chunks.append(current.strip())
        return chunks

    def _merge_small(self, segments: list[str]) -> list[str]:
        """Greedily merge undersized neighbours, then fold a small trailing chunk."""

        band = self.band
        merged: list[str] = []
        buffer = ""
        buffer_words = 0
        for segment in segments:
            segment_words = count_words(segment)
            if not buffer:
                buffer = segment
                buffer_words = segment_words
                continue

            should_merge = (
                buffer_words < band.min_words
                or segment_words < band.min_words
                or (buffer_words < band.target_words and segment_words < band.target_words)
            )
            if should_merge and buffer_words + segment_words <= band.max_words:
                buffer = f"{buffer}{_MERGE_SEPARATOR}{segment}"
                buffer_words += segment_words
                continue

            merged.append(buffer.strip())
            buffer = segment
            buffer_words = segment_words

        if buffer.strip():
            merged.append(buffer.strip())

        if len(merged) > 1:
            last_words = count_words(merged[-1])
            previous_words = count_words(merged[-2])
            if last_words < band.min_words and previous_words + last_words <= band.max_words:
                merged[-2] = f"{merged[-2]}{_MERGE_SEPARATOR}{merged[-1]}"
                merged.pop()
        return merged
