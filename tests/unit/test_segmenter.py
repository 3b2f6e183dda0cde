"""Unit tests for word helpers and chunk segmentation."""

from __future__ import annotations

import pytest

from leveltext.models.datatypes import ChunkBand
from leveltext.text.segmenter import Segmenter
from leveltext.text.words import count_words, split_sentences


def _paragraph(words: int, word: str = "word") -> str:
    """Build one sentence-terminated paragraph with an exact word count."""

    return " ".join([word] * (words - 1) + [f"{word}."])


def test_count_words_uses_whitespace_boundaries() -> None:
    """Word counting should treat any whitespace run as one separator."""

    assert count_words("  one\ttwo\n\nthree  ") == 3
    assert count_words("") == 0


def test_split_sentences_keeps_trailing_fragment_and_terminators() -> None:
    """Sentence splitting should not drop text after the last terminator."""

    sentences = split_sentences("First one. Second?! third without end")

    assert sentences == ["First one. ", "Second?! ", "third without end"]
    assert "".join(sentences) == "First one. Second?! third without end"


def test_split_sentences_keeps_decimals_and_abbreviations_intact() -> None:
    """Periods inside tokens should neither split nor lose the text before them."""

    text = "Version 3.14 is out now. The U.S.A. economy grew, e.g.x fast! Done"

    sentences = split_sentences(text)

    assert sentences == [
        "Version 3.14 is out now. ",
        "The U.S.A. ",
        "economy grew, e.g.x fast! ",
        "Done",
    ]
    assert "".join(sentences) == text


def test_segmenter_keeps_every_word_of_oversized_paragraph_with_abbreviations() -> None:
    """Re-splitting a long paragraph with decimals must preserve the word sequence."""

    sentence = "Prices rose 2.5 percent in the U.S. last year while wages stayed flat again today."
    text = "The U.S.A. economy grew fast " + " ".join([sentence] * 6)
    segmenter = Segmenter(ChunkBand(min_words=10, target_words=40, max_words=60))

    chunks = segmenter.to_chunks(text)

    assert len(chunks) > 1
    assert chunks[0].startswith("The U.S.A. economy")
    assert " ".join(chunks).split() == text.split()


def test_segmenter_merges_small_trailing_paragraph_into_previous_chunk() -> None:
    """Paragraphs of 80/400/30 words should become chunks of 80 and 430 words."""

    text = "\n\n".join(
        [_paragraph(80, "alpha"), _paragraph(400, "beta"), _paragraph(30, "gamma")]
    )
    segmenter = Segmenter(ChunkBand(min_words=50, target_words=250, max_words=500))

    chunks = segmenter.to_chunks(text)

    assert [count_words(chunk) for chunk in chunks] == [80, 430]
    assert chunks[0].startswith("alpha")
    assert chunks[1].endswith("gamma.")


def test_segmenter_resplits_oversized_paragraph_at_sentence_boundaries() -> None:
    """A paragraph above `max_words` should be split into sentence-aligned chunks."""

    sentence = "This sentence has exactly eight words in it."
    text = " ".join([sentence] * 12)
    segmenter = Segmenter(ChunkBand(min_words=10, target_words=30, max_words=60))

    chunks = segmenter.to_chunks(text)

    assert len(chunks) > 1
    assert all(chunk.endswith("in it.") for chunk in chunks)
    assert all(count_words(chunk) <= 60 for chunk in chunks)
    assert sum(count_words(chunk) for chunk in chunks) == 96


def test_segmenter_falls_back_to_line_breaks_for_single_long_block() -> None:
    """Text without blank lines should split on single newlines when too long."""

    lines = [_paragraph(40, f"line{index}") for index in range(5)]
    segmenter = Segmenter(ChunkBand(min_words=20, target_words=50, max_words=100))

    chunks = segmenter.to_chunks("\n".join(lines))

    assert len(chunks) >= 2
    assert sum(count_words(chunk) for chunk in chunks) == 200


def test_segmenter_keeps_run_on_sentence_whole() -> None:
    """A single sentence above the limit should never be cut mid-sentence."""

    run_on = " ".join(["endless"] * 120)
    segmenter = Segmenter(ChunkBand(min_words=5, target_words=20, max_words=40))

    assert segmenter.to_chunks(run_on) == [run_on]


def test_segmenter_preserves_word_order() -> None:
    """Concatenating the chunks should reproduce the source word sequence."""

    paragraphs = [_paragraph(count, f"p{index}") for index, count in enumerate([3, 9, 1, 7, 2])]
    text = "\n\n".join(paragraphs)
    segmenter = Segmenter(ChunkBand(min_words=2, target_words=5, max_words=10))

    chunks = segmenter.to_chunks(text)

    assert " ".join(chunks).split() == text.split()


@pytest.mark.parametrize("text", ["", "   \n\n  \t"])
def test_segmenter_returns_no_chunks_for_blank_text(text: str) -> None:
    """Blank input should produce an empty chunk list."""

    assert Segmenter(ChunkBand(1, 2, 3)).to_chunks(text) == []


def test_segmenter_single_chunk_mode_bypasses_splitting() -> None:
    """Single-chunk mode should return the whole stripped text as one chunk."""

    text = "\n\n".join(_paragraph(300) for _ in range(4))
    segmenter = Segmenter(ChunkBand(min_words=5, target_words=10, max_words=20))

    assert segmenter.to_chunks(f"  {text}  ", single_chunk=True) == [text]


def test_segmenter_rejects_unordered_band() -> None:
    """Band validation should reject `min > target`."""

    with pytest.raises(ValueError, match="min_words <= target_words <= max_words"):
        Segmenter(ChunkBand(min_words=10, target_words=5, max_words=20))
