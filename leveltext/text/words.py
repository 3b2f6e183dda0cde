"""Word counting and sentence splitting helpers.

Responsibilities:
- Count whitespace-delimited words consistently across segmentation and stats.
- Split text into sentence units on `.`, `!`, and `?` terminators.
"""

from __future__ import annotations

import re


_SENTENCE_BOUNDARY_PATTERN = re.compile(r"[.!?]+(?:\s+|$)")
_PARAGRAPH_BREAK_PATTERN = re.compile(r"\n\n+")
_LINE_BREAK_PATTERN = re.compile(r"\n+")


def count_words(text: str) -> int:
    """Return the number of whitespace-delimited words in `text`."""

    return len(text.split())


def split_sentences(text: str) -> list[str]:
    """Split text into sentences, keeping trailing whitespace with each sentence.

    A boundary is a run of terminators followed by whitespace or the end of the
    text, so periods inside tokens such as `3.14` or `U.S.A.` do not split.
    Every character lands in exactly one unit and text after the last boundary
    is returned as a final unit.
    """

    sentences: list[str] = []
    start = 0
    for match in _SENTENCE_BOUNDARY_PATTERN.finditer(text):
        sentences.append(text[start : match.end()])
        start = match.end()
    remainder = text[start:]
    if remainder.strip() or not sentences:
        sentences.append(remainder)
    return sentences


def split_paragraphs(text: str) -> list[str]:
    """Split on blank-line boundaries and drop empty paragraphs."""

    return [part.strip() for part in _PARAGRAPH_BREAK_PATTERN.split(text) if part.strip()]


def split_lines(text: str) -> list[str]:
    """Split on single newlines and drop empty lines."""

    return [part.strip() for part in _LINE_BREAK_PATTERN.split(text) if part.strip()]
